from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from studysheet.clock import utcnow
from studysheet.crud import list_problems
from studysheet.models import Problem


def is_due(problem: Problem, now: datetime) -> bool:
    """Due if never reviewed or its review time has arrived"""
    return problem.next_review_at is None or problem.next_review_at <= now


def days_overdue(problem: Problem, now: datetime) -> int:
    """Whole days past the review time, 0 for problems not yet due or never reviewed"""
    if problem.next_review_at is None or now < problem.next_review_at:
        return 0
    return (now - problem.next_review_at).days


def _queue_key(problem: Problem) -> Tuple[bool, datetime, int]:
    # Never-reviewed problems sort ahead of everything, then oldest review time, then id
    return (
        problem.next_review_at is not None,
        problem.next_review_at or datetime.min,
        problem.id
    )


def select_due(problems: Iterable[Problem], now: datetime, limit: Optional[int] = None) -> List[Problem]:
    """Due problems, most overdue first"""
    queue = sorted((p for p in problems if is_due(p, now)), key=_queue_key)
    return queue[:limit] if limit is not None else queue


def due_queue(
    db: Session,
    user_id: int,
    now: Optional[datetime] = None,
    limit: Optional[int] = None
) -> List[Problem]:
    """
    Review queue for a user.

    Read-only: calling it again without logging an attempt returns the same
    problems in the same order.
    """
    return select_due(list_problems(db, user_id), now or utcnow(), limit)


def due_count(db: Session, user_id: int, now: Optional[datetime] = None) -> int:
    """Number of problems currently due"""
    return len(due_queue(db, user_id, now))
