"""
Logging practice attempts and keeping problem schedules in step with them.

The attempt table is the source of truth. A problem's srs_bucket,
next_review_at and difficulty_personal are a cache of replaying its attempts
through the scheduler; last_attempt_id records how far the cache got. The
attempt is always committed before the schedule, so a failure in between
leaves a stale cache that reconcile_problem can rebuild, never a schedule
without its attempt.
"""
import time
from datetime import datetime
from typing import List, Optional, Tuple

from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studysheet import srs
from studysheet.clock import utcnow
from studysheet.config import settings
from studysheet.crud import (
    get_problem,
    list_problems,
    insert_attempt,
    list_attempts,
    count_attempts,
    get_latest_attempt_id,
    update_problem_schedule
)
from studysheet.errors import (
    AttemptTimeoutError,
    AttemptWriteError,
    ConcurrentModificationError,
    NotFoundError,
    ScheduleWriteError,
    ValidationError
)
from studysheet.models import Problem
from studysheet.schemas import AttemptCreate, AttemptResult


class _Deadline:
    """Monotonic deadline; never expires when timeout is None"""

    def __init__(self, timeout: Optional[float]):
        self.expires_at = None if timeout is None else time.monotonic() + timeout

    def expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at


def _format_validation_error(error: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    )


def is_stale(db: Session, problem: Problem) -> bool:
    """True if attempts exist that the problem's cached schedule has not folded in"""
    # A backdated attempt is never the newest, so the count catches it
    return (
        count_attempts(db, problem.id) != problem.attempts_folded
        or get_latest_attempt_id(db, problem.id) != problem.last_attempt_id
    )


def _rebuild_schedule(db: Session, problem: Problem) -> Optional[srs.ScheduleState]:
    """Replay the full history and conditionally store it. None on version conflict."""
    attempts = list_attempts(db, problem.id)
    state = srs.replay(
        ((attempt.timestamp, attempt.confidence_rating) for attempt in attempts),
        settings.max_interval_days
    )
    applied = update_problem_schedule(
        db,
        problem.id,
        expected_version=problem.srs_version,
        srs_bucket=state.bucket,
        next_review_at=state.next_review_at,
        difficulty_personal=state.personal_difficulty,
        last_attempt_id=attempts[-1].id if attempts else None,
        attempts_folded=state.attempts_folded
    )
    return state if applied else None


def _reconcile(
    db: Session,
    problem_id: int,
    user_id: Optional[int],
    force: bool
) -> Tuple[Problem, Optional[srs.ScheduleState]]:
    for _ in range(settings.max_schedule_retries + 1):
        problem = get_problem(db, problem_id, user_id, fresh=True)
        if problem is None:
            raise NotFoundError(f"Problem {problem_id} not found")
        if not force and not is_stale(db, problem):
            return problem, None

        try:
            state = _rebuild_schedule(db, problem)
            if state is not None:
                db.commit()
            else:
                db.rollback()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Schedule rebuild failed for problem {problem_id}")
            raise ScheduleWriteError(f"Could not store rebuilt schedule for problem {problem_id}") from e

        if state is not None:
            db.refresh(problem)
            logger.info(
                f"Reconciled problem {problem_id}: bucket={state.bucket}, "
                f"next_review_at={state.next_review_at}, attempts={state.attempts_folded}"
            )
            return problem, state

        logger.warning(f"Concurrent schedule write on problem {problem_id} during reconcile, retrying")

    raise ConcurrentModificationError(
        f"Problem {problem_id} kept changing during reconcile; retry later",
        problem_id=problem_id
    )


def reconcile_problem(
    db: Session,
    problem_id: int,
    user_id: Optional[int] = None,
    force: bool = False
) -> Problem:
    """
    Rebuild a problem's cached schedule by replaying its attempt history.

    A no-op unless the cache is stale or `force` is set. Safe to repeat.

    Raises:
        NotFoundError: problem missing (or not owned by `user_id`)
        ScheduleWriteError: the rebuilt schedule could not be stored
        ConcurrentModificationError: other writers kept winning the race
    """
    problem, _ = _reconcile(db, problem_id, user_id, force)
    return problem


def reconcile_user(db: Session, user_id: int) -> List[int]:
    """Repair every stale problem of a user. Returns the repaired problem IDs."""
    repaired = []
    for problem in list_problems(db, user_id):
        if is_stale(db, problem):
            reconcile_problem(db, problem.id, user_id)
            repaired.append(problem.id)
    if repaired:
        logger.info(f"Reconciled {len(repaired)} stale problem(s) for user {user_id}")
    return repaired


def record_attempt(
    db: Session,
    user_id: int,
    problem_id: int,
    outcome: str,
    confidence_rating: int,
    time_taken_seconds: Optional[int] = None,
    notes: Optional[str] = None,
    code_snippet: Optional[str] = None,
    now: Optional[datetime] = None,
    timeout: Optional[float] = None
) -> AttemptResult:
    """
    Log a practice attempt and reschedule the problem.

    Args:
        outcome: "Solved", "Failed" or "Hint_Used"
        confidence_rating: 1-5, the only input to the scheduler
        now: Attempt time (naive UTC), defaults to the current time
        timeout: Seconds before the call gives up (default from settings)

    Returns:
        AttemptResult with the new bucket and next review time

    Raises:
        ValidationError: bad input, nothing written
        NotFoundError: problem missing or owned by another user, nothing written
        AttemptWriteError: attempt insert failed, nothing written
        ScheduleWriteError: attempt recorded but schedule update failed
        ConcurrentModificationError: attempt recorded, schedule kept conflicting
        AttemptTimeoutError: deadline passed (see attempt_logged)
    """
    try:
        request = AttemptCreate(
            problem_id=problem_id,
            outcome=outcome,
            confidence_rating=confidence_rating,
            time_taken_seconds=time_taken_seconds,
            notes_markdown=notes,
            code_snippet=code_snippet
        )
    except PydanticValidationError as e:
        raise ValidationError(_format_validation_error(e)) from e

    deadline = _Deadline(settings.attempt_timeout_seconds if timeout is None else timeout)
    now = now or utcnow()

    # 1. Resolve the current bucket from a trustworthy cache
    problem = get_problem(db, problem_id, user_id, fresh=True)
    if problem is None:
        raise NotFoundError(f"Problem {problem_id} not found for user {user_id}")
    if is_stale(db, problem):
        logger.warning(f"Problem {problem_id} has a stale schedule, reconciling before logging")
        problem = reconcile_problem(db, problem_id, user_id)
    current_bucket = problem.srs_bucket
    expected_version = problem.srs_version
    attempts_folded = problem.attempts_folded

    # 2. Attempt first: it must be durable before the schedule moves
    if deadline.expired():
        raise AttemptTimeoutError(f"Timed out before logging attempt on problem {problem_id}", attempt_logged=False)
    try:
        attempt = insert_attempt(db, user_id, request, now)
        attempt_id = attempt.id
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Failed to record attempt on problem {problem_id}")
        raise AttemptWriteError(f"Could not record attempt on problem {problem_id}") from e
    logger.info(f"Recorded attempt {attempt_id} on problem {problem_id} (confidence {request.confidence_rating})")

    # A backdated attempt lands mid-history and must be replayed, not stepped
    if get_latest_attempt_id(db, problem_id) != attempt_id:
        logger.warning(f"Attempt {attempt_id} is not the newest for problem {problem_id}, rebuilding from history")
        return _rebuild_after_attempt(db, problem_id, user_id, attempt_id, deadline)

    # 3. Schedule
    step = srs.advance(current_bucket, request.confidence_rating)
    next_review_at = srs.review_at(now, step.interval_days, settings.max_interval_days)
    difficulty = srs.personal_difficulty(request.confidence_rating)

    # 4. Conditional schedule write
    _check_deadline_after_attempt(deadline, problem_id, attempt_id)
    try:
        applied = update_problem_schedule(
            db,
            problem_id,
            expected_version=expected_version,
            srs_bucket=step.next_bucket,
            next_review_at=next_review_at,
            difficulty_personal=difficulty,
            last_attempt_id=attempt_id,
            attempts_folded=attempts_folded + 1
        )
        if applied:
            db.commit()
        else:
            db.rollback()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Failed to reschedule problem {problem_id} after attempt {attempt_id}")
        raise ScheduleWriteError(
            f"Attempt {attempt_id} was recorded but problem {problem_id} could not be rescheduled",
            attempt_id=attempt_id
        ) from e

    if not applied:
        # Another writer moved the schedule since step 1
        logger.warning(f"Concurrent schedule write on problem {problem_id}, rebuilding from history")
        return _rebuild_after_attempt(db, problem_id, user_id, attempt_id, deadline)

    logger.info(
        f"Problem {problem_id} -> bucket {step.next_bucket} ({step.tier.value}), "
        f"next review {next_review_at:%Y-%m-%d %H:%M}"
    )
    return AttemptResult(
        attempt_id=attempt_id,
        next_bucket=step.next_bucket,
        next_review_at=next_review_at,
        interval_days=step.interval_days,
        personal_difficulty=difficulty
    )


def _check_deadline_after_attempt(deadline: _Deadline, problem_id: int, attempt_id: int) -> None:
    if deadline.expired():
        logger.warning(f"Timed out after logging attempt {attempt_id}; problem {problem_id} left stale")
        raise AttemptTimeoutError(
            f"Timed out before rescheduling problem {problem_id}; attempt {attempt_id} was recorded",
            attempt_logged=True,
            attempt_id=attempt_id
        )


def _rebuild_after_attempt(
    db: Session,
    problem_id: int,
    user_id: int,
    attempt_id: int,
    deadline: _Deadline
) -> AttemptResult:
    _check_deadline_after_attempt(deadline, problem_id, attempt_id)
    try:
        _, state = _reconcile(db, problem_id, user_id, force=True)
    except ConcurrentModificationError as e:
        raise ConcurrentModificationError(
            f"Attempt {attempt_id} was recorded but problem {problem_id} kept changing; retry reconcile",
            problem_id=problem_id,
            attempt_id=attempt_id
        ) from e
    except ScheduleWriteError as e:
        raise ScheduleWriteError(str(e), attempt_id=attempt_id) from e

    return AttemptResult(
        attempt_id=attempt_id,
        next_bucket=state.bucket,
        next_review_at=state.next_review_at,
        interval_days=state.interval_days,
        personal_difficulty=state.personal_difficulty
    )
