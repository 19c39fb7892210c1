from sqlalchemy.orm import Session
from studysheet.models import Attempt
from studysheet.schemas import AttemptCreate
from datetime import datetime
from typing import List, Optional

def insert_attempt(db: Session, user_id: int, attempt: AttemptCreate, timestamp: datetime) -> Attempt:
    """Stage a new attempt and assign its ID. Does not commit."""
    db_attempt = Attempt(
        user_id=user_id,
        problem_id=attempt.problem_id,
        timestamp=timestamp,
        outcome=attempt.outcome.value,
        confidence_rating=attempt.confidence_rating,
        time_taken_seconds=attempt.time_taken_seconds,
        notes_markdown=attempt.notes_markdown,
        code_snippet=attempt.code_snippet
    )
    db.add(db_attempt)
    db.flush()
    return db_attempt

def list_attempts(db: Session, problem_id: int) -> List[Attempt]:
    """Attempt history of a problem, oldest first"""
    return db.query(Attempt).filter(
        Attempt.problem_id == problem_id
    ).order_by(Attempt.timestamp.asc(), Attempt.id.asc()).all()

def get_latest_attempt_id(db: Session, problem_id: int) -> Optional[int]:
    """ID of the newest attempt in history order, None if never attempted"""
    row = db.query(Attempt.id).filter(
        Attempt.problem_id == problem_id
    ).order_by(Attempt.timestamp.desc(), Attempt.id.desc()).first()
    return row[0] if row else None

def count_attempts(db: Session, problem_id: int) -> int:
    """Number of attempts logged for a problem"""
    return db.query(Attempt).filter(Attempt.problem_id == problem_id).count()

def get_problem_history(db: Session, problem_id: int, limit: Optional[int] = None) -> List[Attempt]:
    """Attempts for a problem, newest first"""
    query = db.query(Attempt).filter(
        Attempt.problem_id == problem_id
    ).order_by(Attempt.timestamp.desc(), Attempt.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()

def list_user_attempts(db: Session, user_id: int, since: Optional[datetime] = None) -> List[Attempt]:
    """All attempts by a user, oldest first"""
    query = db.query(Attempt).filter(Attempt.user_id == user_id)
    if since is not None:
        query = query.filter(Attempt.timestamp >= since)
    return query.order_by(Attempt.timestamp.asc(), Attempt.id.asc()).all()
