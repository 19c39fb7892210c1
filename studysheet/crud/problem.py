from sqlalchemy.orm import Session
from studysheet.models import Problem
from studysheet.schemas import ProblemCreate, ProblemUpdate
from datetime import date, datetime
from typing import Dict, List, Optional

UNCATEGORIZED = "Uncategorized"

def create_problem(db: Session, user_id: int, problem: ProblemCreate) -> Problem:
    """Add a problem to the user's sheet with an empty schedule (due now)"""
    db_problem = Problem(user_id=user_id, **problem.model_dump())
    db.add(db_problem)
    db.commit()
    db.refresh(db_problem)
    return db_problem

def create_problems(db: Session, user_id: int, problems: List[ProblemCreate]) -> List[Problem]:
    """Bulk add problems in a single transaction"""
    db_problems = [Problem(user_id=user_id, **p.model_dump()) for p in problems]
    db.add_all(db_problems)
    db.commit()
    return db_problems

def get_problem(
    db: Session,
    problem_id: int,
    user_id: Optional[int] = None,
    fresh: bool = False
) -> Optional[Problem]:
    """
    Get a problem by ID, optionally only if owned by `user_id`.

    With `fresh`, attributes already loaded in the session are overwritten
    from the database.
    """
    query = db.query(Problem).filter(Problem.id == problem_id)
    if user_id is not None:
        query = query.filter(Problem.user_id == user_id)
    if fresh:
        query = query.populate_existing()
    return query.first()

def list_problems(db: Session, user_id: int) -> List[Problem]:
    """All problems on the user's sheet"""
    return db.query(Problem).filter(
        Problem.user_id == user_id
    ).order_by(Problem.id).all()

def get_grouped_problems(db: Session, user_id: int) -> Dict[str, List[Problem]]:
    """Problems grouped by topic, each group ordered by question number"""
    problems = db.query(Problem).filter(
        Problem.user_id == user_id
    ).order_by(Problem.question_number.asc().nulls_last(), Problem.id).all()
    
    grouped: Dict[str, List[Problem]] = {}
    for problem in problems:
        topic = problem.topic_category or UNCATEGORIZED
        grouped.setdefault(topic, []).append(problem)
    return grouped

def update_problem(db: Session, problem_id: int, user_id: int, changes: ProblemUpdate) -> Optional[Problem]:
    """Edit sheet columns of a problem"""
    db_problem = get_problem(db, problem_id, user_id)
    if db_problem:
        for key, value in changes.model_dump(exclude_unset=True).items():
            setattr(db_problem, key, value)
        db.commit()
        db.refresh(db_problem)
    return db_problem

def set_problem_completed(
    db: Session,
    problem_id: int,
    user_id: int,
    completed: bool,
    when: Optional[date] = None
) -> Optional[Problem]:
    """Tick or untick a problem on the sheet"""
    db_problem = get_problem(db, problem_id, user_id)
    if db_problem:
        db_problem.is_completed = completed
        db_problem.completion_date = (when or date.today()) if completed else None
        db.commit()
        db.refresh(db_problem)
    return db_problem

def update_problem_schedule(
    db: Session,
    problem_id: int,
    expected_version: int,
    srs_bucket: int,
    next_review_at: Optional[datetime],
    difficulty_personal: Optional[int],
    last_attempt_id: Optional[int],
    attempts_folded: int
) -> bool:
    """
    Conditionally write a problem's schedule.
    
    Applies only if the problem's srs_version still equals `expected_version`,
    and bumps the version. Does not commit.
    
    Returns:
        True if the row was updated, False if another writer got there first
    """
    rowcount = db.query(Problem).filter(
        Problem.id == problem_id,
        Problem.srs_version == expected_version
    ).update({
        Problem.srs_bucket: srs_bucket,
        Problem.next_review_at: next_review_at,
        Problem.difficulty_personal: difficulty_personal,
        Problem.last_attempt_id: last_attempt_id,
        Problem.attempts_folded: attempts_folded,
        Problem.srs_version: expected_version + 1,
    }, synchronize_session="fetch")
    return rowcount == 1
