from typing import Optional


class StudySheetError(Exception):
    """Base class for all review-scheduling errors"""
    retryable = False


class ValidationError(StudySheetError):
    """Rejected input: rating outside 1-5, missing fields, malformed rows"""


class NotFoundError(StudySheetError):
    """Record missing or not owned by the requesting user"""


class PersistenceError(StudySheetError):
    """A database write failed"""

    def __init__(self, message: str, attempt_id: Optional[int] = None):
        super().__init__(message)
        self.attempt_id = attempt_id


class AttemptWriteError(PersistenceError):
    """Attempt insert failed. Nothing was persisted."""
    retryable = True


class ScheduleWriteError(PersistenceError):
    """
    Schedule update failed after the attempt was recorded.

    The attempt is durable and the problem's schedule is stale until
    reconciliation replays its history.
    """


class ConcurrentModificationError(StudySheetError):
    """Another writer changed the problem's schedule in between read and write"""
    retryable = True

    def __init__(self, message: str, problem_id: int, attempt_id: Optional[int] = None):
        super().__init__(message)
        self.problem_id = problem_id
        self.attempt_id = attempt_id


class AttemptTimeoutError(StudySheetError):
    """The caller's deadline expired before the attempt was fully logged"""
    retryable = True

    def __init__(self, message: str, attempt_logged: bool, attempt_id: Optional[int] = None):
        super().__init__(message)
        self.attempt_logged = attempt_logged
        self.attempt_id = attempt_id


class ImmutableRecordError(StudySheetError):
    """Attempt records are history and cannot be edited or deleted"""
