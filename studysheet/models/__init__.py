from studysheet.models.user import User
from studysheet.models.problem import Problem
from studysheet.models.attempt import Attempt, AttemptOutcome

__all__ = [
    "User",
    "Problem",
    "Attempt",
    "AttemptOutcome"
]
