from studysheet.crud.user import create_user, get_user
from studysheet.crud.problem import (
    create_problem,
    create_problems,
    get_problem,
    list_problems,
    get_grouped_problems,
    update_problem,
    set_problem_completed,
    update_problem_schedule
)
from studysheet.crud.attempt import (
    insert_attempt,
    list_attempts,
    get_latest_attempt_id,
    count_attempts,
    get_problem_history,
    list_user_attempts
)

__all__ = [
    "create_user",
    "get_user",
    "create_problem",
    "create_problems",
    "get_problem",
    "list_problems",
    "get_grouped_problems",
    "update_problem",
    "set_problem_completed",
    "update_problem_schedule",
    "insert_attempt",
    "list_attempts",
    "get_latest_attempt_id",
    "count_attempts",
    "get_problem_history",
    "list_user_attempts"
]
