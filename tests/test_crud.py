"""Tests for the problem and attempt repositories."""
from datetime import date, timedelta

from studysheet.attempt_logger import record_attempt
from studysheet.crud import (
    get_grouped_problems,
    get_problem,
    get_problem_history,
    list_user_attempts,
    set_problem_completed,
    update_problem,
)
from studysheet.schemas import ProblemResponse, ProblemUpdate


class TestProblems:

    def test_update_touches_only_given_sheet_columns(self, db, user, make_problem, now):
        problem = make_problem("Two Sum", difficulty="Easy", topic_category="Arrays")
        record_attempt(db, user.id, problem.id, "Solved", 4, now=now)

        updated = update_problem(db, problem.id, user.id, ProblemUpdate(comment="revisit hashing"))

        assert updated.comment == "revisit hashing"
        assert updated.difficulty == "Easy"
        assert updated.srs_bucket == 1
        assert updated.srs_version == 1

    def test_update_other_users_problem(self, db, user, other_user, make_problem):
        problem = make_problem(owner=other_user)
        assert update_problem(db, problem.id, user.id, ProblemUpdate(title="Mine now")) is None

    def test_grouped_by_topic_in_sheet_order(self, db, make_problem):
        make_problem("Clone Graph", topic_category="Graphs", question_number=30)
        make_problem("Two Sum", topic_category="Arrays", question_number=1)
        make_problem("Number of Islands", topic_category="Graphs", question_number=12)
        make_problem("Warm-up")

        grouped = get_grouped_problems(db, make_problem("Jump Game", topic_category="Arrays").user_id)

        assert list(grouped) == ["Arrays", "Graphs", "Uncategorized"]
        assert [p.title for p in grouped["Graphs"]] == ["Number of Islands", "Clone Graph"]
        assert [p.title for p in grouped["Arrays"]] == ["Two Sum", "Jump Game"]

    def test_completion_toggle(self, db, user, make_problem):
        problem = make_problem()

        done = set_problem_completed(db, problem.id, user.id, True, when=date(2026, 3, 1))
        assert done.is_completed
        assert done.completion_date == date(2026, 3, 1)

        undone = set_problem_completed(db, problem.id, user.id, False)
        assert not undone.is_completed
        assert undone.completion_date is None

    def test_response_schema_reads_model(self, db, make_problem):
        problem = make_problem("Two Sum", difficulty="Easy")

        response = ProblemResponse.model_validate(get_problem(db, problem.id))

        assert response.title == "Two Sum"
        assert response.srs_bucket == 0
        assert response.next_review_at is None
        assert response.is_completed is False


class TestAttempts:

    def test_history_newest_first_with_limit(self, db, user, make_problem, now):
        problem = make_problem()
        for days, rating in [(0, 2), (1, 3), (4, 5)]:
            record_attempt(db, user.id, problem.id, "Solved", rating, now=now + timedelta(days=days))

        history = get_problem_history(db, problem.id, limit=2)

        assert [a.confidence_rating for a in history] == [5, 3]

    def test_user_attempts_since(self, db, user, other_user, make_problem, now):
        mine = make_problem()
        theirs = make_problem(owner=other_user)
        record_attempt(db, user.id, mine.id, "Solved", 4, now=now - timedelta(days=10))
        record_attempt(db, user.id, mine.id, "Solved", 4, now=now)
        record_attempt(db, other_user.id, theirs.id, "Failed", 1, now=now)

        assert len(list_user_attempts(db, user.id)) == 2
        assert [a.timestamp for a in list_user_attempts(db, user.id, since=now - timedelta(days=1))] == [now]
