"""Tests for review queue selection and ordering."""
from datetime import timedelta

from studysheet.attempt_logger import record_attempt
from studysheet.crud import get_problem
from studysheet.due_queue import days_overdue, due_count, due_queue, is_due, select_due
from studysheet.models import Problem


def _problem(problem_id, next_review_at=None):
    return Problem(id=problem_id, title=f"P{problem_id}", next_review_at=next_review_at)


class TestSelectDue:

    def test_membership(self, now):
        never = _problem(1)
        overdue = _problem(2, now - timedelta(days=2))
        exactly_now = _problem(3, now)
        future = _problem(4, now + timedelta(seconds=1))

        queue = select_due([never, overdue, exactly_now, future], now)

        assert [p.id for p in queue] == [1, 2, 3]
        assert all(is_due(p, now) for p in queue)
        assert not is_due(future, now)

    def test_never_reviewed_first_then_oldest(self, now):
        problems = [
            _problem(1, now - timedelta(days=1)),
            _problem(2, now - timedelta(days=30)),
            _problem(3),
            _problem(4, now - timedelta(hours=1)),
            _problem(5),
        ]

        queue = select_due(problems, now)

        assert [p.id for p in queue] == [3, 5, 2, 1, 4]

    def test_ties_broken_by_id(self, now):
        same = now - timedelta(days=1)
        problems = [_problem(9, same), _problem(4, same), _problem(7), _problem(2)]

        assert [p.id for p in select_due(problems, now)] == [2, 7, 4, 9]

    def test_never_reviewed_ahead_for_any_clock(self, now):
        problems = [_problem(1, now - timedelta(days=365 * 50)), _problem(2)]

        for clock in [now, now + timedelta(days=365 * 100)]:
            assert select_due(problems, clock)[0].id == 2

    def test_limit(self, now):
        problems = [_problem(i) for i in range(1, 6)]
        assert [p.id for p in select_due(problems, now, limit=2)] == [1, 2]
        assert select_due(problems, now, limit=0) == []
        assert len(select_due(problems, now, limit=None)) == 5

    def test_empty(self, now):
        assert select_due([], now) == []


class TestDaysOverdue:

    def test_values(self, now):
        assert days_overdue(_problem(1), now) == 0
        assert days_overdue(_problem(2, now + timedelta(days=2)), now) == 0
        assert days_overdue(_problem(3, now - timedelta(days=4, hours=3)), now) == 4


class TestDueQueue:

    def test_reads_only_the_users_problems(self, db, user, other_user, make_problem, now):
        mine = make_problem("Two Sum")
        make_problem("Three Sum", owner=other_user)

        assert [p.id for p in due_queue(db, user.id, now)] == [mine.id]
        assert due_count(db, user.id, now) == 1

    def test_idempotent_without_new_attempts(self, db, user, make_problem, now):
        problems = [make_problem(f"Problem {i}") for i in range(4)]
        record_attempt(db, user.id, problems[1].id, "Solved", 1, now=now - timedelta(days=3))
        record_attempt(db, user.id, problems[2].id, "Solved", 1, now=now - timedelta(days=5))

        first = [p.id for p in due_queue(db, user.id, now)]
        second = [p.id for p in due_queue(db, user.id, now)]

        assert first == second == [problems[0].id, problems[3].id, problems[2].id, problems[1].id]

    def test_scheduled_problem_leaves_and_returns(self, db, user, make_problem, now):
        problem = make_problem()
        result = record_attempt(db, user.id, problem.id, "Solved", 4, now=now)

        assert due_count(db, user.id, now + timedelta(days=2)) == 0
        assert due_count(db, user.id, result.next_review_at) == 1

    def test_queue_is_read_only(self, db, user, make_problem, now):
        problem = make_problem()
        result = record_attempt(db, user.id, problem.id, "Solved", 4, now=now - timedelta(days=5))

        due_queue(db, user.id, now)
        due_count(db, user.id, now)

        assert not db.dirty
        stored = get_problem(db, problem.id, fresh=True)
        assert stored.srs_version == 1
        assert stored.srs_bucket == result.next_bucket
        assert stored.next_review_at == result.next_review_at
