"""Tests for dashboard progress numbers."""
from datetime import date, datetime, timedelta

from studysheet.models import Attempt, Problem
from studysheet.stats import activity_heatmap, current_streak, heat_level, sheet_progress, topic_progress

TODAY = date(2026, 3, 2)


def _problem(difficulty, done=False):
    return Problem(title="P", difficulty=difficulty, is_completed=done)


def _attempt(when):
    return Attempt(timestamp=when, confidence_rating=3, outcome="Solved")


class TestSheetProgress:

    def test_overall_and_per_difficulty(self):
        problems = [
            _problem("Easy", done=True),
            _problem("easy"),
            _problem(" MEDIUM ", done=True),
            _problem("Hard"),
            _problem(None, done=True),
        ]

        progress = sheet_progress(problems)

        assert progress["overall"] == {"completed": 3, "total": 5, "percentage": 60}
        assert progress["easy"] == {"completed": 1, "total": 2, "percentage": 50}
        assert progress["medium"] == {"completed": 1, "total": 1, "percentage": 100}
        assert progress["hard"] == {"completed": 0, "total": 1, "percentage": 0}

    def test_empty_sheet(self):
        progress = sheet_progress([])
        assert progress["overall"] == {"completed": 0, "total": 0, "percentage": 0}


def test_topic_progress_keeps_topic_order():
    grouped = {
        "Graphs": [_problem("Hard", done=True), _problem("Hard")],
        "Arrays": [_problem("Easy")],
    }

    rows = topic_progress(grouped)

    assert [r["topic"] for r in rows] == ["Graphs", "Arrays"]
    assert rows[0]["percentage"] == 50
    assert rows[1]["completed"] == 0


class TestActivityHeatmap:

    def test_counts_per_day_oldest_first(self):
        noon = datetime(2026, 3, 2, 12, 0)
        attempts = [
            _attempt(noon),
            _attempt(noon.replace(hour=1)),
            _attempt(noon - timedelta(days=2)),
            _attempt(noon - timedelta(days=30)),
        ]

        heatmap = activity_heatmap(attempts, TODAY, days=7)

        assert len(heatmap) == 7
        assert heatmap[0]["date"] == TODAY - timedelta(days=6)
        assert heatmap[-1] == {"date": TODAY, "count": 2}
        assert heatmap[-3] == {"date": TODAY - timedelta(days=2), "count": 1}
        assert sum(d["count"] for d in heatmap) == 3


def test_heat_levels():
    assert [heat_level(c) for c in [0, 1, 2, 3, 5, 6, 9, 10, 40]] == [0, 1, 1, 2, 2, 3, 3, 4, 4]


class TestCurrentStreak:

    def test_counts_consecutive_days_ending_today(self):
        days = [TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=2), TODAY - timedelta(days=4)]
        assert current_streak(days, TODAY) == 3

    def test_unfinished_today_does_not_break_streak(self):
        days = [TODAY - timedelta(days=1), TODAY - timedelta(days=2)]
        assert current_streak(days, TODAY) == 2

    def test_gap_before_yesterday_ends_streak(self):
        assert current_streak([TODAY - timedelta(days=2)], TODAY) == 0

    def test_duplicate_days_count_once(self):
        assert current_streak([TODAY, TODAY, TODAY], TODAY) == 1
