"""Progress numbers for the sheet dashboard: completion, activity and streaks"""
from collections import Counter
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List

from studysheet.models import Attempt, Problem

DIFFICULTY_LEVELS = ["Easy", "Medium", "Hard"]


def _percentage(done: int, total: int) -> int:
    return round(done / total * 100) if total else 0


def _tally(problems: List[Problem]) -> Dict[str, int]:
    done = sum(1 for p in problems if p.is_completed)
    return {"completed": done, "total": len(problems), "percentage": _percentage(done, len(problems))}


def sheet_progress(problems: Iterable[Problem]) -> Dict[str, Any]:
    """
    Completion overall and per difficulty.

    Difficulty is matched case-insensitively; problems with any other
    difficulty only count towards the overall figure.
    """
    problems = list(problems)
    progress = {"overall": _tally(problems)}
    for level in DIFFICULTY_LEVELS:
        matching = [
            p for p in problems
            if p.difficulty and p.difficulty.strip().lower() == level.lower()
        ]
        progress[level.lower()] = _tally(matching)
    return progress


def topic_progress(grouped: Dict[str, List[Problem]]) -> List[Dict[str, Any]]:
    """Completion per topic, in the order topics were given"""
    return [
        {"topic": topic, **_tally(problems)}
        for topic, problems in grouped.items()
    ]


def activity_heatmap(attempts: Iterable[Attempt], today: date, days: int = 365) -> List[Dict[str, Any]]:
    """Attempt count per day for the `days` days ending today, oldest first"""
    start = today - timedelta(days=days - 1)
    counts = Counter(
        a.timestamp.date() for a in attempts
        if start <= a.timestamp.date() <= today
    )
    return [
        {"date": day, "count": counts.get(day, 0)}
        for day in (start + timedelta(days=i) for i in range(days))
    ]


def heat_level(count: int) -> int:
    """Bucket a day's attempt count into intensity 0-4"""
    if count == 0:
        return 0
    if count < 3:
        return 1
    if count < 6:
        return 2
    if count < 10:
        return 3
    return 4


def current_streak(attempt_days: Iterable[date], today: date) -> int:
    """
    Consecutive days with at least one attempt.

    Counts back from today, or from yesterday when nothing has been logged
    today yet, so an unfinished day does not break the streak.
    """
    active = set(attempt_days)
    day = today if today in active else today - timedelta(days=1)
    streak = 0
    while day in active:
        streak += 1
        day -= timedelta(days=1)
    return streak
