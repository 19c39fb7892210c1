"""
Bucket-based spaced repetition for practice problems.

A simplified SM-2: there is no per-problem easiness factor. Each confident
recall moves a problem one bucket deeper and the interval grows as 2.2^bucket;
a weak recall drops it back to the short end. Confidence ratings (1-5):
    1 - Could not solve it
    2 - Solved only after a long struggle
    3 - Solved with difficulty
    4 - Solved after some hesitation
    5 - Solved cleanly

Everything here is pure. The caller owns the clock and the database.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from fractions import Fraction
from typing import Iterable, Optional, Tuple

from studysheet.errors import ValidationError

MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 5
GROWTH_BASE = Fraction(11, 5)  # 2.2, kept exact

# Largest review time we store; growth past this point stays pinned here
MAX_REVIEW_AT = datetime(9999, 12, 31)


class ReviewTier(str, Enum):
    """Policy branch selected by a confidence rating"""
    RESET = "reset"
    SHORT_BUMP = "short_bump"
    GROW = "grow"


@dataclass(frozen=True)
class ScheduleStep:
    """Result of advancing one bucket state by one attempt"""
    next_bucket: int
    interval_days: int
    tier: ReviewTier


@dataclass(frozen=True)
class ScheduleState:
    """Scheduling state of a problem after folding some attempt history"""
    bucket: int = 0
    next_review_at: Optional[datetime] = None
    personal_difficulty: Optional[int] = None
    interval_days: Optional[int] = None  # interval chosen by the last attempt
    attempts_folded: int = 0


INITIAL_STATE = ScheduleState()


def _check_confidence(confidence_rating: int) -> None:
    if isinstance(confidence_rating, bool) or not isinstance(confidence_rating, int):
        raise ValidationError(f"Confidence rating must be an integer, got {confidence_rating!r}")
    if not MIN_CONFIDENCE <= confidence_rating <= MAX_CONFIDENCE:
        raise ValidationError(
            f"Confidence rating must be between {MIN_CONFIDENCE} and {MAX_CONFIDENCE}, got {confidence_rating}"
        )


def classify_confidence(confidence_rating: int) -> ReviewTier:
    """Map a 1-5 rating onto its policy tier"""
    _check_confidence(confidence_rating)
    if confidence_rating <= 2:
        return ReviewTier.RESET
    if confidence_rating == 3:
        return ReviewTier.SHORT_BUMP
    return ReviewTier.GROW


def growth_interval(bucket: int) -> int:
    """Days until review for a problem that just grew into `bucket`: ceil(2.2^bucket)"""
    return math.ceil(GROWTH_BASE ** bucket)


def advance(current_bucket: int, confidence_rating: int) -> ScheduleStep:
    """
    Compute the next bucket and review interval after one attempt.

    Args:
        current_bucket: Bucket the problem is in before this attempt (>= 0)
        confidence_rating: Self-reported confidence (1-5)

    Returns:
        ScheduleStep with the new bucket, interval in days and the tier used

    Raises:
        ValidationError: rating outside 1-5 or negative bucket
    """
    if isinstance(current_bucket, bool) or not isinstance(current_bucket, int) or current_bucket < 0:
        raise ValidationError(f"Bucket must be a non-negative integer, got {current_bucket!r}")

    tier = classify_confidence(confidence_rating)

    if tier is ReviewTier.RESET:
        return ScheduleStep(next_bucket=0, interval_days=1, tier=tier)

    if tier is ReviewTier.SHORT_BUMP:
        return ScheduleStep(next_bucket=1, interval_days=3, tier=tier)

    if tier is ReviewTier.GROW:
        if current_bucket == 0:
            return ScheduleStep(next_bucket=1, interval_days=3, tier=tier)
        if current_bucket == 1:
            return ScheduleStep(next_bucket=2, interval_days=7, tier=tier)
        next_bucket = current_bucket + 1
        return ScheduleStep(next_bucket=next_bucket, interval_days=growth_interval(next_bucket), tier=tier)

    raise AssertionError(f"Unhandled review tier: {tier}")


def personal_difficulty(confidence_rating: int) -> int:
    """Display-only difficulty (1-10) implied by the latest rating"""
    _check_confidence(confidence_rating)
    return max(1, min(10, 11 - confidence_rating * 2))


def review_at(now: datetime, interval_days: int, max_interval_days: Optional[int] = None) -> datetime:
    """Next review time `interval_days` after `now`, clamped to MAX_REVIEW_AT"""
    days = interval_days if max_interval_days is None else min(interval_days, max_interval_days)
    try:
        return min(now + timedelta(days=days), MAX_REVIEW_AT)
    except OverflowError:
        return MAX_REVIEW_AT


def replay(
    history: Iterable[Tuple[datetime, int]],
    max_interval_days: Optional[int] = None
) -> ScheduleState:
    """
    Rebuild scheduling state by folding `advance` over an attempt history.

    Args:
        history: (timestamp, confidence_rating) pairs, oldest first
        max_interval_days: Optional cap on the day offset, as in review_at

    Returns:
        ScheduleState equal to what logging those attempts one by one produced
    """
    state = INITIAL_STATE
    for timestamp, confidence_rating in history:
        step = advance(state.bucket, confidence_rating)
        state = ScheduleState(
            bucket=step.next_bucket,
            next_review_at=review_at(timestamp, step.interval_days, max_interval_days),
            personal_difficulty=personal_difficulty(confidence_rating),
            interval_days=step.interval_days,
            attempts_folded=state.attempts_folded + 1,
        )
    return state
