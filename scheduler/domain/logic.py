import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from .enums import DifficultyRating
from ..config import (
    AGAIN_EASE_PENALTY,
    DEFAULT_EASE_FACTOR,
    EASY_BONUS,
    EASY_EASE_BONUS,
    FIRST_INTERVAL_DAYS,
    HARD_EASE_PENALTY,
    HARD_GROWTH,
    MAX_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
)


@dataclass(frozen=True)
class ReviewState:
    interval_days: int
    ease_factor: float
    review_count: int
    next_review_at: datetime

    @classmethod
    def fresh(cls, now: datetime) -> "ReviewState":
        """State of a pair that has never been reviewed."""
        return cls(
            interval_days=0,
            ease_factor=DEFAULT_EASE_FACTOR,
            review_count=0,
            next_review_at=now,
        )

    def is_due(self, now: datetime) -> bool:
        return now >= self.next_review_at


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_ease(ease: float) -> float:
    return round(max(ease, MIN_EASE_FACTOR), 2)


def _cap(interval: int) -> int:
    return max(1, min(interval, MAX_INTERVAL_DAYS))


def next_interval_and_ease(rating: DifficultyRating, interval_days: int, ease_factor: float):
    """Return (interval_days, ease_factor) after ``rating``.

    A card with no current interval (never reviewed, or relearning after
    ``again``) takes the first interval for the rating.
    """
    first = interval_days <= 0

    if rating is DifficultyRating.AGAIN:
        return 0, _clamp_ease(ease_factor - AGAIN_EASE_PENALTY)

    if rating is DifficultyRating.HARD:
        ease = _clamp_ease(ease_factor - HARD_EASE_PENALTY)
        if first:
            return _cap(FIRST_INTERVAL_DAYS["hard"]), ease
        # round() drops float noise such as 5 * 1.2 == 6.000000000000001
        return _cap(math.ceil(round(interval_days * HARD_GROWTH, 6))), ease

    if rating is DifficultyRating.GOOD:
        ease = _clamp_ease(ease_factor)
        if first:
            return _cap(FIRST_INTERVAL_DAYS["good"]), ease
        proposed = _round_half_up(interval_days * ease)
        return _cap(max(proposed, interval_days + 1)), ease

    ease = _clamp_ease(ease_factor + EASY_EASE_BONUS)
    if first:
        return _cap(FIRST_INTERVAL_DAYS["easy"]), ease
    proposed = _round_half_up(interval_days * ease * EASY_BONUS)
    return _cap(max(proposed, interval_days + 1)), ease


def schedule_next(state: ReviewState, rating, now: datetime) -> ReviewState:
    rating = DifficultyRating.parse(rating)
    interval, ease = next_interval_and_ease(rating, state.interval_days, state.ease_factor)
    # Anchored on submission time, not on the previous due date
    return replace(
        state,
        interval_days=interval,
        ease_factor=ease,
        review_count=state.review_count + 1,
        next_review_at=now + timedelta(days=interval),
    )


def interval_label(interval_days: int) -> str:
    return "<1m" if interval_days == 0 else f"{interval_days}d"


def preview_intervals(state: ReviewState) -> dict:
    """Interval each rating would produce from ``state``, keyed by rating value."""
    preview = {}
    for rating in DifficultyRating:
        interval, ease = next_interval_and_ease(rating, state.interval_days, state.ease_factor)
        preview[rating.value] = {
            "interval_days": interval,
            "ease_factor": ease,
            "label": interval_label(interval),
        }
    return preview
