"""SM-2 style spaced-repetition scheduling.

again  -> restart: repetitions 0, interval 1 day, ease -0.20
hard   -> ease -0.15
medium -> ease unchanged
easy   -> ease +0.10

Successful reviews use 1 day, then 6 days, then previous interval x ease.
Ease never drops below 1.3.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from arena.errors import InvalidRating

DEFAULT_INTERVAL_DAYS = 1.0
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
SECOND_INTERVAL_DAYS = 6.0

EASE_ADJUSTMENTS = {
    "again": -0.2,
    "hard": -0.15,
    "medium": 0.0,
    "easy": 0.1,
}


class Rating(str, Enum):
    AGAIN = "again"
    HARD = "hard"
    MEDIUM = "medium"
    EASY = "easy"


@dataclass(frozen=True)
class FlashcardReviewState:
    card_id: str
    user_id: str
    interval_days: float
    ease_factor: float
    repetitions: int
    due_at: datetime
    last_rating: Rating | None = None
    last_reviewed_at: datetime | None = None


def initial_state(card_id: str, user_id: str, now: datetime) -> FlashcardReviewState:
    """State of a card the user has never reviewed; due immediately."""
    return FlashcardReviewState(
        card_id=card_id,
        user_id=user_id,
        interval_days=DEFAULT_INTERVAL_DAYS,
        ease_factor=DEFAULT_EASE_FACTOR,
        repetitions=0,
        due_at=now,
    )


def parse_rating(value: object) -> Rating:
    if isinstance(value, Rating):
        return value
    try:
        return Rating(value)
    except (ValueError, TypeError):
        msg = "rating must be one of again, hard, medium, easy"
        raise InvalidRating(msg, field="rating") from None


def _adjust_ease(ease: float, rating: Rating) -> float:
    return max(MIN_EASE_FACTOR, round(ease + EASE_ADJUSTMENTS[rating.value], 2))


def _round_days(days: float) -> float:
    # Half-up, so 2.5 days becomes 3 rather than banker's 2
    return float(max(1, math.floor(days + 0.5)))


def schedule(
    state: FlashcardReviewState,
    rating: Rating | str,
    now: datetime,
) -> FlashcardReviewState:
    """Return the state after one review. The input is not modified."""
    rating = parse_rating(rating)
    ease = _adjust_ease(state.ease_factor, rating)

    if rating is Rating.AGAIN:
        repetitions = 0
        interval = DEFAULT_INTERVAL_DAYS
    else:
        repetitions = state.repetitions + 1
        if repetitions == 1:
            interval = DEFAULT_INTERVAL_DAYS
        elif repetitions == 2:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = _round_days(state.interval_days * ease)

    return replace(
        state,
        interval_days=interval,
        ease_factor=ease,
        repetitions=repetitions,
        due_at=now + timedelta(days=interval),
        last_rating=rating,
        last_reviewed_at=now,
    )
