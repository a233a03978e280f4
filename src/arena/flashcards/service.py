"""Flashcard review service: load a card state, schedule it and persist."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from arena.errors import InvalidPagination
from arena.flashcards.scheduler import (
    FlashcardReviewState,
    Rating,
    initial_state,
    parse_rating,
    schedule,
)

logger = logging.getLogger(__name__)

MAX_BATCH = 100


def _check_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or not 0 < limit <= MAX_BATCH:
        msg = f"limit must be between 1 and {MAX_BATCH}"
        raise InvalidPagination(msg, field="limit")
    return limit


async def review_card(
    store: object,
    user_id: str,
    card_id: str,
    rating: Rating | str,
    now: datetime | None = None,
) -> FlashcardReviewState:
    """Apply one rating to a card and persist the new schedule.

    The rating is validated before the store is touched.
    """
    parsed = parse_rating(rating)
    if now is None:
        now = datetime.now(timezone.utc)

    state = await store.get(card_id, user_id)  # type: ignore[attr-defined]
    if state is None:
        state = initial_state(card_id, user_id, now)

    new_state = schedule(state, parsed, now)
    await store.put(new_state, parsed)  # type: ignore[attr-defined]

    logger.debug(
        "Card %s for user %s rated %s, next review in %s days",
        card_id, user_id, parsed.value, new_state.interval_days,
    )
    return new_state


async def due_cards(
    store: object,
    user_id: str,
    now: datetime | None = None,
    limit: int = 20,
) -> list[FlashcardReviewState]:
    """Cards due for review, most overdue first."""
    _check_limit(limit)
    if now is None:
        now = datetime.now(timezone.utc)
    return await store.due(user_id, now, limit)  # type: ignore[attr-defined]


async def review_history(
    store: object,
    user_id: str,
    card_id: str,
    limit: int = 50,
) -> list[dict]:
    """Past reviews of one card, newest first."""
    _check_limit(limit)
    return await store.history(card_id, user_id, limit)  # type: ignore[attr-defined]
