"""Flashcard review API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from arena.config import get_settings
from arena.dependencies import get_flashcard_store, get_redis_dep, get_xp_store
from arena.flashcards import service
from arena.flashcards.scheduler import FlashcardReviewState
from arena.flashcards.schemas import (
    DueCardsResponse,
    FlashcardStateResponse,
    ReviewHistoryEntry,
    ReviewHistoryResponse,
    ReviewRequest,
    ReviewResponse,
)
from arena.gamification.badges import newly_unlocked
from arena.gamification.xp_service import settle_badges

router = APIRouter(prefix="/api/v1", tags=["Flashcards"])


def _state_fields(state: FlashcardReviewState) -> dict:
    return {
        "card_id": state.card_id,
        "user_id": state.user_id,
        "interval_days": state.interval_days,
        "ease_factor": state.ease_factor,
        "repetitions": state.repetitions,
        "due_at": state.due_at,
        "last_rating": state.last_rating.value if state.last_rating else None,
        "last_reviewed_at": state.last_reviewed_at,
    }


@router.post("/flashcards/{card_id}/reviews", response_model=ReviewResponse)
async def submit_review(
    card_id: str,
    body: ReviewRequest,
    store: object = Depends(get_flashcard_store),
    xp_store: object = Depends(get_xp_store),
    redis: object = Depends(get_redis_dep),
) -> ReviewResponse:
    """Rate recall of a card and get its next due time."""
    state = await service.review_card(store, body.user_id, card_id, body.rating)

    reviewed = await store.count_reviews(body.user_id)  # type: ignore[attr-defined]
    unlocked = newly_unlocked({"cards_reviewed": reviewed - 1}, {"cards_reviewed": reviewed})
    if unlocked:
        unlocked = await settle_badges(xp_store, body.user_id, unlocked, redis=redis)

    return ReviewResponse(**_state_fields(state), badges_unlocked=unlocked)


@router.get("/users/{user_id}/flashcards/due", response_model=DueCardsResponse)
async def list_due_cards(
    user_id: str,
    limit: int | None = Query(None),
    store: object = Depends(get_flashcard_store),
) -> DueCardsResponse:
    """Cards due now, most overdue first."""
    if limit is None:
        limit = get_settings().flashcard_due_batch_size
    cards = await service.due_cards(store, user_id, limit=limit)
    return DueCardsResponse(
        cards=[FlashcardStateResponse(**_state_fields(c)) for c in cards],
        count=len(cards),
    )


@router.get(
    "/users/{user_id}/flashcards/{card_id}/history",
    response_model=ReviewHistoryResponse,
)
async def get_review_history(
    user_id: str,
    card_id: str,
    limit: int | None = Query(None),
    store: object = Depends(get_flashcard_store),
) -> ReviewHistoryResponse:
    if limit is None:
        limit = get_settings().flashcard_history_size
    entries = await service.review_history(store, user_id, card_id, limit=limit)
    return ReviewHistoryResponse(
        card_id=card_id,
        user_id=user_id,
        entries=[ReviewHistoryEntry(**e) for e in entries],
    )
