"""Pydantic request/response models for flashcard endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ReviewRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    rating: str  # again | hard | medium | easy


class FlashcardStateResponse(BaseModel):
    card_id: str
    user_id: str
    interval_days: float
    ease_factor: float
    repetitions: int
    due_at: datetime
    last_rating: str | None = None
    last_reviewed_at: datetime | None = None


class ReviewResponse(FlashcardStateResponse):
    badges_unlocked: list[str] = []


class DueCardsResponse(BaseModel):
    cards: list[FlashcardStateResponse]
    count: int


class ReviewHistoryEntry(BaseModel):
    rating: str
    interval_days: float
    ease_factor: float
    repetitions: int
    reviewed_at: datetime


class ReviewHistoryResponse(BaseModel):
    card_id: str
    user_id: str
    entries: list[ReviewHistoryEntry]
