"""Pydantic request/response models for leaderboard endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RankingEntryResponse(BaseModel):
    user_id: str
    rank: int
    total_points: int
    delta_from_previous_period: int | None = None  # None = new this period


class LeaderboardResponse(BaseModel):
    scope: str
    value: str | None = None
    window: str
    entries: list[RankingEntryResponse]
    total_count: int
    limit: int
    offset: int


class UserStandingResponse(BaseModel):
    user_id: str
    scope: str
    value: str | None = None
    window: str
    rank: int
    total_points: int
    delta_from_previous_period: int | None = None
    total_count: int
    percentile: float


class ScoreCreateRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    points: int
    subject: str | None = Field(default=None, max_length=64)
    grade: str | None = Field(default=None, max_length=32)
    occurred_at: datetime | None = None


class ScoreResponse(BaseModel):
    user_id: str
    points: int
    subject: str | None = None
    grade: str | None = None
    occurred_at: datetime
    badges_unlocked: list[str] = []
