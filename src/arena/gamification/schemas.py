"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


# --- Levels ---


class LevelEntry(BaseModel):
    level: int
    min_xp: int
    title: str


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]


# --- XP ---


class XPResponse(BaseModel):
    user_id: str
    total_xp: int
    level: int
    level_title: str
    xp_into_level: int
    xp_to_next_level: int | None = None  # None at max level
    next_level: int | None = None


class XPGrantRequest(BaseModel):
    amount: int
    source: str = Field(default="activity", max_length=32)
    source_id: str | None = Field(default=None, max_length=128)
    description: str | None = Field(default=None, max_length=256)
    idempotency_key: str | None = Field(default=None, max_length=256)


class XPGrantResponse(BaseModel):
    user_id: str
    new_total_xp: int
    leveled_up: bool
    new_level: int
    level_title: str
    granted: bool = True
    badges_unlocked: list[str] = []


# --- Badges ---


class BadgeProgressResponse(BaseModel):
    slug: str
    name: str
    category: str
    rarity: str
    unlocked: bool
    current: int
    target: int
    progress_percent: float


class UserBadgesResponse(BaseModel):
    badges: list[BadgeProgressResponse]
    total_earned: int
    total_available: int
