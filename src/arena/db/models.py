"""ORM models for the learning tables.

Tables are created by the Alembic migration in alembic/versions.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from arena.db.base import Base


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------


class ScoreEvent(Base):
    """Immutable scoring event: one row per completed activity."""

    __tablename__ = "score_events"
    __table_args__ = (
        Index("idx_score_events_occurred", "occurred_at"),
        Index("idx_score_events_subject", "subject", "occurred_at"),
        Index("idx_score_events_grade", "grade", "occurred_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(64), nullable=True)
    grade: Mapped[str | None] = mapped_column(String(32), nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# XP
# ---------------------------------------------------------------------------


class UserXP(Base):
    """Running XP total: single row per user, incremented atomically."""

    __tablename__ = "user_xp"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    total_xp: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


class XPLedger(Base):
    """Immutable XP transaction log with idempotency key."""

    __tablename__ = "xp_ledger"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))
    idempotency_key: Mapped[str | None] = mapped_column(String(256), unique=True, nullable=True)


# ---------------------------------------------------------------------------
# Flashcards
# ---------------------------------------------------------------------------


class FlashcardReview(Base):
    """Current spaced-repetition state per (card, user)."""

    __tablename__ = "flashcard_review_states"
    __table_args__ = (
        Index("idx_flashcard_states_due", "user_id", "due_at"),
    )

    card_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    interval_days: Mapped[float] = mapped_column(Float, nullable=False, server_default="1")
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False, server_default="2.5")
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_rating: Mapped[str | None] = mapped_column(String(8), nullable=True)
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class FlashcardReviewLog(Base):
    """Append-only review history."""

    __tablename__ = "flashcard_review_log"
    __table_args__ = (
        Index("idx_flashcard_log_card_user", "card_id", "user_id", "reviewed_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    card_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    rating: Mapped[str] = mapped_column(String(8), nullable=False)
    interval_days: Mapped[float] = mapped_column(Float, nullable=False)
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False)
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False)
    reviewed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
