"""PostgreSQL-backed flashcard review state store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from arena.db.models import FlashcardReview, FlashcardReviewLog
from arena.errors import store_errors
from arena.flashcards.scheduler import FlashcardReviewState, Rating


def _to_state(row: FlashcardReview) -> FlashcardReviewState:
    return FlashcardReviewState(
        card_id=row.card_id,
        user_id=row.user_id,
        interval_days=row.interval_days,
        ease_factor=row.ease_factor,
        repetitions=row.repetitions,
        due_at=row.due_at,
        last_rating=Rating(row.last_rating) if row.last_rating else None,
        last_reviewed_at=row.last_reviewed_at,
    )


class SqlFlashcardStateStore:
    """Review state per (card, user) plus the append-only review log."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, card_id: str, user_id: str) -> FlashcardReviewState | None:
        with store_errors("flashcard"):
            result = await self.db.execute(
                select(FlashcardReview).where(
                    FlashcardReview.card_id == card_id,
                    FlashcardReview.user_id == user_id,
                )
            )
            row = result.scalar_one_or_none()
        return _to_state(row) if row is not None else None

    async def put(self, state: FlashcardReviewState, rating: Rating | None = None) -> None:
        """Upsert the state; last writer wins.

        With a rating, the review is appended to the log in the same
        transaction.
        """
        values = {
            "interval_days": state.interval_days,
            "ease_factor": state.ease_factor,
            "repetitions": state.repetitions,
            "due_at": state.due_at,
            "last_rating": state.last_rating.value if state.last_rating else None,
            "last_reviewed_at": state.last_reviewed_at,
        }
        stmt = (
            insert(FlashcardReview)
            .values(card_id=state.card_id, user_id=state.user_id, **values)
            .on_conflict_do_update(
                index_elements=[FlashcardReview.card_id, FlashcardReview.user_id],
                set_=values,
            )
        )
        with store_errors("flashcard"):
            await self.db.execute(stmt)
            if rating is not None:
                self.db.add(FlashcardReviewLog(
                    card_id=state.card_id,
                    user_id=state.user_id,
                    rating=rating.value,
                    interval_days=state.interval_days,
                    ease_factor=state.ease_factor,
                    repetitions=state.repetitions,
                    reviewed_at=state.last_reviewed_at or state.due_at,
                ))
            await self.db.commit()

    async def due(self, user_id: str, now: datetime, limit: int) -> list[FlashcardReviewState]:
        """Cards with due_at <= now, most overdue first."""
        with store_errors("flashcard"):
            result = await self.db.execute(
                select(FlashcardReview)
                .where(FlashcardReview.user_id == user_id, FlashcardReview.due_at <= now)
                .order_by(FlashcardReview.due_at.asc(), FlashcardReview.card_id.asc())
                .limit(limit)
            )
            rows = result.scalars().all()
        return [_to_state(row) for row in rows]

    async def history(self, card_id: str, user_id: str, limit: int) -> list[dict]:
        with store_errors("flashcard"):
            result = await self.db.execute(
                select(FlashcardReviewLog)
                .where(FlashcardReviewLog.card_id == card_id, FlashcardReviewLog.user_id == user_id)
                .order_by(FlashcardReviewLog.reviewed_at.desc(), FlashcardReviewLog.id.desc())
                .limit(limit)
            )
            rows = result.scalars().all()
        return [
            {
                "rating": row.rating,
                "interval_days": row.interval_days,
                "ease_factor": row.ease_factor,
                "repetitions": row.repetitions,
                "reviewed_at": row.reviewed_at,
            }
            for row in rows
        ]

    async def count_reviews(self, user_id: str) -> int:
        with store_errors("flashcard"):
            result = await self.db.execute(
                select(func.count(FlashcardReviewLog.id)).where(FlashcardReviewLog.user_id == user_id)
            )
            return int(result.scalar_one())
