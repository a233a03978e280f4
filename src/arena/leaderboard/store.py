"""PostgreSQL-backed score store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.db.models import ScoreEvent
from arena.errors import store_errors
from arena.leaderboard.ranking import Scope, ScoreRecord


class SqlScoreStore:
    """Reads and appends score events for one session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def record(self, record: ScoreRecord) -> None:
        with store_errors("score"):
            self.db.add(ScoreEvent(
                user_id=record.user_id,
                subject=record.subject,
                grade=record.grade,
                points=record.points,
                occurred_at=record.timestamp,
            ))
            await self.db.commit()

    async def query(
        self,
        scope: Scope,
        start: datetime | None,
        end: datetime,
    ) -> list[ScoreRecord]:
        """Score events matching scope with start <= occurred_at < end."""
        query = select(ScoreEvent).where(ScoreEvent.occurred_at < end)
        if start is not None:
            query = query.where(ScoreEvent.occurred_at >= start)
        if scope.level == "subject":
            query = query.where(ScoreEvent.subject == scope.value)
        elif scope.level == "grade":
            query = query.where(ScoreEvent.grade == scope.value)

        with store_errors("score"):
            result = await self.db.execute(query)
            rows = result.scalars().all()

        return [
            ScoreRecord(
                user_id=row.user_id,
                points=row.points,
                timestamp=row.occurred_at,
                subject=row.subject,
                grade=row.grade,
            )
            for row in rows
        ]

    async def total_points(self, user_id: str) -> int:
        with store_errors("score"):
            result = await self.db.execute(
                select(func.coalesce(func.sum(ScoreEvent.points), 0))
                .where(ScoreEvent.user_id == user_id)
            )
            return int(result.scalar_one())
