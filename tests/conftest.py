"""Shared test fixtures: in-memory stores standing in for PostgreSQL/Redis."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from arena.dependencies import (
    get_flashcard_store,
    get_redis_dep,
    get_score_store,
    get_xp_store,
)
from arena.flashcards.scheduler import FlashcardReviewState, Rating
from arena.leaderboard.ranking import Scope, ScoreRecord
from arena.main import create_app


class FakeScoreStore:
    def __init__(self, records: list[ScoreRecord] | None = None) -> None:
        self.records = list(records or [])
        self.queries: list[tuple[Scope, datetime | None, datetime]] = []

    async def record(self, record: ScoreRecord) -> None:
        self.records.append(record)

    async def query(self, scope: Scope, start: datetime | None, end: datetime) -> list[ScoreRecord]:
        self.queries.append((scope, start, end))
        return [
            r for r in self.records
            if scope.matches(r) and (start is None or r.timestamp >= start) and r.timestamp < end
        ]

    async def total_points(self, user_id: str) -> int:
        return sum(r.points for r in self.records if r.user_id == user_id)


class FakeXPStore:
    def __init__(self) -> None:
        self.totals: dict[str, int] = {}
        self.ledger: list[dict] = []

    async def increment(
        self,
        user_id: str,
        amount: int,
        *,
        source: str = "activity",
        source_id: str | None = None,
        description: str | None = None,
        idempotency_key: str | None = None,
    ) -> int | None:
        if idempotency_key is not None and any(e["idempotency_key"] == idempotency_key for e in self.ledger):
            return None
        self.ledger.append({
            "user_id": user_id,
            "amount": amount,
            "source": source,
            "source_id": source_id,
            "idempotency_key": idempotency_key,
        })
        self.totals[user_id] = self.totals.get(user_id, 0) + amount
        return self.totals[user_id]

    async def get_total(self, user_id: str) -> int:
        return self.totals.get(user_id, 0)


class FakeFlashcardStore:
    def __init__(self) -> None:
        self.states: dict[tuple[str, str], FlashcardReviewState] = {}
        self.log: list[tuple[FlashcardReviewState, Rating]] = []

    async def get(self, card_id: str, user_id: str) -> FlashcardReviewState | None:
        return self.states.get((card_id, user_id))

    async def put(self, state: FlashcardReviewState, rating: Rating | None = None) -> None:
        self.states[(state.card_id, state.user_id)] = state
        if rating is not None:
            self.log.append((state, rating))

    async def due(self, user_id: str, now: datetime, limit: int) -> list[FlashcardReviewState]:
        due = [s for s in self.states.values() if s.user_id == user_id and s.due_at <= now]
        due.sort(key=lambda s: (s.due_at, s.card_id))
        return due[:limit]

    async def history(self, card_id: str, user_id: str, limit: int) -> list[dict]:
        entries = [
            {
                "rating": rating.value,
                "interval_days": s.interval_days,
                "ease_factor": s.ease_factor,
                "repetitions": s.repetitions,
                "reviewed_at": s.last_reviewed_at,
            }
            for s, rating in self.log
            if s.card_id == card_id and s.user_id == user_id
        ]
        return list(reversed(entries))[:limit]

    async def count_reviews(self, user_id: str) -> int:
        return sum(1 for s, _ in self.log if s.user_id == user_id)


class FakeRedis:
    def __init__(self, fail: bool = False) -> None:
        self.data: dict[str, str] = {}
        self.published: list[tuple[str, str]] = []
        self.fail = fail

    async def get(self, key: str) -> str | None:
        if self.fail:
            raise ConnectionError("redis down")
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.data[key] = value

    async def publish(self, channel: str, message: str) -> int:
        if self.fail:
            raise ConnectionError("redis down")
        self.published.append((channel, message))
        return 1


@pytest.fixture
def score_store() -> FakeScoreStore:
    return FakeScoreStore()


@pytest.fixture
def xp_store() -> FakeXPStore:
    return FakeXPStore()


@pytest.fixture
def flashcard_store() -> FakeFlashcardStore:
    return FakeFlashcardStore()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def client(
    score_store: FakeScoreStore,
    xp_store: FakeXPStore,
    flashcard_store: FakeFlashcardStore,
    fake_redis: FakeRedis,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client with every store swapped for an in-memory fake."""
    app = create_app()
    app.dependency_overrides[get_score_store] = lambda: score_store
    app.dependency_overrides[get_xp_store] = lambda: xp_store
    app.dependency_overrides[get_flashcard_store] = lambda: flashcard_store
    app.dependency_overrides[get_redis_dep] = lambda: fake_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def failing_redis() -> FakeRedis:
    return FakeRedis(fail=True)
