"""Shared FastAPI dependencies: stores bound to the request session."""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import get_session
from arena.flashcards.store import SqlFlashcardStateStore
from arena.gamification.xp_service import SqlUserXPStore
from arena.leaderboard.store import SqlScoreStore
from arena.redis_client import get_redis


async def get_redis_dep() -> AsyncGenerator[object, None]:
    """Yield the Redis client (or None) as a FastAPI dependency."""
    yield get_redis()


def get_score_store(db: AsyncSession = Depends(get_session)) -> SqlScoreStore:  # noqa: B008
    return SqlScoreStore(db)


def get_xp_store(db: AsyncSession = Depends(get_session)) -> SqlUserXPStore:  # noqa: B008
    return SqlUserXPStore(db)


def get_flashcard_store(db: AsyncSession = Depends(get_session)) -> SqlFlashcardStateStore:  # noqa: B008
    return SqlFlashcardStateStore(db)
