"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from arena.config import get_settings
from arena.database import close_db, init_db
from arena.flashcards.router import router as flashcards_router
from arena.gamification.router import router as gamification_router
from arena.health.router import router as health_router
from arena.leaderboard.router import router as leaderboard_router
from arena.middleware import setup_middleware
from arena.redis_client import close_redis, init_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info("startup_complete", environment=settings.environment)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Study Arena API",
        description="Leaderboards, XP levels and spaced-repetition flashcards for the tutoring app",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(leaderboard_router)
    app.include_router(gamification_router)
    app.include_router(flashcards_router)

    return app


app = create_app()
