"""Leaderboard API endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from arena.config import get_settings
from arena.dependencies import get_redis_dep, get_score_store, get_xp_store
from arena.gamification.badges import newly_unlocked
from arena.gamification.xp_service import settle_badges
from arena.leaderboard import service
from arena.leaderboard.schemas import (
    LeaderboardResponse,
    RankingEntryResponse,
    ScoreCreateRequest,
    ScoreResponse,
    UserStandingResponse,
)
from arena.leaderboard.windows import resolve_timezone

router = APIRouter(prefix="/api/v1", tags=["Leaderboard"])


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    scope: str = Query("global"),
    value: str | None = Query(None),
    window: str = Query("all_time"),
    limit: int | None = Query(None),
    offset: int = Query(0),
    store: object = Depends(get_score_store),
    redis: object = Depends(get_redis_dep),
) -> LeaderboardResponse:
    """Ranked users for a scope (global/subject/grade) and time window."""
    settings = get_settings()
    if limit is None:
        limit = settings.leaderboard_default_page_size

    page = await service.get_leaderboard(
        store,
        scope,
        value,
        window,
        limit,
        offset,
        tz=resolve_timezone(settings.leaderboard_timezone),
        redis=redis,
        cache_ttl=settings.leaderboard_cache_ttl_seconds,
    )
    return LeaderboardResponse(
        scope=scope,
        value=value if scope != "global" else None,
        window=window,
        entries=[RankingEntryResponse(**asdict(e)) for e in page.entries],
        total_count=page.total_count,
        limit=limit,
        offset=offset,
    )


@router.get("/leaderboard/users/{user_id}", response_model=UserStandingResponse)
async def get_user_standing(
    user_id: str,
    scope: str = Query("global"),
    value: str | None = Query(None),
    window: str = Query("all_time"),
    store: object = Depends(get_score_store),
) -> UserStandingResponse:
    """A single user's position, points and percentile."""
    settings = get_settings()
    standing = await service.get_user_standing(
        store,
        user_id,
        scope,
        value,
        window,
        tz=resolve_timezone(settings.leaderboard_timezone),
    )
    if standing is None:
        raise HTTPException(status_code=404, detail="User has no score in this leaderboard")

    return UserStandingResponse(
        scope=scope,
        value=value if scope != "global" else None,
        window=window,
        **asdict(standing),
    )


@router.post("/scores", response_model=ScoreResponse, status_code=201)
async def create_score(
    body: ScoreCreateRequest,
    store: object = Depends(get_score_store),
    xp_store: object = Depends(get_xp_store),
    redis: object = Depends(get_redis_dep),
) -> ScoreResponse:
    """Record one scoring event (completed question, challenge win)."""
    before = await store.total_points(body.user_id)  # type: ignore[attr-defined]
    record = await service.record_score(
        store,
        body.user_id,
        body.points,
        subject=body.subject,
        grade=body.grade,
        timestamp=body.occurred_at,
    )

    after = await store.total_points(body.user_id)  # type: ignore[attr-defined]
    unlocked = newly_unlocked({"total_points": before}, {"total_points": after})
    if unlocked:
        unlocked = await settle_badges(xp_store, body.user_id, unlocked, redis=redis)

    return ScoreResponse(
        user_id=record.user_id,
        points=record.points,
        subject=record.subject,
        grade=record.grade,
        occurred_at=record.timestamp,
        badges_unlocked=unlocked,
    )
