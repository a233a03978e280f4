"""Gamification API endpoints for levels, XP and badge progress."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from arena.dependencies import (
    get_flashcard_store,
    get_redis_dep,
    get_score_store,
    get_xp_store,
)
from arena.gamification.badges import evaluate_badges, newly_unlocked
from arena.gamification.levels import LEVEL_DEFINITIONS, level_for
from arena.gamification.schemas import (
    AllLevelsResponse,
    BadgeProgressResponse,
    LevelEntry,
    UserBadgesResponse,
    XPGrantRequest,
    XPGrantResponse,
    XPResponse,
)
from arena.gamification.xp_service import grant_xp, settle_badges

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


@router.get("/levels", response_model=AllLevelsResponse)
async def list_levels() -> AllLevelsResponse:
    """Get all level definitions."""
    return AllLevelsResponse(
        levels=[
            LevelEntry(level=lvl.level, min_xp=lvl.min_xp, title=lvl.title)
            for lvl in LEVEL_DEFINITIONS
        ]
    )


@router.get("/users/{user_id}/xp", response_model=XPResponse)
async def get_user_xp(
    user_id: str,
    xp_store: object = Depends(get_xp_store),
) -> XPResponse:
    """Get a user's XP and level progress."""
    total = await xp_store.get_total(user_id)  # type: ignore[attr-defined]
    info = level_for(total)
    return XPResponse(
        user_id=user_id,
        total_xp=total,
        level=info.level,
        level_title=info.title,
        xp_into_level=info.xp_into_level,
        xp_to_next_level=info.xp_to_next_level,
        next_level=info.next_level,
    )


@router.post("/users/{user_id}/xp", response_model=XPGrantResponse)
async def post_user_xp(
    user_id: str,
    body: XPGrantRequest,
    xp_store: object = Depends(get_xp_store),
    redis: object = Depends(get_redis_dep),
) -> XPGrantResponse:
    """Grant XP; reports level-ups and any progression badges unlocked."""
    grant = await grant_xp(
        xp_store,
        user_id,
        body.amount,
        source=body.source,
        source_id=body.source_id,
        description=body.description,
        idempotency_key=body.idempotency_key,
        redis=redis,
    )

    if not grant.granted:
        return XPGrantResponse(
            user_id=user_id,
            new_total_xp=grant.new_total_xp,
            leveled_up=False,
            new_level=grant.new_level,
            level_title=level_for(grant.new_total_xp).title,
            granted=False,
        )

    old_total = grant.new_total_xp - body.amount
    unlocked = newly_unlocked(
        {"total_xp": old_total, "level": level_for(old_total).level},
        {"total_xp": grant.new_total_xp, "level": grant.new_level},
    )

    # Badge rewards stack on top of the grant itself
    unlocked = await settle_badges(xp_store, user_id, unlocked, redis=redis)
    final_total = await xp_store.get_total(user_id) if unlocked else grant.new_total_xp  # type: ignore[attr-defined]

    final = level_for(final_total)
    return XPGrantResponse(
        user_id=user_id,
        new_total_xp=final_total,
        leveled_up=final.level > level_for(old_total).level,
        new_level=final.level,
        level_title=final.title,
        badges_unlocked=unlocked,
    )


@router.get("/users/{user_id}/badges", response_model=UserBadgesResponse)
async def get_user_badges(
    user_id: str,
    xp_store: object = Depends(get_xp_store),
    score_store: object = Depends(get_score_store),
    flashcard_store: object = Depends(get_flashcard_store),
) -> UserBadgesResponse:
    """Unlock status and progress for every badge."""
    total_xp = await xp_store.get_total(user_id)  # type: ignore[attr-defined]
    metrics = {
        "total_xp": total_xp,
        "level": level_for(total_xp).level,
        "cards_reviewed": await flashcard_store.count_reviews(user_id),  # type: ignore[attr-defined]
        "total_points": await score_store.total_points(user_id),  # type: ignore[attr-defined]
    }
    progress = evaluate_badges(metrics)
    return UserBadgesResponse(
        badges=[BadgeProgressResponse(**asdict(p)) for p in progress],
        total_earned=sum(1 for p in progress if p.unlocked),
        total_available=len(progress),
    )
