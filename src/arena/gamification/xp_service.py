"""XP grant service with idempotency and level-up detection."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from arena.db.models import UserXP, XPLedger
from arena.errors import InvalidAmount, store_errors
from arena.gamification.badges import BADGE_CATALOG, BadgeDefinition, newly_unlocked
from arena.gamification.levels import LEVEL_DEFINITIONS, LevelDefinition, level_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class XPGrant:
    new_total_xp: int
    leveled_up: bool
    new_level: int
    granted: bool = True


class SqlUserXPStore:
    """Atomic XP increments backed by user_xp + xp_ledger."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

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
        """Add amount to the user's total. Returns the new total, or None
        if idempotency_key was already used.
        """
        now = datetime.now(timezone.utc)

        with store_errors("xp"):
            ledger = insert(XPLedger).values(
                user_id=user_id,
                amount=amount,
                source=source,
                source_id=source_id,
                description=description,
                idempotency_key=idempotency_key,
                created_at=now,
            )
            if idempotency_key is not None:
                ledger = ledger.on_conflict_do_nothing(index_elements=["idempotency_key"])
            inserted = await self.db.execute(ledger.returning(XPLedger.id))
            if inserted.scalar_one_or_none() is None:
                await self.db.rollback()
                return None

            # Single-statement upsert: concurrent grants serialize on the row lock
            upsert = (
                insert(UserXP)
                .values(user_id=user_id, total_xp=amount, updated_at=now)
                .on_conflict_do_update(
                    index_elements=[UserXP.user_id],
                    set_={"total_xp": UserXP.total_xp + amount, "updated_at": now},
                )
                .returning(UserXP.total_xp)
            )
            result = await self.db.execute(upsert)
            new_total = int(result.scalar_one())
            await self.db.commit()
        return new_total

    async def get_total(self, user_id: str) -> int:
        with store_errors("xp"):
            result = await self.db.execute(
                select(UserXP.total_xp).where(UserXP.user_id == user_id)
            )
            total = result.scalar_one_or_none()
        return int(total or 0)


async def grant_xp(
    store: object,
    user_id: str,
    amount: int,
    *,
    source: str = "activity",
    source_id: str | None = None,
    description: str | None = None,
    idempotency_key: str | None = None,
    levels: Sequence[LevelDefinition] = LEVEL_DEFINITIONS,
    redis: object | None = None,
) -> XPGrant:
    """Grant XP to a user and report whether the level changed.

    A repeated idempotency_key leaves the total untouched and returns
    granted=False.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        msg = "amount must be a positive integer"
        raise InvalidAmount(msg, field="amount")

    new_total = await store.increment(  # type: ignore[attr-defined]
        user_id,
        amount,
        source=source,
        source_id=source_id,
        description=description,
        idempotency_key=idempotency_key,
    )
    if new_total is None:
        total = await store.get_total(user_id)  # type: ignore[attr-defined]
        return XPGrant(
            new_total_xp=total,
            leveled_up=False,
            new_level=level_for(total, levels).level,
            granted=False,
        )

    before = level_for(new_total - amount, levels)
    after = level_for(new_total, levels)
    leveled_up = after.level > before.level

    if leveled_up:
        await _emit_level_up(redis, user_id, before.level, after.level, after.title)

    return XPGrant(new_total_xp=new_total, leveled_up=leveled_up, new_level=after.level)


async def _emit_level_up(
    redis: object | None,
    user_id: str,
    old_level: int,
    new_level: int,
    title: str,
) -> None:
    """Broadcast a level-up event for activity feeds / overlays."""
    logger.info("User %s reached level %d (%s)", user_id, new_level, title)
    if redis is None:
        return
    try:
        await redis.publish(  # type: ignore[attr-defined]
            "pubsub:level_up",
            json.dumps({
                "user_id": user_id,
                "old_level": old_level,
                "new_level": new_level,
                "title": title,
            }),
        )
    except Exception:
        logger.warning("Failed to publish level_up broadcast", exc_info=True)


async def award_badge_xp(
    store: object,
    user_id: str,
    slugs: Sequence[str],
    *,
    catalog: Sequence[BadgeDefinition] = BADGE_CATALOG,
    levels: Sequence[LevelDefinition] = LEVEL_DEFINITIONS,
    redis: object | None = None,
) -> list[XPGrant]:
    """Grant the XP reward of each newly unlocked badge exactly once."""
    by_slug = {b.slug: b for b in catalog}
    grants = []
    for slug in slugs:
        badge = by_slug.get(slug)
        if badge is None or badge.xp_reward <= 0:
            continue
        grants.append(await grant_xp(
            store,
            user_id,
            badge.xp_reward,
            source="badge",
            source_id=slug,
            description=f'Earned badge: "{badge.name}"',
            idempotency_key=f"badge:{slug}:{user_id}",
            levels=levels,
            redis=redis,
        ))
    return grants


def _progression(total_xp: int, levels: Sequence[LevelDefinition]) -> dict[str, int]:
    return {"total_xp": total_xp, "level": level_for(total_xp, levels).level}


async def settle_badges(
    store: object,
    user_id: str,
    unlocked: Sequence[str],
    *,
    catalog: Sequence[BadgeDefinition] = BADGE_CATALOG,
    levels: Sequence[LevelDefinition] = LEVEL_DEFINITIONS,
    redis: object | None = None,
) -> list[str]:
    """Pay out rewards for unlocked badges and return every badge unlocked.

    Reward XP can itself cross an XP or level threshold; those badges are
    paid and reported too.
    """
    reported = list(unlocked)
    pending = list(unlocked)
    while pending:
        before = await store.get_total(user_id)  # type: ignore[attr-defined]
        await award_badge_xp(store, user_id, pending, catalog=catalog, levels=levels, redis=redis)
        after = await store.get_total(user_id)  # type: ignore[attr-defined]
        pending = [
            slug
            for slug in newly_unlocked(_progression(before, levels), _progression(after, levels), catalog)
            if slug not in reported
        ]
        reported.extend(pending)
    return reported
