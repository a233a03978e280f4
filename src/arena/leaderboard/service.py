"""Leaderboard service: fetch and rank score events, cache pages.

Ranking itself is pure (see ranking.py). This layer resolves the time
windows, pulls score records from the store and keeps a short-lived copy
of each page in Redis.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone, tzinfo

import structlog

from arena.errors import InvalidAmount
from arena.leaderboard.ranking import (
    RankingEntry,
    RankingPage,
    Scope,
    ScoreRecord,
    UserStanding,
    find_standing,
    paginate,
    rank_records,
    validate_page,
    validate_scope,
)
from arena.leaderboard.windows import (
    current_window,
    previous_window,
    validate_window,
    window_key,
)

logger = structlog.get_logger()


def build_cache_key(scope: Scope, window: str, period_key: str, limit: int, offset: int) -> str:
    """Build Redis key for one cached leaderboard page."""
    return f"leaderboard:{scope.key}:{window}:{period_key}:{offset}:{limit}"


async def _fetch_ranking(
    store: object,
    scope: Scope,
    window: str,
    now: datetime,
    tz: tzinfo,
) -> list[RankingEntry]:
    bounds = current_window(window, now, tz)
    prev_bounds = previous_window(window, now, tz)

    current = await store.query(scope, bounds.start, bounds.end)  # type: ignore[attr-defined]
    previous = await store.query(scope, prev_bounds.start, prev_bounds.end)  # type: ignore[attr-defined]

    return rank_records(
        [r for r in current if scope.matches(r) and bounds.contains(r.timestamp)],
        [r for r in previous if scope.matches(r) and prev_bounds.contains(r.timestamp)],
    )


async def _read_cache(redis: object, key: str) -> RankingPage | None:
    try:
        raw = await redis.get(key)  # type: ignore[attr-defined]
    except Exception:
        logger.warning("leaderboard_cache_read_failed", key=key, exc_info=True)
        return None
    if raw is None:
        return None
    try:
        data = json.loads(raw)
        return RankingPage(
            entries=[RankingEntry(**e) for e in data["entries"]],
            total_count=data["total_count"],
        )
    except (ValueError, KeyError, TypeError):
        logger.warning("leaderboard_cache_entry_invalid", key=key, exc_info=True)
        return None


async def _write_cache(redis: object, key: str, page: RankingPage, ttl: int) -> None:
    payload = json.dumps({
        "entries": [asdict(e) for e in page.entries],
        "total_count": page.total_count,
    })
    try:
        await redis.set(key, payload, ex=ttl)  # type: ignore[attr-defined]
    except Exception:
        logger.warning("leaderboard_cache_write_failed", key=key, exc_info=True)


async def get_leaderboard(
    store: object,
    scope_level: str,
    scope_value: str | None,
    window: str,
    limit: int = 50,
    offset: int = 0,
    *,
    now: datetime | None = None,
    tz: tzinfo = timezone.utc,
    redis: object | None = None,
    cache_ttl: int = 0,
) -> RankingPage:
    """Get one page of the leaderboard for a scope and window."""
    scope = validate_scope(scope_level, scope_value)
    validate_window(window)
    validate_page(limit, offset)
    if now is None:
        now = datetime.now(timezone.utc)

    key = build_cache_key(scope, window, window_key(window, now, tz), limit, offset)
    use_cache = redis is not None and cache_ttl > 0
    if use_cache:
        cached = await _read_cache(redis, key)
        if cached is not None:
            return cached

    entries = await _fetch_ranking(store, scope, window, now, tz)
    page = paginate(entries, limit, offset)
    logger.debug(
        "leaderboard_ranked",
        scope=scope.key,
        window=window,
        total=page.total_count,
    )

    if use_cache:
        await _write_cache(redis, key, page, cache_ttl)
    return page


async def get_user_standing(
    store: object,
    user_id: str,
    scope_level: str,
    scope_value: str | None,
    window: str,
    *,
    now: datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> UserStanding | None:
    """Get a specific user's rank, points and percentile."""
    scope = validate_scope(scope_level, scope_value)
    validate_window(window)
    if now is None:
        now = datetime.now(timezone.utc)

    entries = await _fetch_ranking(store, scope, window, now, tz)
    return find_standing(entries, user_id)


def _clean_label(value: str | None) -> str | None:
    """Strip a subject/grade label the way validate_scope strips query values."""
    if value is None:
        return None
    return value.strip() or None


async def record_score(
    store: object,
    user_id: str,
    points: int,
    subject: str | None = None,
    grade: str | None = None,
    timestamp: datetime | None = None,
) -> ScoreRecord:
    """Persist one scoring event."""
    if isinstance(points, bool) or not isinstance(points, int) or points < 0:
        msg = "points must be a non-negative integer"
        raise InvalidAmount(msg, field="points")

    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    elif timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    record = ScoreRecord(
        user_id=user_id,
        points=points,
        timestamp=timestamp,
        subject=_clean_label(subject),
        grade=_clean_label(grade),
    )
    await store.record(record)  # type: ignore[attr-defined]
    logger.info("score_recorded", user_id=user_id, points=points, subject=record.subject)
    return record
