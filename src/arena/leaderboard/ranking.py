"""Deterministic leaderboard ranking.

Users ranked by total points DESC, then user_id ASC. Ties share the
lower rank and the next distinct total skips ahead (1, 1, 3).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from arena.errors import InvalidPagination, InvalidScope

SCOPE_LEVELS = ("global", "subject", "grade")
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ScoreRecord:
    user_id: str
    points: int
    timestamp: datetime
    subject: str | None = None
    grade: str | None = None


@dataclass(frozen=True)
class Scope:
    level: str = "global"
    value: str | None = None

    def matches(self, record: ScoreRecord) -> bool:
        if self.level == "subject":
            return record.subject == self.value
        if self.level == "grade":
            return record.grade == self.value
        return True

    @property
    def key(self) -> str:
        return f"{self.level}:{self.value or 'all'}"


@dataclass(frozen=True)
class RankingEntry:
    user_id: str
    rank: int
    total_points: int
    delta_from_previous_period: int | None = None


@dataclass(frozen=True)
class RankingPage:
    entries: list[RankingEntry]
    total_count: int


@dataclass(frozen=True)
class UserStanding:
    user_id: str
    rank: int
    total_points: int
    delta_from_previous_period: int | None
    total_count: int
    percentile: float


def validate_scope(level: str, value: str | None = None) -> Scope:
    """Build a Scope, rejecting unknown levels and missing values.

    The value is ignored for the global scope.
    """
    if level not in SCOPE_LEVELS:
        msg = f"scope must be one of {', '.join(SCOPE_LEVELS)}"
        raise InvalidScope(msg, field="scope")
    if level == "global":
        return Scope("global", None)
    if value is None or not value.strip():
        msg = f"scope value is required for {level} leaderboards"
        raise InvalidScope(msg, field="value")
    return Scope(level, value.strip())


def validate_page(limit: int, offset: int) -> tuple[int, int]:
    if isinstance(limit, bool) or not isinstance(limit, int) or not 0 < limit <= MAX_PAGE_SIZE:
        msg = f"limit must be between 1 and {MAX_PAGE_SIZE}"
        raise InvalidPagination(msg, field="limit")
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        msg = "offset must be a non-negative integer"
        raise InvalidPagination(msg, field="offset")
    return limit, offset


def aggregate_points(records: Iterable[ScoreRecord]) -> dict[str, int]:
    """Sum points per user."""
    totals: dict[str, int] = defaultdict(int)
    for record in records:
        totals[record.user_id] += record.points
    return dict(totals)


def competition_ranks(totals: dict[str, int]) -> list[tuple[str, int, int]]:
    """Order users and assign competition ranks.

    Returns (user_id, rank, total_points) tuples in ranking order.
    """
    ordered = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))

    ranked: list[tuple[str, int, int]] = []
    rank = 0
    prev_points: int | None = None
    for idx, (user_id, points) in enumerate(ordered):
        if points != prev_points:
            rank = idx + 1
            prev_points = points
        ranked.append((user_id, rank, points))
    return ranked


def rank_records(
    records: Iterable[ScoreRecord],
    previous_records: Iterable[ScoreRecord] = (),
) -> list[RankingEntry]:
    """Full ranking with deltas against the previous window.

    delta = current rank - previous rank, so negative means the user
    climbed. None when the user was absent from the previous window.
    """
    previous = {
        user_id: rank
        for user_id, rank, _ in competition_ranks(aggregate_points(previous_records))
    }

    entries = []
    for user_id, rank, points in competition_ranks(aggregate_points(records)):
        prev_rank = previous.get(user_id)
        entries.append(RankingEntry(
            user_id=user_id,
            rank=rank,
            total_points=points,
            delta_from_previous_period=rank - prev_rank if prev_rank is not None else None,
        ))
    return entries


def paginate(entries: list[RankingEntry], limit: int, offset: int) -> RankingPage:
    validate_page(limit, offset)
    return RankingPage(entries=entries[offset:offset + limit], total_count=len(entries))


def rank(
    records: Iterable[ScoreRecord],
    previous_records: Iterable[ScoreRecord] = (),
    limit: int = 50,
    offset: int = 0,
) -> RankingPage:
    """Rank pre-filtered records and return one page."""
    validate_page(limit, offset)
    return paginate(rank_records(records, previous_records), limit, offset)


def calculate_percentile(rank: int, total: int) -> float:
    """Calculate percentile from rank and total participants.

    Rank 1 out of 100 → 99.0 (top 1%)
    Rank 100 out of 100 → 0.0 (bottom)
    """
    if total <= 0 or rank <= 0:
        return 0.0
    return round(100 - (rank / total * 100), 2)


def find_standing(entries: list[RankingEntry], user_id: str) -> UserStanding | None:
    """Locate a user in a full ranking."""
    total = len(entries)
    for entry in entries:
        if entry.user_id == user_id:
            return UserStanding(
                user_id=user_id,
                rank=entry.rank,
                total_points=entry.total_points,
                delta_from_previous_period=entry.delta_from_previous_period,
                total_count=total,
                percentile=calculate_percentile(entry.rank, total),
            )
    return None
