"""Leaderboard service tests: window filtering, scopes, caching."""

from datetime import datetime, timedelta, timezone

import pytest

from arena.errors import InvalidAmount, InvalidPagination, InvalidScope, InvalidWindow
from arena.leaderboard.ranking import Scope, ScoreRecord
from arena.leaderboard.service import (
    build_cache_key,
    get_leaderboard,
    get_user_standing,
    record_score,
)

pytestmark = pytest.mark.asyncio

UTC = timezone.utc
NOW = datetime(2026, 10, 21, 15, 0, tzinfo=UTC)  # Wednesday


def _rec(user_id, points, ts, subject=None, grade=None):
    return ScoreRecord(user_id=user_id, points=points, timestamp=ts, subject=subject, grade=grade)


class ExplodingStore:
    """Fails the test if the service reaches the store."""

    async def query(self, *args, **kwargs):
        raise AssertionError("store must not be queried")

    async def record(self, *args, **kwargs):
        raise AssertionError("store must not be written")


@pytest.fixture
def seeded(score_store):
    score_store.records.extend([
        # This week
        _rec("A", 100, NOW - timedelta(hours=1), subject="Math", grade="10"),
        _rec("B", 100, NOW - timedelta(days=1), subject="Math", grade="11"),
        _rec("C", 80, NOW - timedelta(days=2), subject="Physics", grade="10"),
        # Last week
        _rec("C", 500, NOW - timedelta(days=8), subject="Math", grade="10"),
        _rec("A", 10, NOW - timedelta(days=9), subject="Math", grade="10"),
    ])
    return score_store


class TestGetLeaderboard:

    async def test_week_window(self, seeded):
        page = await get_leaderboard(seeded, "global", None, "week", now=NOW)
        assert [(e.user_id, e.rank, e.total_points) for e in page.entries] == [
            ("A", 1, 100),
            ("B", 1, 100),
            ("C", 3, 80),
        ]
        by_user = {e.user_id: e.delta_from_previous_period for e in page.entries}
        # Last week: C rank 1, A rank 2, B absent
        assert by_user == {"A": -1, "B": None, "C": 2}

    async def test_today_window(self, seeded):
        page = await get_leaderboard(seeded, "global", None, "today", now=NOW)
        assert [e.user_id for e in page.entries] == ["A"]
        assert page.entries[0].delta_from_previous_period is None

    async def test_all_time_window(self, seeded):
        page = await get_leaderboard(seeded, "global", None, "all_time", now=NOW)
        assert [(e.user_id, e.total_points) for e in page.entries] == [
            ("C", 580),
            ("A", 110),
            ("B", 100),
        ]

    async def test_future_records_excluded(self, seeded):
        seeded.records.append(_rec("Z", 9999, NOW + timedelta(minutes=5)))
        page = await get_leaderboard(seeded, "global", None, "all_time", now=NOW)
        assert "Z" not in [e.user_id for e in page.entries]

    async def test_subject_scope(self, seeded):
        page = await get_leaderboard(seeded, "subject", "Math", "week", now=NOW)
        assert [e.user_id for e in page.entries] == ["A", "B"]
        assert page.total_count == 2

    async def test_grade_scope(self, seeded):
        page = await get_leaderboard(seeded, "grade", "10", "all_time", now=NOW)
        assert [(e.user_id, e.total_points) for e in page.entries] == [("C", 580), ("A", 110)]

    async def test_scope_refilters_store_results(self, seeded):
        # A store that ignores the scope must not leak other subjects
        async def sloppy_query(scope, start, end):
            return list(seeded.records)

        seeded.query = sloppy_query
        page = await get_leaderboard(seeded, "subject", "Physics", "week", now=NOW)
        assert [e.user_id for e in page.entries] == ["C"]

    async def test_empty_store(self, score_store):
        page = await get_leaderboard(score_store, "global", None, "month", now=NOW)
        assert page.entries == []
        assert page.total_count == 0

    async def test_pagination(self, seeded):
        page = await get_leaderboard(seeded, "global", None, "all_time", limit=1, offset=1, now=NOW)
        assert [e.user_id for e in page.entries] == ["A"]
        assert page.total_count == 3

    async def test_local_timezone_window(self, score_store):
        tz = timezone(timedelta(hours=-5))
        # 06:00 UTC on the 20th is still the local day of a 23:00 local now
        score_store.records.append(_rec("A", 5, datetime(2026, 10, 20, 6, 0, tzinfo=UTC)))
        now = datetime(2026, 10, 21, 4, 0, tzinfo=UTC)
        page = await get_leaderboard(score_store, "global", None, "today", now=now, tz=tz)
        assert [e.user_id for e in page.entries] == ["A"]


class TestValidation:

    async def test_invalid_scope_before_store(self):
        with pytest.raises(InvalidScope):
            await get_leaderboard(ExplodingStore(), "subject", None, "week", now=NOW)

    async def test_invalid_window_before_store(self):
        with pytest.raises(InvalidWindow):
            await get_leaderboard(ExplodingStore(), "global", None, "decade", now=NOW)

    async def test_invalid_limit_before_store(self):
        with pytest.raises(InvalidPagination):
            await get_leaderboard(ExplodingStore(), "global", None, "week", limit=500, now=NOW)

    async def test_negative_points_rejected(self):
        with pytest.raises(InvalidAmount) as exc_info:
            await record_score(ExplodingStore(), "u1", -3)
        assert exc_info.value.field == "points"


class TestCaching:

    async def test_page_written_to_cache(self, seeded, fake_redis):
        await get_leaderboard(seeded, "global", None, "week", now=NOW, redis=fake_redis, cache_ttl=10)
        assert list(fake_redis.data) == ["leaderboard:global:all:week:2026-W43:0:50"]

    async def test_cache_hit_skips_store(self, seeded, fake_redis):
        first = await get_leaderboard(seeded, "global", None, "week", now=NOW, redis=fake_redis, cache_ttl=10)
        queries = len(seeded.queries)
        second = await get_leaderboard(seeded, "global", None, "week", now=NOW, redis=fake_redis, cache_ttl=10)
        assert second == first
        assert len(seeded.queries) == queries

    async def test_cache_disabled_with_zero_ttl(self, seeded, fake_redis):
        await get_leaderboard(seeded, "global", None, "week", now=NOW, redis=fake_redis, cache_ttl=0)
        assert fake_redis.data == {}

    async def test_cache_failure_falls_back_to_store(self, seeded, failing_redis):
        page = await get_leaderboard(seeded, "global", None, "week", now=NOW, redis=failing_redis, cache_ttl=10)
        assert page.total_count == 3

    async def test_cache_key_includes_scope_and_page(self):
        key = build_cache_key(Scope("subject", "Math"), "month", "2026-10", 20, 40)
        assert key == "leaderboard:subject:Math:month:2026-10:40:20"


class TestUserStanding:

    async def test_standing(self, seeded):
        standing = await get_user_standing(seeded, "C", "global", None, "week", now=NOW)
        assert standing.rank == 3
        assert standing.total_points == 80
        assert standing.delta_from_previous_period == 2
        assert standing.total_count == 3
        assert standing.percentile == 0.0

    async def test_unranked_user(self, seeded):
        assert await get_user_standing(seeded, "nobody", "global", None, "week", now=NOW) is None


class TestRecordScore:

    async def test_record(self, score_store):
        record = await record_score(score_store, "u1", 40, subject="Math", timestamp=NOW)
        assert score_store.records == [record]
        assert record.subject == "Math"
        assert record.grade is None

    async def test_naive_timestamp_treated_as_utc(self, score_store):
        record = await record_score(score_store, "u1", 1, timestamp=datetime(2026, 10, 21, 8, 0))
        assert record.timestamp == datetime(2026, 10, 21, 8, 0, tzinfo=UTC)

    async def test_zero_points_allowed(self, score_store):
        record = await record_score(score_store, "u1", 0)
        assert record.points == 0
        assert record.timestamp.tzinfo is not None

    async def test_blank_subject_stored_as_none(self, score_store):
        record = await record_score(score_store, "u1", 5, subject="", grade="")
        assert record.subject is None
        assert record.grade is None

    async def test_labels_stripped(self, score_store):
        record = await record_score(score_store, "u1", 5, subject=" Math ", grade="10 ")
        assert record.subject == "Math"
        assert record.grade == "10"
        page = await get_leaderboard(score_store, "subject", "Math", "all_time")
        assert page.total_count == 1

    async def test_whitespace_only_label_stored_as_none(self, score_store):
        record = await record_score(score_store, "u1", 5, subject="   ")
        assert record.subject is None


class TestCorruptCache:

    @pytest.mark.parametrize("raw", [
        "not json",
        '{"entries": []}',
        '{"entries": [{"user": "A"}], "total_count": 1}',
        "[1, 2]",
    ])
    async def test_unreadable_entry_falls_back_to_store(self, seeded, fake_redis, raw):
        key = build_cache_key(Scope("global"), "week", "2026-W43", 50, 0)
        fake_redis.data[key] = raw
        page = await get_leaderboard(seeded, "global", None, "week", now=NOW, redis=fake_redis, cache_ttl=10)
        assert page.total_count == 3
        # Rewritten with a good entry
        assert fake_redis.data[key] != raw
