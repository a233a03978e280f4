"""Flashcard review service tests."""

from datetime import datetime, timedelta, timezone

import pytest

from arena.errors import InvalidPagination, InvalidRating
from arena.flashcards.scheduler import Rating, initial_state, schedule
from arena.flashcards.service import due_cards, review_card, review_history

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 10, 21, 9, 0, tzinfo=timezone.utc)


class TestReviewCard:

    async def test_first_review_starts_from_defaults(self, flashcard_store):
        state = await review_card(flashcard_store, "u1", "card-1", "easy", now=NOW)
        assert state.repetitions == 1
        assert state.interval_days == 1.0
        assert state.ease_factor == 2.6
        assert state.due_at == NOW + timedelta(days=1)
        assert await flashcard_store.get("card-1", "u1") == state

    async def test_review_logged_with_rating(self, flashcard_store):
        await review_card(flashcard_store, "u1", "card-1", "hard", now=NOW)
        assert len(flashcard_store.log) == 1
        assert flashcard_store.log[0][1] is Rating.HARD

    async def test_review_builds_on_stored_state(self, flashcard_store):
        await review_card(flashcard_store, "u1", "card-1", "medium", now=NOW)
        state = await review_card(flashcard_store, "u1", "card-1", "medium", now=NOW + timedelta(days=1))
        assert state.repetitions == 2
        assert state.interval_days == 6.0

    async def test_cards_isolated_per_user(self, flashcard_store):
        await review_card(flashcard_store, "u1", "card-1", "easy", now=NOW)
        other = await review_card(flashcard_store, "u2", "card-1", "again", now=NOW)
        assert other.repetitions == 0
        assert (await flashcard_store.get("card-1", "u1")).repetitions == 1

    async def test_invalid_rating_leaves_store_untouched(self, flashcard_store):
        with pytest.raises(InvalidRating):
            await review_card(flashcard_store, "u1", "card-1", "great", now=NOW)
        assert flashcard_store.states == {}
        assert flashcard_store.log == []

    async def test_matches_pure_scheduler(self, flashcard_store):
        state = await review_card(flashcard_store, "u1", "card-9", Rating.AGAIN, now=NOW)
        assert state == schedule(initial_state("card-9", "u1", NOW), Rating.AGAIN, NOW)


class TestDueCards:

    async def test_due_cards_most_overdue_first(self, flashcard_store):
        await review_card(flashcard_store, "u1", "late", "medium", now=NOW - timedelta(days=5))
        await review_card(flashcard_store, "u1", "later", "medium", now=NOW - timedelta(days=3))
        await review_card(flashcard_store, "u1", "future", "medium", now=NOW)
        due = await due_cards(flashcard_store, "u1", now=NOW)
        assert [s.card_id for s in due] == ["late", "later"]

    async def test_due_cards_limit(self, flashcard_store):
        for i in range(5):
            await review_card(flashcard_store, "u1", f"c{i}", "again", now=NOW - timedelta(days=10))
        due = await due_cards(flashcard_store, "u1", now=NOW, limit=3)
        assert len(due) == 3

    @pytest.mark.parametrize("limit", [0, 101, -1])
    async def test_invalid_limit(self, flashcard_store, limit):
        with pytest.raises(InvalidPagination):
            await due_cards(flashcard_store, "u1", now=NOW, limit=limit)


class TestReviewHistory:

    async def test_history_newest_first(self, flashcard_store):
        await review_card(flashcard_store, "u1", "card-1", "medium", now=NOW)
        await review_card(flashcard_store, "u1", "card-1", "again", now=NOW + timedelta(days=1))
        history = await review_history(flashcard_store, "u1", "card-1")
        assert [h["rating"] for h in history] == ["again", "medium"]

    async def test_history_empty_for_unknown_card(self, flashcard_store):
        assert await review_history(flashcard_store, "u1", "nope") == []
