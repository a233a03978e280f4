"""ORM model tests: columns agree with the 001 migration."""

from arena.db.models import FlashcardReviewLog, UserXP, XPLedger


class TestModels:

    def test_ledger_created_at_required(self):
        column = XPLedger.__table__.c.created_at
        assert column.nullable is False
        assert column.server_default is not None

    def test_ledger_idempotency_key_unique(self):
        assert XPLedger.__table__.c.idempotency_key.unique is True

    def test_user_xp_defaults(self):
        assert UserXP.__table__.c.total_xp.nullable is False
        assert UserXP.__table__.c.updated_at.server_default is not None

    def test_review_log_timestamp_required(self):
        assert FlashcardReviewLog.__table__.c.reviewed_at.nullable is False
