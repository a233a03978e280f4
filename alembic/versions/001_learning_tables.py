"""Learning tables.

Creates score_events, user_xp, xp_ledger, flashcard_review_states and
flashcard_review_log.

Revision ID: 001_learning_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_learning_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Score events (leaderboards) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS score_events (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            subject VARCHAR(64),
            grade VARCHAR(32),
            points INTEGER NOT NULL CHECK (points >= 0),
            occurred_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_score_events_occurred
        ON score_events(occurred_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_score_events_subject
        ON score_events(subject, occurred_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_score_events_grade
        ON score_events(grade, occurred_at)
    """)

    # --- XP ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_xp (
            user_id VARCHAR(64) PRIMARY KEY,
            total_xp BIGINT NOT NULL DEFAULT 0 CHECK (total_xp >= 0),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS xp_ledger (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            amount INTEGER NOT NULL CHECK (amount > 0),
            source VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            description VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            idempotency_key VARCHAR(256) UNIQUE
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_xp_ledger_user_id
        ON xp_ledger(user_id)
    """)

    # --- Flashcards ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS flashcard_review_states (
            card_id VARCHAR(64) NOT NULL,
            user_id VARCHAR(64) NOT NULL,
            interval_days DOUBLE PRECISION NOT NULL DEFAULT 1 CHECK (interval_days > 0),
            ease_factor DOUBLE PRECISION NOT NULL DEFAULT 2.5 CHECK (ease_factor >= 1.3),
            repetitions INTEGER NOT NULL DEFAULT 0,
            due_at TIMESTAMPTZ NOT NULL,
            last_rating VARCHAR(8),
            last_reviewed_at TIMESTAMPTZ,
            PRIMARY KEY (card_id, user_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_flashcard_states_due
        ON flashcard_review_states(user_id, due_at)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS flashcard_review_log (
            id BIGSERIAL PRIMARY KEY,
            card_id VARCHAR(64) NOT NULL,
            user_id VARCHAR(64) NOT NULL,
            rating VARCHAR(8) NOT NULL,
            interval_days DOUBLE PRECISION NOT NULL,
            ease_factor DOUBLE PRECISION NOT NULL,
            repetitions INTEGER NOT NULL,
            reviewed_at TIMESTAMPTZ NOT NULL
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_flashcard_log_card_user
        ON flashcard_review_log(card_id, user_id, reviewed_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_flashcard_review_log_user_id
        ON flashcard_review_log(user_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS flashcard_review_log CASCADE")
    op.execute("DROP TABLE IF EXISTS flashcard_review_states CASCADE")
    op.execute("DROP TABLE IF EXISTS xp_ledger CASCADE")
    op.execute("DROP TABLE IF EXISTS user_xp CASCADE")
    op.execute("DROP TABLE IF EXISTS score_events CASCADE")
