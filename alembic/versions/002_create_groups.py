"""002: create groups and group_members tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE groups (
            id              VARCHAR(64)     PRIMARY KEY,
            name            VARCHAR(100)    NOT NULL,
            created_by      VARCHAR(64)     NOT NULL,
            bets            JSONB           NOT NULL DEFAULT '[]'::jsonb,
            version         BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_groups_bets_array CHECK (jsonb_typeof(bets) = 'array'),
            CONSTRAINT ck_groups_version_gte_0 CHECK (version >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_groups_updated_at
        BEFORE UPDATE ON groups
        FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON COLUMN groups.bets IS 'Whole bet sequence; rewritten on every bet change under version check';")

    op.execute("""
        CREATE TABLE group_members (
            group_id        VARCHAR(64)     NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            user_id         VARCHAR(64)     NOT NULL,
            username        VARCHAR(64),
            joined_at       TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (group_id, user_id)
        );
    """)
    op.execute("CREATE INDEX idx_group_members_user ON group_members (user_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS group_members CASCADE;")
    op.execute("DROP TABLE IF EXISTS groups CASCADE;")
