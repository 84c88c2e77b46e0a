"""004: create drink_transactions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE drink_transactions (
            id              BIGSERIAL       PRIMARY KEY,
            group_id        VARCHAR(64)     NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            bet_id          VARCHAR(64),
            source          VARCHAR(20)     NOT NULL,
            from_user_id    VARCHAR(64)     NOT NULL,
            from_username   VARCHAR(64)     NOT NULL,
            to_user_id      VARCHAR(64)     NOT NULL,
            to_username     VARCHAR(64)     NOT NULL,
            drink_type      VARCHAR(20)     NOT NULL,
            measure_type    VARCHAR(10)     NOT NULL,
            amount          BIGINT          NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_drink_tx_source CHECK (source IN ('bet', 'distribution')),
            CONSTRAINT ck_drink_tx_amount_gt_0 CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_drink_tx_group_time ON drink_transactions (group_id, created_at, id);")
    op.execute("COMMENT ON TABLE drink_transactions IS 'Append-Only: rows are never updated or deleted except by group cascade';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS drink_transactions CASCADE;")
