"""003: create drink_balances table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE drink_balances (
            group_id        VARCHAR(64)     NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            user_id         VARCHAR(64)     NOT NULL,
            drink_type      VARCHAR(20)     NOT NULL,
            measure_type    VARCHAR(10)     NOT NULL,
            to_consume      BIGINT          NOT NULL DEFAULT 0,
            to_distribute   BIGINT          NOT NULL DEFAULT 0,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (group_id, user_id, drink_type, measure_type),
            CONSTRAINT ck_balances_drink_type CHECK (
                drink_type IN ('BEER', 'CIDER', 'HARD_SELTZER', 'WINE', 'SPIRIT')
            ),
            CONSTRAINT ck_balances_measure_type CHECK (
                measure_type IN ('SIP', 'SHOT', 'CHUG')
            ),
            CONSTRAINT ck_balances_consume_gte_0 CHECK (to_consume >= 0),
            CONSTRAINT ck_balances_distribute_gte_0 CHECK (to_distribute >= 0)
        );
    """)
    op.execute("COMMENT ON TABLE drink_balances IS 'Authoritative owed-drink ledger per group, user and drink unit';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS drink_balances CASCADE;")
