# tests/unit/test_ledger_persistence.py
"""Unit tests for DrinkLedgerRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bb_betting.domain.models import BalanceDelta, DrinkTransaction
from src.bb_betting.infrastructure.persistence import DrinkLedgerRepository
from src.bb_common.enums import DrinkType, MeasureType, TransactionSource
from src.bb_common.errors import InsufficientBalanceError

BEER, SIP = DrinkType.BEER, MeasureType.SIP


def _result(rows=None, one=None):
    result = MagicMock()
    result.fetchall.return_value = rows or []
    result.fetchone.return_value = one
    return result


def _balance_row(drink, measure, consume, distribute):
    row = MagicMock()
    row.drink_type = drink
    row.measure_type = measure
    row.to_consume = consume
    row.to_distribute = distribute
    return row


@pytest.fixture
def db():
    return MagicMock()


class TestGetBalance:
    @pytest.mark.asyncio
    async def test_builds_quantity_maps(self, db):
        db.execute = AsyncMock(return_value=_result(rows=[
            _balance_row("BEER", "SIP", 1, 5),
            _balance_row("WINE", "SHOT", 0, 2),
        ]))
        balance = await DrinkLedgerRepository().get_balance(db, "grp_1", "u1")
        assert balance.drinks_to_consume.to_nested() == {"BEER": {"SIP": 1}}
        assert balance.drinks_to_distribute.to_nested() == {"BEER": {"SIP": 5}, "WINE": {"SHOT": 2}}


class TestApplyDelta:
    @pytest.mark.asyncio
    async def test_credit_uses_upsert(self, db):
        db.execute = AsyncMock(return_value=_result(one=MagicMock()))
        delta = BalanceDelta("u1", BEER, SIP, to_distribute=3)

        await DrinkLedgerRepository().apply_delta(db, "grp_1", delta)

        sql = str(db.execute.call_args.args[0])
        assert "ON CONFLICT" in sql
        assert db.execute.call_args.args[1]["to_distribute"] == 3

    @pytest.mark.asyncio
    async def test_debit_uses_guarded_update(self, db):
        db.execute = AsyncMock(return_value=_result(one=MagicMock()))
        await DrinkLedgerRepository().apply_delta(
            db, "grp_1", BalanceDelta("u1", BEER, SIP, to_distribute=-2)
        )
        sql = str(db.execute.call_args.args[0])
        assert "UPDATE drink_balances" in sql
        assert ">= 0" in sql

    @pytest.mark.asyncio
    async def test_debit_over_balance_raises(self, db):
        current = MagicMock()
        current.to_consume = 0
        current.to_distribute = 1
        db.execute = AsyncMock(side_effect=[_result(one=None), _result(one=current)])

        with pytest.raises(InsufficientBalanceError) as exc:
            await DrinkLedgerRepository().apply_delta(
                db, "grp_1", BalanceDelta("u1", BEER, SIP, to_distribute=-2)
            )
        assert "required 2" in exc.value.message
        assert "available 1" in exc.value.message

    @pytest.mark.asyncio
    async def test_debit_without_row_raises(self, db):
        db.execute = AsyncMock(side_effect=[_result(one=None), _result(one=None)])
        with pytest.raises(InsufficientBalanceError):
            await DrinkLedgerRepository().apply_delta(
                db, "grp_1", BalanceDelta("u1", BEER, SIP, to_consume=-1)
            )


class TestTransactions:
    @pytest.mark.asyncio
    async def test_append_returns_persisted_row(self, db):
        now = datetime.now(UTC)
        row = MagicMock()
        row.id = 42
        row.bet_id = None
        row.from_user_id, row.from_username = "u1", "One"
        row.to_user_id, row.to_username = "u2", "Two"
        row.drink_type, row.measure_type = "BEER", "SIP"
        row.amount = 2
        row.source = "distribution"
        row.created_at = now
        db.execute = AsyncMock(return_value=_result(one=row))

        tx = DrinkTransaction(
            from_user_id="u1", from_username="One", to_user_id="u2", to_username="Two",
            drink_type=BEER, measure_type=SIP, amount=2,
            source=TransactionSource.DISTRIBUTION, timestamp=now,
        )
        stored = await DrinkLedgerRepository().append_transaction(db, "grp_1", tx)

        assert stored.id == 42
        assert stored == DrinkTransaction(**{**tx.__dict__, "id": 42})
        assert db.execute.call_args.args[1]["source"] == "distribution"
