"""Tests for distribution validation and planning."""

from datetime import UTC, datetime

import pytest

from src.bb_betting.domain.distribution import build_distribution, validate_distribution
from src.bb_betting.domain.models import DistributionItem
from src.bb_common.enums import DrinkType, MeasureType, TransactionSource
from src.bb_common.errors import InsufficientBalanceError, NotMemberError, ValidationError
from src.bb_common.quantities import QuantityMap

BEER, WINE = DrinkType.BEER, DrinkType.WINE
SIP, SHOT = MeasureType.SIP, MeasureType.SHOT
MEMBERS = {"alice", "bob", "carol"}


def _item(user_id: str, amount: int, drink=BEER, measure=SIP) -> DistributionItem:
    return DistributionItem(user_id=user_id, drink_type=drink, measure_type=measure, amount=amount)


class TestValidateDistribution:
    def test_totals_per_unit(self) -> None:
        available = QuantityMap({(BEER, SIP): 5, (WINE, SHOT): 1})
        totals = validate_distribution(
            "g", available, [_item("bob", 2), _item("carol", 3), _item("bob", 1, WINE, SHOT)], MEMBERS
        )
        assert totals.get(BEER, SIP) == 5
        assert totals.get(WINE, SHOT) == 1

    def test_sum_over_balance_rejected_even_if_each_entry_fits(self) -> None:
        available = QuantityMap({(BEER, SIP): 5})
        with pytest.raises(InsufficientBalanceError) as exc:
            validate_distribution("g", available, [_item("bob", 3), _item("carol", 3)], MEMBERS)
        assert exc.value.drink_type == "BEER"
        assert exc.value.measure_type == "SIP"

    def test_unit_never_won(self) -> None:
        with pytest.raises(InsufficientBalanceError):
            validate_distribution("g", QuantityMap({(BEER, SIP): 5}), [_item("bob", 1, WINE, SHOT)], MEMBERS)

    def test_non_member_recipient(self) -> None:
        with pytest.raises(NotMemberError):
            validate_distribution("g", QuantityMap({(BEER, SIP): 5}), [_item("mallory", 1)], MEMBERS)

    def test_balance_checked_before_membership(self) -> None:
        with pytest.raises(InsufficientBalanceError):
            validate_distribution("g", QuantityMap(), [_item("mallory", 1)], MEMBERS)

    def test_empty_batch(self) -> None:
        with pytest.raises(ValidationError):
            validate_distribution("g", QuantityMap({(BEER, SIP): 5}), [], MEMBERS)

    @pytest.mark.parametrize("amount", [0, -2])
    def test_non_positive_amount(self, amount) -> None:
        with pytest.raises(ValidationError):
            validate_distribution("g", QuantityMap({(BEER, SIP): 5}), [_item("bob", amount)], MEMBERS)


class TestBuildDistribution:
    def test_one_transaction_and_two_deltas_per_entry(self) -> None:
        now = datetime(2026, 3, 2, tzinfo=UTC)
        plan = build_distribution(
            "alice", "Alice", [_item("bob", 2), _item("carol", 3)],
            {"bob": "Bob"}, unknown_username="Unknown", now=now,
        )
        assert len(plan) == 2

        tx, deltas = plan[0]
        assert (tx.from_user_id, tx.to_user_id, tx.to_username, tx.amount) == ("alice", "bob", "Bob", 2)
        assert tx.source == TransactionSource.DISTRIBUTION
        assert tx.bet_id is None
        assert tx.timestamp == now
        assert [(d.user_id, d.to_consume, d.to_distribute) for d in deltas] == [
            ("bob", 2, 0),
            ("alice", 0, -2),
        ]

        tx, _ = plan[1]
        assert tx.to_username == "Unknown"
