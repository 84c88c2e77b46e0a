"""Distribution engine: a winner hands owed drinks out to group members.

Validation covers the whole batch before anything is written: if any unit is
over-requested or any recipient is not a member, nothing happens.
"""

from collections.abc import Collection, Mapping, Sequence
from datetime import datetime

from src.bb_betting.domain.models import BalanceDelta, DistributionItem, DrinkTransaction
from src.bb_betting.domain.wager_ledger import validate_amount
from src.bb_common.datetime_utils import utc_now
from src.bb_common.enums import TransactionSource
from src.bb_common.errors import InsufficientBalanceError, NotMemberError, ValidationError
from src.bb_common.quantities import QuantityMap, sum_by_unit


def validate_distribution(
    group_id: str,
    available: QuantityMap,
    items: Sequence[DistributionItem],
    member_ids: Collection[str],
) -> QuantityMap:
    """Check a batch against the distributor's to_distribute balance.

    Returns the requested totals per unit.
    """
    if not items:
        raise ValidationError("at least one distribution is required")
    for item in items:
        validate_amount(item.amount)

    totals = sum_by_unit((i.drink_type, i.measure_type, i.amount) for i in items)
    for (drink_type, measure_type), requested in totals.items():
        have = available.get(drink_type, measure_type)
        if requested > have:
            raise InsufficientBalanceError(drink_type.value, measure_type.value, requested, have)

    for item in items:
        if item.user_id not in member_ids:
            raise NotMemberError(item.user_id, group_id)
    return totals


def build_distribution(
    from_user_id: str,
    from_username: str,
    items: Sequence[DistributionItem],
    usernames: Mapping[str, str],
    unknown_username: str = "Unknown",
    now: datetime | None = None,
) -> list[tuple[DrinkTransaction, list[BalanceDelta]]]:
    """Per entry: the transaction to append and the two balance changes."""
    timestamp = now or utc_now()
    plan = []
    for item in items:
        tx = DrinkTransaction(
            from_user_id=from_user_id,
            from_username=from_username,
            to_user_id=item.user_id,
            to_username=usernames.get(item.user_id) or unknown_username,
            drink_type=item.drink_type,
            measure_type=item.measure_type,
            amount=item.amount,
            source=TransactionSource.DISTRIBUTION,
            timestamp=timestamp,
        )
        deltas = [
            BalanceDelta(
                user_id=item.user_id,
                drink_type=item.drink_type,
                measure_type=item.measure_type,
                to_consume=item.amount,
            ),
            BalanceDelta(
                user_id=from_user_id,
                drink_type=item.drink_type,
                measure_type=item.measure_type,
                to_distribute=-item.amount,
            ),
        ]
        plan.append((tx, deltas))
    return plan
