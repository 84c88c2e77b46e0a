"""Wager placement: at most one wager per user per bet."""

from dataclasses import replace
from datetime import datetime

from src.bb_betting.domain.models import Bet, BetWager
from src.bb_common.datetime_utils import utc_now
from src.bb_common.enums import DrinkType, MeasureType
from src.bb_common.errors import InvalidStateError, OptionNotFoundError, ValidationError


def validate_amount(amount: object) -> int:
    # bool is an int subclass; True is not a drink count
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError(f"amount must be a positive integer, got {amount!r}")
    return amount


def place_wager(
    bet: Bet,
    user_id: str,
    username: str,
    option_id: str,
    drink_type: DrinkType,
    measure_type: MeasureType,
    amount: int,
    now: datetime | None = None,
) -> Bet:
    """Upsert the user's wager. A previous wager is replaced in place."""
    if bet.is_finished:
        raise InvalidStateError(f"bet {bet.id} is finished, wagers are closed")
    validate_amount(amount)
    if not bet.has_option(option_id):
        raise OptionNotFoundError(bet.id, option_id)

    wager = BetWager(
        user_id=user_id,
        username=username,
        option_id=option_id,
        drink_type=DrinkType(drink_type),
        measure_type=MeasureType(measure_type),
        amount=amount,
        timestamp=now or utc_now(),
    )
    existing = bet.wager_for(user_id)
    if existing is None:
        return replace(bet, wagers=(*bet.wagers, wager))
    return replace(bet, wagers=tuple(wager if w is existing else w for w in bet.wagers))
