"""Bet state machine: OPEN <-> RESOLVED.

Pure functions over Bet values. Persisting the resulting bet sequence (and
the version check that goes with it) is the application service's job.
"""

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

from src.bb_betting.domain.models import Bet, BettingOption
from src.bb_common.datetime_utils import utc_now
from src.bb_common.errors import BetNotFoundError, OptionNotFoundError, ValidationError
from src.bb_common.id_generator import new_bet_id


def option_id_for(bet_id: str, index: int) -> str:
    return f"{bet_id}_{index}"


def _clean_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("bet title must not be empty")
    return cleaned


def _build_options(bet_id: str, option_names: Sequence[str]) -> tuple[BettingOption, ...]:
    if not option_names:
        raise ValidationError("a bet needs at least one option")
    options = []
    for index, name in enumerate(option_names):
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError(f"option #{index + 1} has an empty name")
        options.append(BettingOption(id=option_id_for(bet_id, index), name=cleaned))
    return tuple(options)


def create_bet(
    title: str,
    option_names: Sequence[str],
    bet_id: str | None = None,
    now: datetime | None = None,
) -> Bet:
    bet_id = bet_id or new_bet_id()
    return Bet(
        id=bet_id,
        title=_clean_title(title),
        options=_build_options(bet_id, option_names),
        created_at=now or utc_now(),
    )


def edit_bet(bet: Bet, title: str, option_names: Sequence[str]) -> Bet:
    """Replace title and options. Wagers and resolution are left alone.

    Option ids are positional, so renaming keeps wager references intact while
    shrinking the list can orphan wagers on the dropped options.
    """
    options = _build_options(bet.id, option_names)
    if bet.correct_option_id is not None and bet.correct_option_id not in {o.id for o in options}:
        raise ValidationError(
            f"bet {bet.id} is resolved on option {bet.correct_option_id}; "
            "reopen it before removing that option"
        )
    return replace(bet, title=_clean_title(title), options=options)


def resolve_bet(bet: Bet, option_id: str, now: datetime | None = None) -> Bet:
    if not bet.has_option(option_id):
        raise OptionNotFoundError(bet.id, option_id)
    if bet.correct_option_id == option_id:
        return bet
    return replace(bet, correct_option_id=option_id, resolved_at=now or utc_now())


def reopen_bet(bet: Bet) -> Bet:
    if not bet.is_finished:
        return bet
    return replace(bet, correct_option_id=None, resolved_at=None)


def find_bet(bets: Sequence[Bet], bet_id: str) -> Bet:
    for bet in bets:
        if bet.id == bet_id:
            return bet
    raise BetNotFoundError(bet_id)


def replace_bet(bets: Sequence[Bet], updated: Bet) -> list[Bet]:
    """Swap in `updated` at the position of the bet with the same id."""
    find_bet(bets, updated.id)
    return [updated if b.id == updated.id else b for b in bets]


def remove_bet(bets: Sequence[Bet], bet_id: str) -> list[Bet]:
    find_bet(bets, bet_id)
    return [b for b in bets if b.id != bet_id]
