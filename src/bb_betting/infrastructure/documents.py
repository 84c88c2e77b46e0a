"""Bet <-> JSON document mapping for the groups.bets JSONB column.

Documents are validated on read: a stored bet that breaks an invariant is an
InternalError, never silently repaired.
"""

from typing import Any

from src.bb_betting.domain.models import Bet, BettingOption, BetWager
from src.bb_common.datetime_utils import parse_utc
from src.bb_common.enums import DrinkType, MeasureType
from src.bb_common.errors import InternalError


def bet_to_document(bet: Bet) -> dict[str, Any]:
    return {
        "id": bet.id,
        "title": bet.title,
        "options": [{"id": o.id, "name": o.name} for o in bet.options],
        "wagers": [
            {
                "user_id": w.user_id,
                "username": w.username,
                "option_id": w.option_id,
                "drink_type": w.drink_type.value,
                "measure_type": w.measure_type.value,
                "amount": w.amount,
                "timestamp": w.timestamp.isoformat(),
            }
            for w in bet.wagers
        ],
        "correct_option_id": bet.correct_option_id,
        "is_finished": bet.is_finished,
        "created_at": bet.created_at.isoformat() if bet.created_at else None,
        "resolved_at": bet.resolved_at.isoformat() if bet.resolved_at else None,
    }


def _wager_from_document(doc: dict[str, Any]) -> BetWager:
    amount = doc["amount"]
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"wager amount must be a positive integer, got {amount!r}")
    return BetWager(
        user_id=str(doc["user_id"]),
        username=str(doc.get("username") or ""),
        option_id=str(doc["option_id"]),
        drink_type=DrinkType(doc["drink_type"]),
        measure_type=MeasureType(doc["measure_type"]),
        amount=amount,
        timestamp=parse_utc(doc["timestamp"]),
    )


def bet_from_document(doc: dict[str, Any], group_id: str) -> Bet:
    try:
        options = tuple(
            BettingOption(id=str(o["id"]), name=str(o["name"])) for o in doc["options"]
        )
        if not options:
            raise ValueError("bet has no options")
        if not str(doc["title"]).strip():
            raise ValueError("bet has an empty title")
        option_ids = {o.id for o in options}
        if len(option_ids) != len(options):
            raise ValueError("duplicate option ids")

        wagers = tuple(_wager_from_document(w) for w in doc.get("wagers") or [])
        if len({w.user_id for w in wagers}) != len(wagers):
            raise ValueError("more than one wager for the same user")

        correct = doc.get("correct_option_id")
        if bool(doc.get("is_finished", correct is not None)) != (correct is not None):
            raise ValueError("is_finished disagrees with correct_option_id")
        if correct is not None and correct not in option_ids:
            raise ValueError(f"correct_option_id {correct} is not an option")

        created_at = doc.get("created_at")
        resolved_at = doc.get("resolved_at")
        return Bet(
            id=str(doc["id"]),
            title=str(doc["title"]),
            options=options,
            wagers=wagers,
            correct_option_id=correct,
            created_at=parse_utc(created_at) if created_at else None,
            resolved_at=parse_utc(resolved_at) if resolved_at else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        bet_id = doc.get("id") if isinstance(doc, dict) else None
        raise InternalError(
            f"Malformed bet document {bet_id} in group {group_id}: {exc}"
        ) from exc
