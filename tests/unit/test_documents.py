"""Tests for the groups.bets JSONB document mapping."""

from datetime import UTC, datetime

import pytest

from src.bb_betting.domain.lifecycle import create_bet, resolve_bet
from src.bb_betting.domain.wager_ledger import place_wager
from src.bb_betting.infrastructure.documents import bet_from_document, bet_to_document
from src.bb_common.enums import DrinkType, MeasureType
from src.bb_common.errors import InternalError

T0 = datetime(2026, 3, 1, 20, 0, tzinfo=UTC)


def _resolved_bet():
    bet = create_bet("Coin toss", ["Heads", "Tails"], bet_id="bet_1", now=T0)
    bet = place_wager(bet, "u1", "Alice", "bet_1_0", DrinkType.BEER, MeasureType.SIP, 2, now=T0)
    return resolve_bet(bet, "bet_1_0", now=T0)


def test_document_shape() -> None:
    doc = bet_to_document(_resolved_bet())
    assert doc["is_finished"] is True
    assert doc["correct_option_id"] == "bet_1_0"
    assert doc["options"][1] == {"id": "bet_1_1", "name": "Tails"}
    assert doc["wagers"][0]["drink_type"] == "BEER"
    assert doc["wagers"][0]["timestamp"] == T0.isoformat()


def test_read_back_equals_original() -> None:
    bet = _resolved_bet()
    assert bet_from_document(bet_to_document(bet), "grp_1") == bet


def test_naive_timestamps_read_as_utc() -> None:
    doc = bet_to_document(_resolved_bet())
    doc["created_at"] = "2026-03-01T20:00:00"
    assert bet_from_document(doc, "grp_1").created_at == T0


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.update(options=[]),
        lambda d: d.update(title="   "),
        lambda d: d.update(is_finished=False),
        lambda d: d.update(correct_option_id="bet_1_9"),
        lambda d: d["wagers"].append(dict(d["wagers"][0])),
        lambda d: d["wagers"][0].update(amount=0),
        lambda d: d["wagers"][0].update(drink_type="MEAD"),
        lambda d: d.pop("title"),
    ],
)
def test_malformed_documents_raise_internal_error(mutate) -> None:
    doc = bet_to_document(_resolved_bet())
    mutate(doc)
    with pytest.raises(InternalError):
        bet_from_document(doc, "grp_1")
