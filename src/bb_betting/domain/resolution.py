"""Resolution engine.

Views of a resolved bet:

* `compute_group_stats`: the leaderboard projection. Winners count their own
  stake as drinks to hand out, losers their own stake as drinks to drink, and
  every losing stake shows up once as a loser -> winner transaction.
* `settlement_postings` / `net_postings`: what the persisted balance ledger
  must change by. Postings mirror the transactions, so per drink unit the
  losers' to_consume increase always equals the winners' to_distribute one.
* `settlement_transactions`: the append-only audit rows for that change.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

from src.bb_betting.domain.models import (
    BalanceDelta,
    Bet,
    BetWager,
    DrinkTransaction,
    MemberDrinkStats,
)
from src.bb_common.datetime_utils import utc_now
from src.bb_common.enums import DrinkType, MeasureType, TransactionSource

logger = logging.getLogger(__name__)

_PostingKey = tuple[str, DrinkType, MeasureType]


def split_wagers(bet: Bet) -> tuple[list[BetWager], list[BetWager]]:
    """(winners, losers) of a finished bet, orphaned wagers excluded."""
    if not bet.is_finished:
        return [], []
    valid = bet.option_ids
    winners: list[BetWager] = []
    losers: list[BetWager] = []
    for wager in bet.wagers:
        if wager.option_id not in valid:
            continue
        if wager.option_id == bet.correct_option_id:
            winners.append(wager)
        else:
            losers.append(wager)
    return winners, losers


def bet_transactions(bet: Bet) -> list[DrinkTransaction]:
    """One loser -> winner transaction per losing wager.

    The transfer is denominated in the winner's drink unit with the loser's
    amount. Losers are dealt to winners round-robin in wager order.
    """
    winners, losers = split_wagers(bet)
    if not winners:
        return []
    timestamp = bet.resolved_at
    transactions = []
    for index, loser in enumerate(losers):
        winner = winners[index % len(winners)]
        transactions.append(
            DrinkTransaction(
                from_user_id=loser.user_id,
                from_username=loser.username,
                to_user_id=winner.user_id,
                to_username=winner.username,
                drink_type=winner.drink_type,
                measure_type=winner.measure_type,
                amount=loser.amount,
                source=TransactionSource.BET,
                timestamp=timestamp or loser.timestamp,
                bet_id=bet.id,
            )
        )
    return transactions


def compute_group_stats(
    member_ids: Sequence[str],
    bets: Sequence[Bet],
    distribution_history: Sequence[DrinkTransaction],
    usernames: dict[str, str] | None = None,
    unknown_username: str = "Unknown",
) -> list[MemberDrinkStats]:
    """Per-member stats over every finished bet plus the distribution history.

    Pure: reads its arguments only. Result is sorted by total_drinks_received,
    descending, ties in member order.
    """
    names = dict(usernames or {})
    stats: dict[str, MemberDrinkStats] = {}

    def entry(user_id: str, username: str | None = None) -> MemberDrinkStats:
        if username and not names.get(user_id):
            names[user_id] = username
        if user_id not in stats:
            stats[user_id] = MemberDrinkStats(user_id=user_id, username=names.get(user_id) or "")
        return stats[user_id]

    for user_id in member_ids:
        entry(user_id)

    for bet in bets:
        if not bet.is_finished:
            continue
        orphaned = bet.orphaned_wagers()
        if orphaned:
            logger.warning(
                "Bet %s has %d orphaned wager(s), excluded from stats: users=%s",
                bet.id, len(orphaned), [w.user_id for w in orphaned],
            )
        winners, losers = split_wagers(bet)
        for wager in winners:
            s = entry(wager.user_id, wager.username)
            s.wins += 1
            s.drinks_to_distribute.add(wager.drink_type, wager.measure_type, wager.amount)
            s.total_drinks_received += wager.amount
        for wager in losers:
            s = entry(wager.user_id, wager.username)
            s.drinks_to_consume.add(wager.drink_type, wager.measure_type, wager.amount)
            s.total_drinks_lost += wager.amount
        for tx in bet_transactions(bet):
            entry(tx.to_user_id, tx.to_username).transactions.append(tx)

    for tx in distribution_history:
        if tx.source != TransactionSource.DISTRIBUTION:
            continue
        s = entry(tx.to_user_id, tx.to_username)
        s.total_drinks_received += tx.amount
        s.transactions.append(tx)

    for s in stats.values():
        s.username = s.username or names.get(s.user_id) or unknown_username

    # sorted() is stable, so ties keep member order
    return sorted(stats.values(), key=lambda s: s.total_drinks_received, reverse=True)


def settlement_postings(bet: Bet | None) -> dict[_PostingKey, tuple[int, int]]:
    """(to_consume, to_distribute) increments a resolved bet puts on the ledger."""
    postings: dict[_PostingKey, tuple[int, int]] = {}
    if bet is None:
        return postings
    for tx in bet_transactions(bet):
        loser_key = (tx.from_user_id, tx.drink_type, tx.measure_type)
        winner_key = (tx.to_user_id, tx.drink_type, tx.measure_type)
        consume, distribute = postings.get(loser_key, (0, 0))
        postings[loser_key] = (consume + tx.amount, distribute)
        consume, distribute = postings.get(winner_key, (0, 0))
        postings[winner_key] = (consume, distribute + tx.amount)
    return postings


def net_postings(before: Bet | None, after: Bet | None) -> list[BalanceDelta]:
    """Ledger changes needed to move from `before`'s settlement to `after`'s.

    Pass None for "no settlement" (bet absent or open). Unchanged units are
    dropped, so resolving twice with the same option yields nothing.
    """
    old = settlement_postings(before)
    new = settlement_postings(after)
    deltas = []
    for key in sorted(old.keys() | new.keys(), key=lambda k: (k[0], k[1].value, k[2].value)):
        old_consume, old_distribute = old.get(key, (0, 0))
        new_consume, new_distribute = new.get(key, (0, 0))
        consume = new_consume - old_consume
        distribute = new_distribute - old_distribute
        if consume or distribute:
            user_id, drink_type, measure_type = key
            deltas.append(
                BalanceDelta(
                    user_id=user_id,
                    drink_type=drink_type,
                    measure_type=measure_type,
                    to_consume=consume,
                    to_distribute=distribute,
                )
            )
    return deltas


def _transfer(tx: DrinkTransaction) -> tuple:
    return (tx.from_user_id, tx.to_user_id, tx.drink_type, tx.measure_type, tx.amount)


def settlement_transactions(
    before: Bet | None, after: Bet | None, now: datetime | None = None
) -> list[DrinkTransaction]:
    """Audit rows matching `net_postings(before, after)`.

    Transactions are append-only, so a settlement that goes away is undone by
    counter-transactions (winner -> loser, same unit and amount) before the
    new settlement's transactions. Identical settlements yield nothing.
    """
    old = bet_transactions(before) if before is not None else []
    new = bet_transactions(after) if after is not None else []
    if [_transfer(t) for t in old] == [_transfer(t) for t in new]:
        return []
    timestamp = now or utc_now()
    reversals = [
        replace(
            tx,
            from_user_id=tx.to_user_id,
            from_username=tx.to_username,
            to_user_id=tx.from_user_id,
            to_username=tx.from_username,
            timestamp=timestamp,
        )
        for tx in old
    ]
    return reversals + new
