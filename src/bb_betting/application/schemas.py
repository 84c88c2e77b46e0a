"""Pydantic schemas for the bb_betting API.

Quantity maps are rendered nested: {"BEER": {"SIP": 2}}; zero entries omitted.
"""

from pydantic import BaseModel, Field

from src.bb_betting.domain.models import (
    Bet,
    BetWager,
    DistributionItem,
    DrinkTransaction,
    MemberBalance,
    MemberDrinkStats,
)
from src.bb_common.enums import BetStatus, DrinkType, MeasureType, TransactionSource

QuantityOut = dict[str, dict[str, int]]

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BetRequest(BaseModel):
    """Body for both create and edit."""

    title: str = Field(..., min_length=1, max_length=200)
    options: list[str] = Field(..., min_length=1, max_length=20)


class PlaceWagerRequest(BaseModel):
    option_id: str
    drink_type: DrinkType
    measure_type: MeasureType
    amount: int = Field(..., gt=0, description="Number of drink units staked")


class ResolveBetRequest(BaseModel):
    option_id: str


class DistributionItemIn(BaseModel):
    user_id: str = Field(..., description="Recipient")
    drink_type: DrinkType
    measure_type: MeasureType
    amount: int = Field(..., gt=0)

    def to_domain(self) -> DistributionItem:
        return DistributionItem(
            user_id=self.user_id,
            drink_type=self.drink_type,
            measure_type=self.measure_type,
            amount=self.amount,
        )


class DistributeRequest(BaseModel):
    distributions: list[DistributionItemIn] = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OptionOut(BaseModel):
    id: str
    name: str


class WagerOut(BaseModel):
    user_id: str
    username: str
    option_id: str
    drink_type: DrinkType
    measure_type: MeasureType
    amount: int
    timestamp: str

    @classmethod
    def from_domain(cls, wager: BetWager) -> "WagerOut":
        return cls(
            user_id=wager.user_id,
            username=wager.username,
            option_id=wager.option_id,
            drink_type=wager.drink_type,
            measure_type=wager.measure_type,
            amount=wager.amount,
            timestamp=wager.timestamp.isoformat(),
        )


class BetOut(BaseModel):
    id: str
    title: str
    status: BetStatus
    is_finished: bool
    correct_option_id: str | None
    options: list[OptionOut]
    wagers: list[WagerOut]
    orphaned_wagers: list[WagerOut]   # option removed by an edit; not settled
    created_at: str | None
    resolved_at: str | None

    @classmethod
    def from_domain(cls, bet: Bet) -> "BetOut":
        orphaned = bet.orphaned_wagers()
        return cls(
            id=bet.id,
            title=bet.title,
            status=bet.status,
            is_finished=bet.is_finished,
            correct_option_id=bet.correct_option_id,
            options=[OptionOut(id=o.id, name=o.name) for o in bet.options],
            wagers=[WagerOut.from_domain(w) for w in bet.wagers if w not in orphaned],
            orphaned_wagers=[WagerOut.from_domain(w) for w in orphaned],
            created_at=bet.created_at.isoformat() if bet.created_at else None,
            resolved_at=bet.resolved_at.isoformat() if bet.resolved_at else None,
        )


class TransactionOut(BaseModel):
    id: int | None
    bet_id: str | None
    from_user_id: str
    from_username: str
    to_user_id: str
    to_username: str
    drink_type: DrinkType
    measure_type: MeasureType
    amount: int
    source: TransactionSource
    timestamp: str

    @classmethod
    def from_domain(cls, tx: DrinkTransaction) -> "TransactionOut":
        return cls(
            id=tx.id,
            bet_id=tx.bet_id,
            from_user_id=tx.from_user_id,
            from_username=tx.from_username,
            to_user_id=tx.to_user_id,
            to_username=tx.to_username,
            drink_type=tx.drink_type,
            measure_type=tx.measure_type,
            amount=tx.amount,
            source=tx.source,
            timestamp=tx.timestamp.isoformat(),
        )


class MemberStatsOut(BaseModel):
    """Leaderboard row, recomputed from the bets on every read.

    drinks_to_consume / drinks_to_distribute here count each member's own
    stakes (a winner's own wager, a loser's own wager). They are NOT the
    settled balance: what a member actually owes or may hand out is the
    persisted ledger served by `GET /groups/{group_id}/balances/me`
    (BalanceResponse), which is denominated in the winners' drink units.
    """

    user_id: str
    username: str
    wins: int
    total_drinks_received: int
    total_drinks_lost: int
    drinks_to_consume: QuantityOut
    drinks_to_distribute: QuantityOut
    transactions: list[TransactionOut]

    @classmethod
    def from_domain(cls, stats: MemberDrinkStats) -> "MemberStatsOut":
        return cls(
            user_id=stats.user_id,
            username=stats.username,
            wins=stats.wins,
            total_drinks_received=stats.total_drinks_received,
            total_drinks_lost=stats.total_drinks_lost,
            drinks_to_consume=stats.drinks_to_consume.to_nested(),
            drinks_to_distribute=stats.drinks_to_distribute.to_nested(),
            transactions=[TransactionOut.from_domain(t) for t in stats.transactions],
        )


class GroupStatsResponse(BaseModel):
    group_id: str
    items: list[MemberStatsOut]   # leaderboard order


class BalanceResponse(BaseModel):
    """The caller's authoritative owed-drink balance in one group."""

    group_id: str
    user_id: str
    drinks_to_consume: QuantityOut
    drinks_to_distribute: QuantityOut

    @classmethod
    def from_domain(cls, balance: MemberBalance) -> "BalanceResponse":
        return cls(
            group_id=balance.group_id,
            user_id=balance.user_id,
            drinks_to_consume=balance.drinks_to_consume.to_nested(),
            drinks_to_distribute=balance.drinks_to_distribute.to_nested(),
        )


class TransactionListResponse(BaseModel):
    group_id: str
    items: list[TransactionOut]
