"""Domain models for bb_betting: pure dataclasses, no SQLAlchemy dependency.

Bets are immutable values: every lifecycle operation returns a new Bet, so a
stored group document is only ever replaced wholesale.
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.bb_common.enums import BetStatus, DrinkType, MeasureType, TransactionSource
from src.bb_common.quantities import QuantityMap


@dataclass(frozen=True)
class BettingOption:
    id: str
    name: str


@dataclass(frozen=True)
class BetWager:
    user_id: str
    username: str
    option_id: str
    drink_type: DrinkType
    measure_type: MeasureType
    amount: int              # drink units, > 0
    timestamp: datetime


@dataclass(frozen=True)
class Bet:
    id: str
    title: str
    options: tuple[BettingOption, ...]
    wagers: tuple[BetWager, ...] = ()
    correct_option_id: str | None = None
    created_at: datetime | None = None
    resolved_at: datetime | None = None

    @property
    def is_finished(self) -> bool:
        return self.correct_option_id is not None

    @property
    def status(self) -> BetStatus:
        return BetStatus.RESOLVED if self.is_finished else BetStatus.OPEN

    @property
    def option_ids(self) -> frozenset[str]:
        return frozenset(o.id for o in self.options)

    def has_option(self, option_id: str) -> bool:
        return option_id in self.option_ids

    def wager_for(self, user_id: str) -> BetWager | None:
        for wager in self.wagers:
            if wager.user_id == user_id:
                return wager
        return None

    def orphaned_wagers(self) -> list[BetWager]:
        """Wagers whose option disappeared when the bet was edited."""
        valid = self.option_ids
        return [w for w in self.wagers if w.option_id not in valid]


@dataclass(frozen=True)
class DrinkTransaction:
    from_user_id: str
    from_username: str
    to_user_id: str
    to_username: str
    drink_type: DrinkType
    measure_type: MeasureType
    amount: int
    source: TransactionSource
    timestamp: datetime
    bet_id: str | None = None    # set for source=bet
    id: int | None = None        # BIGSERIAL, set once persisted


@dataclass
class MemberDrinkStats:
    """Per-member aggregate, recomputed on every read. Never persisted."""

    user_id: str
    username: str
    wins: int = 0
    total_drinks_received: int = 0
    total_drinks_lost: int = 0
    drinks_to_consume: QuantityMap = field(default_factory=QuantityMap)
    drinks_to_distribute: QuantityMap = field(default_factory=QuantityMap)
    transactions: list[DrinkTransaction] = field(default_factory=list)


@dataclass(frozen=True)
class DistributionItem:
    user_id: str             # recipient
    drink_type: DrinkType
    measure_type: MeasureType
    amount: int


@dataclass(frozen=True)
class BalanceDelta:
    """Signed change to one (user, unit) row of the drink balance ledger."""

    user_id: str
    drink_type: DrinkType
    measure_type: MeasureType
    to_consume: int = 0
    to_distribute: int = 0


@dataclass
class MemberBalance:
    group_id: str
    user_id: str
    drinks_to_consume: QuantityMap = field(default_factory=QuantityMap)
    drinks_to_distribute: QuantityMap = field(default_factory=QuantityMap)
