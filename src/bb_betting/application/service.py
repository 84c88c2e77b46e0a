"""BettingApplicationService: composition layer for bets, wagers and drinks.

Every bet mutation is one read-modify-write of the group's bet sequence:
load the group, check membership, apply a pure domain function, write the
whole sequence back under the version read, then post the net settlement
change to the balance ledger. All of it commits or rolls back together.

Reads (stats, balances, history) run without an explicit transaction.
"""

import logging
from collections.abc import Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bb_betting.application.schemas import (
    BalanceResponse,
    BetOut,
    GroupStatsResponse,
    MemberStatsOut,
    TransactionListResponse,
    TransactionOut,
)
from src.bb_betting.domain import lifecycle, resolution, wager_ledger
from src.bb_betting.domain.distribution import build_distribution, validate_distribution
from src.bb_betting.domain.models import Bet, DistributionItem, DrinkTransaction
from src.bb_betting.domain.repository import DrinkLedgerRepositoryProtocol
from src.bb_betting.infrastructure.persistence import DrinkLedgerRepository
from src.bb_common.enums import DrinkType, MeasureType
from src.bb_common.errors import GroupNotFoundError, NotMemberError
from src.bb_group.domain.models import Group
from src.bb_group.domain.repository import GroupRepositoryProtocol
from src.bb_group.infrastructure.persistence import GroupRepository

logger = logging.getLogger(__name__)


class BettingApplicationService:
    def __init__(
        self,
        group_repo: GroupRepositoryProtocol | None = None,
        ledger_repo: DrinkLedgerRepositoryProtocol | None = None,
    ) -> None:
        self._groups: GroupRepositoryProtocol = group_repo or GroupRepository()
        self._ledger: DrinkLedgerRepositoryProtocol = ledger_repo or DrinkLedgerRepository()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load_for_member(self, db: AsyncSession, group_id: str, user_id: str) -> Group:
        group = await self._groups.get_group(db, group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        if not group.is_member(user_id):
            raise NotMemberError(user_id, group_id)
        return group

    async def _write(
        self,
        db: AsyncSession,
        group: Group,
        bets: Sequence[Bet],
        before: Bet | None,
        after: Bet | None,
    ) -> int:
        """Persist `bets` and move the ledger from `before`'s settlement to `after`'s.

        Every balance change is backed by source=bet rows in drink_transactions.
        """
        await self._groups.save_bets(db, group.id, bets, group.version)
        deltas = resolution.net_postings(before, after)
        for delta in deltas:
            await self._ledger.apply_delta(db, group.id, delta)
        for tx in resolution.settlement_transactions(before, after):
            await self._ledger.append_transaction(db, group.id, tx)
        return len(deltas)

    async def _update_bet(
        self,
        db: AsyncSession,
        group_id: str,
        bet_id: str,
        user_id: str,
        change: Callable[[Bet], Bet],
    ) -> tuple[Bet, int]:
        """Apply `change` to one bet. An unchanged bet is not written."""
        try:
            group = await self._load_for_member(db, group_id, user_id)
            before = lifecycle.find_bet(group.bets, bet_id)
            after = change(before)
            postings = 0
            if after != before:
                bets = lifecycle.replace_bet(group.bets, after)
                postings = await self._write(db, group, bets, before, after)
                await db.commit()
        except Exception:
            await db.rollback()
            raise
        return after, postings

    # ------------------------------------------------------------------
    # Bet lifecycle
    # ------------------------------------------------------------------

    async def create_bet(
        self, db: AsyncSession, group_id: str, user_id: str, title: str, options: list[str]
    ) -> BetOut:
        try:
            group = await self._load_for_member(db, group_id, user_id)
            bet = lifecycle.create_bet(title, options)
            await self._write(db, group, [*group.bets, bet], None, None)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Bet %s created in group %s by %s", bet.id, group_id, user_id)
        return BetOut.from_domain(bet)

    async def edit_bet(
        self,
        db: AsyncSession,
        group_id: str,
        bet_id: str,
        user_id: str,
        title: str,
        options: list[str],
    ) -> BetOut:
        bet, postings = await self._update_bet(
            db, group_id, bet_id, user_id,
            lambda b: lifecycle.edit_bet(b, title, options),
        )
        logger.info("Bet %s edited in group %s (%d ledger postings)", bet_id, group_id, postings)
        return BetOut.from_domain(bet)

    async def delete_bet(self, db: AsyncSession, group_id: str, bet_id: str, user_id: str) -> None:
        try:
            group = await self._load_for_member(db, group_id, user_id)
            bet = lifecycle.find_bet(group.bets, bet_id)
            bets = lifecycle.remove_bet(group.bets, bet_id)
            postings = await self._write(db, group, bets, bet, None)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Bet %s deleted from group %s (%d ledger postings)", bet_id, group_id, postings)

    async def place_wager(
        self,
        db: AsyncSession,
        group_id: str,
        bet_id: str,
        user_id: str,
        username: str,
        option_id: str,
        drink_type: DrinkType,
        measure_type: MeasureType,
        amount: int,
    ) -> BetOut:
        bet, _ = await self._update_bet(
            db, group_id, bet_id, user_id,
            lambda b: wager_ledger.place_wager(
                b, user_id, username, option_id, drink_type, measure_type, amount
            ),
        )
        logger.info(
            "Wager on bet %s by %s: %d %s %s on %s",
            bet_id, user_id, amount, MeasureType(measure_type).value,
            DrinkType(drink_type).value, option_id,
        )
        return BetOut.from_domain(bet)

    async def resolve_bet(
        self, db: AsyncSession, group_id: str, bet_id: str, user_id: str, option_id: str
    ) -> BetOut:
        bet, postings = await self._update_bet(
            db, group_id, bet_id, user_id,
            lambda b: lifecycle.resolve_bet(b, option_id),
        )
        logger.info(
            "Bet %s resolved on %s in group %s by %s (%d ledger postings)",
            bet_id, option_id, group_id, user_id, postings,
        )
        return BetOut.from_domain(bet)

    async def reopen_bet(
        self, db: AsyncSession, group_id: str, bet_id: str, user_id: str
    ) -> BetOut:
        bet, postings = await self._update_bet(
            db, group_id, bet_id, user_id, lifecycle.reopen_bet
        )
        logger.info(
            "Bet %s reopened in group %s by %s (%d ledger postings)",
            bet_id, group_id, user_id, postings,
        )
        return BetOut.from_domain(bet)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def compute_group_stats(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> GroupStatsResponse:
        group = await self._load_for_member(db, group_id, user_id)
        stats = resolution.compute_group_stats(
            group.member_ids,
            group.bets,
            group.distribution_history,
            usernames=group.usernames(),
            unknown_username=settings.UNKNOWN_USERNAME,
        )
        return GroupStatsResponse(
            group_id=group_id, items=[MemberStatsOut.from_domain(s) for s in stats]
        )

    async def get_balance(self, db: AsyncSession, group_id: str, user_id: str) -> BalanceResponse:
        await self._load_for_member(db, group_id, user_id)
        balance = await self._ledger.get_balance(db, group_id, user_id)
        return BalanceResponse.from_domain(balance)

    async def list_distributions(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> TransactionListResponse:
        group = await self._load_for_member(db, group_id, user_id)
        return TransactionListResponse(
            group_id=group_id,
            items=[TransactionOut.from_domain(t) for t in group.distribution_history],
        )

    # ------------------------------------------------------------------
    # Distribution
    # ------------------------------------------------------------------

    async def distribute_drinks(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        username: str | None,
        items: list[DistributionItem],
    ) -> TransactionListResponse:
        """Hand out drinks the caller won. All-or-nothing for the whole batch."""
        recorded: list[DrinkTransaction] = []
        try:
            group = await self._load_for_member(db, group_id, user_id)
            balance = await self._ledger.get_balance(db, group_id, user_id)
            totals = validate_distribution(
                group_id, balance.drinks_to_distribute, items, set(group.member_ids)
            )
            from_username = (
                group.usernames().get(user_id) or username or settings.UNKNOWN_USERNAME
            )
            plan = build_distribution(
                user_id, from_username, items, group.usernames(), settings.UNKNOWN_USERNAME
            )
            for tx, deltas in plan:
                # a concurrent distribution can still drain the row; the
                # guarded update raises and the whole batch rolls back
                for delta in deltas:
                    await self._ledger.apply_delta(db, group_id, delta)
                recorded.append(await self._ledger.append_transaction(db, group_id, tx))
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "User %s distributed %d drink(s) in %d entr%s in group %s",
            user_id, totals.total(), len(items),
            "y" if len(items) == 1 else "ies", group_id,
        )
        return TransactionListResponse(
            group_id=group_id, items=[TransactionOut.from_domain(t) for t in recorded]
        )
