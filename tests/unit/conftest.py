"""In-memory fakes for the repository Protocols.

FakeSession stands in for the AsyncSession *and* the database behind it:
repositories read and write its tables, commit() snapshots them and
rollback() restores the last snapshot, so atomicity is observable in tests.
"""

import copy
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime

import pytest

from src.bb_betting.application.service import BettingApplicationService
from src.bb_betting.domain.models import (
    BalanceDelta,
    Bet,
    DrinkTransaction,
    MemberBalance,
)
from src.bb_common.enums import DrinkType, MeasureType, TransactionSource
from src.bb_common.errors import ConflictError, InsufficientBalanceError
from src.bb_group.application.service import GroupApplicationService
from src.bb_group.domain.models import Group, GroupMember

OWNER = "u_alice"
BOB = "u_bob"
CAROL = "u_carol"
GROUP_ID = "grp_test"


class FakeSession:
    def __init__(self) -> None:
        self.groups: dict[str, Group] = {}
        self.balances: dict[tuple[str, str, DrinkType, MeasureType], list[int]] = {}
        self.transactions: list[tuple[str, DrinkTransaction]] = []
        self.commits = 0
        self.rollbacks = 0
        self._snapshot = self._tables()

    def _tables(self) -> tuple:
        return copy.deepcopy((self.groups, self.balances, self.transactions))

    async def commit(self) -> None:
        self.commits += 1
        self._snapshot = self._tables()

    async def rollback(self) -> None:
        self.rollbacks += 1
        self.groups, self.balances, self.transactions = copy.deepcopy(self._snapshot)

    def balance(self, group_id: str, user_id: str, drink: DrinkType, measure: MeasureType) -> tuple[int, int]:
        consume, distribute = self.balances.get((group_id, user_id, drink, measure), [0, 0])
        return consume, distribute


class FakeGroupRepository:
    async def get_group(self, db: FakeSession, group_id: str) -> Group | None:
        group = db.groups.get(group_id)
        if group is None:
            return None
        loaded = copy.deepcopy(group)
        loaded.distribution_history = [
            tx for gid, tx in db.transactions
            if gid == group_id and tx.source == TransactionSource.DISTRIBUTION
        ]
        return loaded

    async def insert_group(self, db: FakeSession, group: Group) -> Group:
        now = datetime.now(UTC)
        stored = copy.deepcopy(group)
        stored.created_at = stored.updated_at = now
        for member in stored.members:
            member.joined_at = now
        db.groups[group.id] = stored
        return copy.deepcopy(stored)

    async def save_bets(
        self, db: FakeSession, group_id: str, bets: Sequence[Bet], expected_version: int
    ) -> int:
        group = db.groups.get(group_id)
        if group is None or group.version != expected_version:
            raise ConflictError(group_id)
        group.bets = list(bets)
        group.version += 1
        return group.version

    async def delete_group(self, db: FakeSession, group_id: str) -> bool:
        if db.groups.pop(group_id, None) is None:
            return False
        db.balances = {k: v for k, v in db.balances.items() if k[0] != group_id}
        db.transactions = [(g, tx) for g, tx in db.transactions if g != group_id]
        return True


class FakeMembership:
    async def list_members(self, db: FakeSession, group_id: str) -> list[GroupMember]:
        return copy.deepcopy(db.groups[group_id].members)

    async def is_member(self, db: FakeSession, group_id: str, user_id: str) -> bool:
        return db.groups[group_id].is_member(user_id)

    async def add_member(
        self, db: FakeSession, group_id: str, user_id: str, username: str | None
    ) -> GroupMember | None:
        group = db.groups[group_id]
        if group.is_member(user_id):
            return None
        member = GroupMember(user_id=user_id, username=username, joined_at=datetime.now(UTC))
        group.members.append(member)
        return copy.deepcopy(member)

    async def remove_member(self, db: FakeSession, group_id: str, user_id: str) -> bool:
        group = db.groups[group_id]
        before = len(group.members)
        group.members = [m for m in group.members if m.user_id != user_id]
        return len(group.members) != before


class FakeLedger:
    async def get_balance(self, db: FakeSession, group_id: str, user_id: str) -> MemberBalance:
        balance = MemberBalance(group_id=group_id, user_id=user_id)
        for (gid, uid, drink, measure), (consume, distribute) in db.balances.items():
            if gid == group_id and uid == user_id:
                balance.drinks_to_consume.add(drink, measure, consume)
                balance.drinks_to_distribute.add(drink, measure, distribute)
        return balance

    async def apply_delta(self, db: FakeSession, group_id: str, delta: BalanceDelta) -> None:
        key = (group_id, delta.user_id, delta.drink_type, delta.measure_type)
        consume, distribute = db.balances.get(key, [0, 0])
        if distribute + delta.to_distribute < 0:
            raise InsufficientBalanceError(
                delta.drink_type.value, delta.measure_type.value, -delta.to_distribute, distribute
            )
        if consume + delta.to_consume < 0:
            raise InsufficientBalanceError(
                delta.drink_type.value, delta.measure_type.value, -delta.to_consume, consume
            )
        db.balances[key] = [consume + delta.to_consume, distribute + delta.to_distribute]

    async def append_transaction(
        self, db: FakeSession, group_id: str, tx: DrinkTransaction
    ) -> DrinkTransaction:
        stored = replace(tx, id=len(db.transactions) + 1)
        db.transactions.append((group_id, stored))
        return stored


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def seeded(session: FakeSession) -> FakeSession:
    """Session holding GROUP_ID owned by alice, with bob and carol as members."""
    session.groups[GROUP_ID] = Group(
        id=GROUP_ID,
        name="Friday pub",
        created_by=OWNER,
        members=[
            GroupMember(user_id=OWNER, username="Alice"),
            GroupMember(user_id=BOB, username="Bob"),
            GroupMember(user_id=CAROL, username="Carol"),
        ],
    )
    session._snapshot = session._tables()
    return session


@pytest.fixture
def betting_service() -> BettingApplicationService:
    return BettingApplicationService(group_repo=FakeGroupRepository(), ledger_repo=FakeLedger())


@pytest.fixture
def group_service() -> GroupApplicationService:
    return GroupApplicationService(repo=FakeGroupRepository(), membership=FakeMembership())
