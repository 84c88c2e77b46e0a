"""Repository Protocols for the Group aggregate and its membership.

Unit tests inject in-memory fakes. Infrastructure provides the real ones.
"""

from collections.abc import Sequence
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bb_betting.domain.models import Bet
from src.bb_group.domain.models import Group, GroupMember


class GroupRepositoryProtocol(Protocol):
    async def get_group(self, db: AsyncSession, group_id: str) -> Group | None:
        """Full aggregate: members, bets and distribution history."""
        ...

    async def insert_group(self, db: AsyncSession, group: Group) -> Group: ...

    async def save_bets(
        self,
        db: AsyncSession,
        group_id: str,
        bets: Sequence[Bet],
        expected_version: int,
    ) -> int:
        """Write the whole bet sequence; returns the new version.

        Raises ConflictError if the stored version is not `expected_version`.
        """
        ...

    async def delete_group(self, db: AsyncSession, group_id: str) -> bool: ...


class MembershipServiceProtocol(Protocol):
    async def list_members(self, db: AsyncSession, group_id: str) -> list[GroupMember]: ...

    async def is_member(self, db: AsyncSession, group_id: str, user_id: str) -> bool: ...

    async def add_member(
        self, db: AsyncSession, group_id: str, user_id: str, username: str | None
    ) -> GroupMember | None:
        """None if the user already was a member."""
        ...

    async def remove_member(self, db: AsyncSession, group_id: str, user_id: str) -> bool: ...
