"""GroupApplicationService: group lifecycle and membership.

Permissions:
  - any member may read the group and add members
  - only the owner (created_by) may remove members or delete the group
  - the owner cannot leave; deleting the group is the way out
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bb_common.errors import (
    AlreadyMemberError,
    GroupNotFoundError,
    InvalidStateError,
    NotGroupOwnerError,
    NotMemberError,
    ValidationError,
)
from src.bb_common.id_generator import new_group_id
from src.bb_group.application.schemas import GroupOut, MemberOut
from src.bb_group.domain.models import Group, GroupMember
from src.bb_group.domain.repository import GroupRepositoryProtocol, MembershipServiceProtocol
from src.bb_group.infrastructure.persistence import GroupMembershipRepository, GroupRepository

logger = logging.getLogger(__name__)


class GroupApplicationService:
    def __init__(
        self,
        repo: GroupRepositoryProtocol | None = None,
        membership: MembershipServiceProtocol | None = None,
    ) -> None:
        self._membership: MembershipServiceProtocol = membership or GroupMembershipRepository()
        self._repo: GroupRepositoryProtocol = repo or GroupRepository()

    async def _load_for_member(self, db: AsyncSession, group_id: str, user_id: str) -> Group:
        group = await self._repo.get_group(db, group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        if not group.is_member(user_id):
            raise NotMemberError(user_id, group_id)
        return group

    async def create_group(
        self, db: AsyncSession, owner_id: str, owner_username: str | None, name: str | None
    ) -> GroupOut:
        """The creator becomes owner and sole member."""
        if name is not None and not name.strip():
            raise ValidationError("group name must not be blank")
        group = Group(
            id=new_group_id(),
            name=name.strip() if name else settings.DEFAULT_GROUP_NAME,
            created_by=owner_id,
            members=[GroupMember(user_id=owner_id, username=owner_username)],
        )
        try:
            created = await self._repo.insert_group(db, group)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Group %s created by %s", created.id, owner_id)
        return GroupOut.from_domain(created)

    async def get_group(self, db: AsyncSession, group_id: str, user_id: str) -> GroupOut:
        group = await self._load_for_member(db, group_id, user_id)
        return GroupOut.from_domain(group)

    async def delete_group(self, db: AsyncSession, group_id: str, user_id: str) -> None:
        try:
            group = await self._load_for_member(db, group_id, user_id)
            if group.created_by != user_id:
                raise NotGroupOwnerError(group_id)
            await self._repo.delete_group(db, group_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Group %s deleted by %s", group_id, user_id)

    async def add_member(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        new_user_id: str,
        new_username: str | None,
    ) -> MemberOut:
        try:
            await self._load_for_member(db, group_id, user_id)
            if await self._membership.is_member(db, group_id, new_user_id):
                raise AlreadyMemberError(new_user_id, group_id)
            # None: a concurrent request added the same user first
            member = await self._membership.add_member(db, group_id, new_user_id, new_username)
            if member is None:
                raise AlreadyMemberError(new_user_id, group_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("User %s added to group %s by %s", new_user_id, group_id, user_id)
        return MemberOut.from_domain(member)

    async def remove_member(
        self, db: AsyncSession, group_id: str, user_id: str, target_user_id: str
    ) -> None:
        """Owner only. Past wagers of the removed user stay in the bets."""
        try:
            group = await self._load_for_member(db, group_id, user_id)
            if group.created_by != user_id:
                raise NotGroupOwnerError(group_id)
            if target_user_id == group.created_by:
                raise InvalidStateError("the group owner cannot be removed")
            if not await self._membership.remove_member(db, group_id, target_user_id):
                raise NotMemberError(target_user_id, group_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("User %s removed from group %s by %s", target_user_id, group_id, user_id)

    async def leave_group(self, db: AsyncSession, group_id: str, user_id: str) -> None:
        try:
            group = await self._load_for_member(db, group_id, user_id)
            if group.created_by == user_id:
                raise InvalidStateError("the group owner cannot leave; delete the group instead")
            await self._membership.remove_member(db, group_id, user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("User %s left group %s", user_id, group_id)
