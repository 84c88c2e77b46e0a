"""Unit tests for GroupApplicationService using the in-memory fakes."""

from unittest.mock import AsyncMock

import pytest

from src.bb_common.errors import (
    AlreadyMemberError,
    GroupNotFoundError,
    InvalidStateError,
    NotGroupOwnerError,
    NotMemberError,
    ValidationError,
)

G = "grp_test"


class TestCreateGroup:
    @pytest.mark.asyncio
    async def test_creator_is_owner_and_sole_member(self, group_service, session):
        group = await group_service.create_group(session, "u_dave", "Dave", "Quiz night")
        assert group.id.startswith("grp_")
        assert group.name == "Quiz night"
        assert group.created_by == "u_dave"
        assert [m.user_id for m in group.members] == ["u_dave"]
        assert group.bets == []
        assert session.commits == 1

    @pytest.mark.asyncio
    async def test_default_name(self, group_service, session):
        group = await group_service.create_group(session, "u_dave", None, None)
        assert group.name == "New group"

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, group_service, session):
        with pytest.raises(ValidationError):
            await group_service.create_group(session, "u_dave", None, "   ")


class TestMembership:
    @pytest.mark.asyncio
    async def test_get_group_requires_membership(self, group_service, seeded):
        group = await group_service.get_group(seeded, G, "u_bob")
        assert len(group.members) == 3
        with pytest.raises(NotMemberError):
            await group_service.get_group(seeded, G, "u_mallory")
        with pytest.raises(GroupNotFoundError):
            await group_service.get_group(seeded, "grp_nope", "u_bob")

    @pytest.mark.asyncio
    async def test_any_member_can_add(self, group_service, seeded):
        member = await group_service.add_member(seeded, G, "u_bob", "u_erin", "Erin")
        assert member.user_id == "u_erin"
        assert seeded.groups[G].is_member("u_erin")

    @pytest.mark.asyncio
    async def test_add_existing_member(self, group_service, seeded):
        with pytest.raises(AlreadyMemberError):
            await group_service.add_member(seeded, G, "u_alice", "u_bob", "Bob")
        assert seeded.rollbacks == 1

    @pytest.mark.asyncio
    async def test_add_loses_race_to_concurrent_add(self, group_service, seeded):
        # the pre-check passes but the insert finds the row already there
        group_service._membership.is_member = AsyncMock(return_value=False)
        with pytest.raises(AlreadyMemberError):
            await group_service.add_member(seeded, G, "u_alice", "u_bob", "Bob")
        assert seeded.rollbacks == 1
        assert seeded.commits == 0

    @pytest.mark.asyncio
    async def test_only_owner_removes(self, group_service, seeded):
        with pytest.raises(NotGroupOwnerError):
            await group_service.remove_member(seeded, G, "u_bob", "u_carol")
        await group_service.remove_member(seeded, G, "u_alice", "u_carol")
        assert not seeded.groups[G].is_member("u_carol")

    @pytest.mark.asyncio
    async def test_remove_non_member(self, group_service, seeded):
        with pytest.raises(NotMemberError):
            await group_service.remove_member(seeded, G, "u_alice", "u_mallory")

    @pytest.mark.asyncio
    async def test_owner_cannot_be_removed_or_leave(self, group_service, seeded):
        with pytest.raises(InvalidStateError):
            await group_service.remove_member(seeded, G, "u_alice", "u_alice")
        with pytest.raises(InvalidStateError):
            await group_service.leave_group(seeded, G, "u_alice")

    @pytest.mark.asyncio
    async def test_member_leaves(self, group_service, seeded):
        await group_service.leave_group(seeded, G, "u_bob")
        assert [m.user_id for m in seeded.groups[G].members] == ["u_alice", "u_carol"]


class TestDeleteGroup:
    @pytest.mark.asyncio
    async def test_only_owner_deletes(self, group_service, seeded):
        with pytest.raises(NotGroupOwnerError):
            await group_service.delete_group(seeded, G, "u_bob")
        await group_service.delete_group(seeded, G, "u_alice")
        assert G not in seeded.groups
