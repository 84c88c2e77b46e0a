"""Pydantic schemas for the bb_group API."""

from pydantic import BaseModel, Field

from src.bb_betting.application.schemas import BetOut
from src.bb_group.domain.models import Group, GroupMember


class CreateGroupRequest(BaseModel):
    name: str | None = Field(None, max_length=100, description="Defaults to DEFAULT_GROUP_NAME")


class AddMemberRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    username: str | None = Field(None, max_length=64)


class MemberOut(BaseModel):
    user_id: str
    username: str | None
    joined_at: str | None

    @classmethod
    def from_domain(cls, member: GroupMember) -> "MemberOut":
        return cls(
            user_id=member.user_id,
            username=member.username,
            joined_at=member.joined_at.isoformat() if member.joined_at else None,
        )


class GroupOut(BaseModel):
    id: str
    name: str
    created_by: str
    version: int
    members: list[MemberOut]
    bets: list[BetOut]
    created_at: str | None

    @classmethod
    def from_domain(cls, group: Group) -> "GroupOut":
        return cls(
            id=group.id,
            name=group.name,
            created_by=group.created_by,
            version=group.version,
            members=[MemberOut.from_domain(m) for m in group.members],
            bets=[BetOut.from_domain(b) for b in group.bets],
            created_at=group.created_at.isoformat() if group.created_at else None,
        )
