"""Domain models for bb_group: the Group aggregate root."""

from dataclasses import dataclass, field
from datetime import datetime

from src.bb_betting.domain.models import Bet, DrinkTransaction


@dataclass
class GroupMember:
    user_id: str
    username: str | None = None
    joined_at: datetime | None = None


@dataclass
class Group:
    id: str
    name: str
    created_by: str
    members: list[GroupMember] = field(default_factory=list)
    bets: list[Bet] = field(default_factory=list)
    distribution_history: list[DrinkTransaction] = field(default_factory=list)
    version: int = 0   # bumped on every write of `bets`
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def member_ids(self) -> list[str]:
        return [m.user_id for m in self.members]

    def is_member(self, user_id: str) -> bool:
        return any(m.user_id == user_id for m in self.members)

    def usernames(self) -> dict[str, str]:
        return {m.user_id: m.username for m in self.members if m.username}
