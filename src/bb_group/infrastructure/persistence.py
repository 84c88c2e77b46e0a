"""GroupRepository and GroupMembershipRepository.

The group row is the unit of read-modify-write for bets: `bets` is a JSONB
array holding the whole bet sequence, and `version` is bumped on every write.
A write whose expected version no longer matches touches zero rows and is
reported as ConflictError instead of overwriting a concurrent edit.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

import json
import logging
from collections.abc import Sequence

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bb_betting.domain.models import Bet
from src.bb_betting.infrastructure.documents import bet_from_document, bet_to_document
from src.bb_betting.infrastructure.persistence import LIST_TRANSACTIONS_SQL, row_to_transaction
from src.bb_common.enums import TransactionSource
from src.bb_common.errors import ConflictError, InternalError
from src.bb_group.domain.models import Group, GroupMember

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL: groups
# ---------------------------------------------------------------------------

_GET_GROUP_SQL = text("""
    SELECT id, name, created_by, bets, version, created_at, updated_at
    FROM groups
    WHERE id = :group_id
""")

_INSERT_GROUP_SQL = text("""
    INSERT INTO groups (id, name, created_by, bets, version)
    VALUES (:id, :name, :created_by, CAST(:bets AS JSONB), 0)
    RETURNING id, name, created_by, bets, version, created_at, updated_at
""")

_SAVE_BETS_SQL = text("""
    UPDATE groups
    SET bets = CAST(:bets AS JSONB),
        version = version + 1
    WHERE id = :group_id AND version = :expected_version
    RETURNING version
""")

_DELETE_GROUP_SQL = text("""
    DELETE FROM groups WHERE id = :group_id RETURNING id
""")

# ---------------------------------------------------------------------------
# SQL: group_members
# ---------------------------------------------------------------------------

_LIST_MEMBERS_SQL = text("""
    SELECT user_id, username, joined_at
    FROM group_members
    WHERE group_id = :group_id
    ORDER BY joined_at, user_id
""")

_IS_MEMBER_SQL = text("""
    SELECT 1 FROM group_members WHERE group_id = :group_id AND user_id = :user_id
""")

_ADD_MEMBER_SQL = text("""
    INSERT INTO group_members (group_id, user_id, username)
    VALUES (:group_id, :user_id, :username)
    ON CONFLICT (group_id, user_id) DO NOTHING
    RETURNING user_id, username, joined_at
""")

_REMOVE_MEMBER_SQL = text("""
    DELETE FROM group_members
    WHERE group_id = :group_id AND user_id = :user_id
    RETURNING user_id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_member(row: object) -> GroupMember:
    return GroupMember(
        user_id=row.user_id,  # type: ignore[attr-defined]
        username=row.username,  # type: ignore[attr-defined]
        joined_at=row.joined_at,  # type: ignore[attr-defined]
    )


def _decode_bets(raw: object, group_id: str) -> list[Bet]:
    # asyncpg hands JSONB back as text unless a codec is registered
    docs = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    if docs is None:
        return []
    if not isinstance(docs, list):
        raise InternalError(f"Malformed bets column in group {group_id}")
    return [bet_from_document(doc, group_id) for doc in docs]


def _encode_bets(bets: Sequence[Bet]) -> str:
    return json.dumps([bet_to_document(b) for b in bets])


class GroupMembershipRepository:
    """Membership rows in PostgreSQL, standing in for the membership service."""

    async def list_members(self, db: AsyncSession, group_id: str) -> list[GroupMember]:
        result = await db.execute(_LIST_MEMBERS_SQL, {"group_id": group_id})
        return [_row_to_member(row) for row in result.fetchall()]

    async def is_member(self, db: AsyncSession, group_id: str, user_id: str) -> bool:
        result = await db.execute(_IS_MEMBER_SQL, {"group_id": group_id, "user_id": user_id})
        return result.fetchone() is not None

    async def add_member(
        self, db: AsyncSession, group_id: str, user_id: str, username: str | None
    ) -> GroupMember | None:
        result = await db.execute(
            _ADD_MEMBER_SQL,
            {"group_id": group_id, "user_id": user_id, "username": username},
        )
        row = result.fetchone()
        return _row_to_member(row) if row else None

    async def remove_member(self, db: AsyncSession, group_id: str, user_id: str) -> bool:
        result = await db.execute(
            _REMOVE_MEMBER_SQL, {"group_id": group_id, "user_id": user_id}
        )
        return result.fetchone() is not None


class GroupRepository:
    """Concrete repository for the Group aggregate."""

    def __init__(self, membership: GroupMembershipRepository | None = None) -> None:
        self._membership = membership or GroupMembershipRepository()

    async def get_group(self, db: AsyncSession, group_id: str) -> Group | None:
        row = (await db.execute(_GET_GROUP_SQL, {"group_id": group_id})).fetchone()
        if row is None:
            return None
        members = await self._membership.list_members(db, group_id)
        tx_rows = (await db.execute(LIST_TRANSACTIONS_SQL, {"group_id": group_id})).fetchall()
        history = [
            tx for tx in (row_to_transaction(r) for r in tx_rows)
            if tx.source == TransactionSource.DISTRIBUTION
        ]
        return Group(
            id=row.id,
            name=row.name,
            created_by=row.created_by,
            members=members,
            bets=_decode_bets(row.bets, row.id),
            distribution_history=history,
            version=row.version,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def insert_group(self, db: AsyncSession, group: Group) -> Group:
        result = await db.execute(
            _INSERT_GROUP_SQL,
            {
                "id": group.id,
                "name": group.name,
                "created_by": group.created_by,
                "bets": _encode_bets(group.bets),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Group insert returned no rows; this should never happen")
        members = []
        for member in group.members:
            added = await self._membership.add_member(db, group.id, member.user_id, member.username)
            if added is not None:
                members.append(added)
        return Group(
            id=row.id,
            name=row.name,
            created_by=row.created_by,
            members=members,
            bets=_decode_bets(row.bets, row.id),
            version=row.version,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def save_bets(
        self,
        db: AsyncSession,
        group_id: str,
        bets: Sequence[Bet],
        expected_version: int,
    ) -> int:
        result = await db.execute(
            _SAVE_BETS_SQL,
            {
                "group_id": group_id,
                "bets": _encode_bets(bets),
                "expected_version": expected_version,
            },
        )
        row = result.fetchone()
        if row is None:
            logger.warning(
                "Optimistic lock lost on group %s (expected version %d)",
                group_id, expected_version,
            )
            raise ConflictError(group_id)
        return row.version

    async def delete_group(self, db: AsyncSession, group_id: str) -> bool:
        # group_members, drink_balances and drink_transactions cascade
        result = await db.execute(_DELETE_GROUP_SQL, {"group_id": group_id})
        return result.fetchone() is not None
