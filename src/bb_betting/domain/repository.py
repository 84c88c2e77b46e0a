"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the PostgreSQL implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bb_betting.domain.models import BalanceDelta, DrinkTransaction, MemberBalance


class DrinkLedgerRepositoryProtocol(Protocol):
    async def get_balance(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> MemberBalance: ...

    async def apply_delta(
        self, db: AsyncSession, group_id: str, delta: BalanceDelta
    ) -> None:
        """Raises InsufficientBalanceError if a field would go negative."""
        ...

    async def append_transaction(
        self, db: AsyncSession, group_id: str, tx: DrinkTransaction
    ) -> DrinkTransaction: ...
