"""DrinkLedgerRepository: concrete implementation of DrinkLedgerRepositoryProtocol.

Balance changes are single atomic UPDATE ... RETURNING statements guarded so
that no field can drop below zero. Zero rows back from a guarded update means
the balance was insufficient.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bb_betting.domain.models import BalanceDelta, DrinkTransaction, MemberBalance
from src.bb_common.enums import DrinkType, MeasureType, TransactionSource
from src.bb_common.errors import InsufficientBalanceError, InternalError
from src.bb_common.quantities import QuantityMap

# ---------------------------------------------------------------------------
# SQL: drink_balances
# ---------------------------------------------------------------------------

_GET_BALANCE_SQL = text("""
    SELECT drink_type, measure_type, to_consume, to_distribute
    FROM drink_balances
    WHERE group_id = :group_id AND user_id = :user_id
""")

_GET_BALANCE_ROW_SQL = text("""
    SELECT to_consume, to_distribute
    FROM drink_balances
    WHERE group_id = :group_id AND user_id = :user_id
      AND drink_type = :drink_type AND measure_type = :measure_type
""")

_CREDIT_SQL = text("""
    INSERT INTO drink_balances
        (group_id, user_id, drink_type, measure_type, to_consume, to_distribute)
    VALUES
        (:group_id, :user_id, :drink_type, :measure_type, :to_consume, :to_distribute)
    ON CONFLICT (group_id, user_id, drink_type, measure_type) DO UPDATE
        SET to_consume    = drink_balances.to_consume    + EXCLUDED.to_consume,
            to_distribute = drink_balances.to_distribute + EXCLUDED.to_distribute,
            updated_at = NOW()
    RETURNING to_consume, to_distribute
""")

_GUARDED_UPDATE_SQL = text("""
    UPDATE drink_balances
    SET to_consume    = to_consume    + :to_consume,
        to_distribute = to_distribute + :to_distribute,
        updated_at = NOW()
    WHERE group_id = :group_id AND user_id = :user_id
      AND drink_type = :drink_type AND measure_type = :measure_type
      AND to_consume    + :to_consume    >= 0
      AND to_distribute + :to_distribute >= 0
    RETURNING to_consume, to_distribute
""")

# ---------------------------------------------------------------------------
# SQL: drink_transactions (append-only)
# ---------------------------------------------------------------------------

_INSERT_TRANSACTION_SQL = text("""
    INSERT INTO drink_transactions
        (group_id, bet_id, from_user_id, from_username, to_user_id, to_username,
         drink_type, measure_type, amount, source, created_at)
    VALUES
        (:group_id, :bet_id, :from_user_id, :from_username, :to_user_id, :to_username,
         :drink_type, :measure_type, :amount, :source, :created_at)
    RETURNING id, bet_id, from_user_id, from_username, to_user_id, to_username,
              drink_type, measure_type, amount, source, created_at
""")

LIST_TRANSACTIONS_SQL = text("""
    SELECT id, bet_id, from_user_id, from_username, to_user_id, to_username,
           drink_type, measure_type, amount, source, created_at
    FROM drink_transactions
    WHERE group_id = :group_id
    ORDER BY id
""")


def row_to_transaction(row: object) -> DrinkTransaction:
    return DrinkTransaction(
        id=row.id,  # type: ignore[attr-defined]
        bet_id=row.bet_id,  # type: ignore[attr-defined]
        from_user_id=row.from_user_id,  # type: ignore[attr-defined]
        from_username=row.from_username,  # type: ignore[attr-defined]
        to_user_id=row.to_user_id,  # type: ignore[attr-defined]
        to_username=row.to_username,  # type: ignore[attr-defined]
        drink_type=DrinkType(row.drink_type),  # type: ignore[attr-defined]
        measure_type=MeasureType(row.measure_type),  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        source=TransactionSource(row.source),  # type: ignore[attr-defined]
        timestamp=row.created_at,  # type: ignore[attr-defined]
    )


class DrinkLedgerRepository:
    """Concrete repository. Every balance change is atomic at the SQL level."""

    async def get_balance(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> MemberBalance:
        result = await db.execute(
            _GET_BALANCE_SQL, {"group_id": group_id, "user_id": user_id}
        )
        balance = MemberBalance(group_id=group_id, user_id=user_id)
        for row in result.fetchall():
            drink_type = DrinkType(row.drink_type)
            measure_type = MeasureType(row.measure_type)
            balance.drinks_to_consume.add(drink_type, measure_type, row.to_consume)
            balance.drinks_to_distribute.add(drink_type, measure_type, row.to_distribute)
        return balance

    async def apply_delta(
        self, db: AsyncSession, group_id: str, delta: BalanceDelta
    ) -> None:
        params = {
            "group_id": group_id,
            "user_id": delta.user_id,
            "drink_type": delta.drink_type.value,
            "measure_type": delta.measure_type.value,
            "to_consume": delta.to_consume,
            "to_distribute": delta.to_distribute,
        }
        if delta.to_consume >= 0 and delta.to_distribute >= 0:
            result = await db.execute(_CREDIT_SQL, params)
            if result.fetchone() is None:
                raise InternalError("Balance upsert returned no rows; this should never happen")
            return

        result = await db.execute(_GUARDED_UPDATE_SQL, params)
        if result.fetchone() is not None:
            return

        current = (await db.execute(_GET_BALANCE_ROW_SQL, params)).fetchone()
        have_consume = current.to_consume if current else 0
        have_distribute = current.to_distribute if current else 0
        if have_distribute + delta.to_distribute < 0:
            raise InsufficientBalanceError(
                delta.drink_type.value, delta.measure_type.value,
                -delta.to_distribute, have_distribute,
            )
        raise InsufficientBalanceError(
            delta.drink_type.value, delta.measure_type.value,
            -delta.to_consume, have_consume,
        )

    async def append_transaction(
        self, db: AsyncSession, group_id: str, tx: DrinkTransaction
    ) -> DrinkTransaction:
        result = await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "group_id": group_id,
                "bet_id": tx.bet_id,
                "from_user_id": tx.from_user_id,
                "from_username": tx.from_username,
                "to_user_id": tx.to_user_id,
                "to_username": tx.to_username,
                "drink_type": tx.drink_type.value,
                "measure_type": tx.measure_type.value,
                "amount": tx.amount,
                "source": tx.source.value,
                "created_at": tx.timestamp,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows; this should never happen")
        return row_to_transaction(row)
