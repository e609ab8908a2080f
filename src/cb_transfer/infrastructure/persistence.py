"""TransferRepository: transfers are insert-only."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.errors import InternalError
from src.cb_transfer.domain.models import Transfer

_COLUMNS = "id, from_user_id, to_user_id, amount, status, type, description, created_at"

_INSERT_SQL = text(f"""
    INSERT INTO transfers (id, from_user_id, to_user_id, amount, status, type, description)
    VALUES (:id, :from_user_id, :to_user_id, :amount, :status, :type, :description)
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM transfers
    WHERE (from_user_id = :user_id OR to_user_id = :user_id)
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_transfer(row: Any) -> Transfer:
    return Transfer(
        id=row.id,
        from_user_id=str(row.from_user_id),
        to_user_id=str(row.to_user_id),
        amount=row.amount,
        status=row.status,
        type=row.type,
        description=row.description,
        created_at=row.created_at,
    )


class TransferRepository:
    async def insert(self, db: AsyncSession, transfer: Transfer) -> Transfer:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": transfer.id,
                "from_user_id": transfer.from_user_id,
                "to_user_id": transfer.to_user_id,
                "amount": transfer.amount,
                "status": transfer.status,
                "type": transfer.type,
                "description": transfer.description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transfer insert returned no rows")
        return _row_to_transfer(row)

    async def list_for_user(
        self, db: AsyncSession, user_id: str, cursor_id: str | None, limit: int
    ) -> list[Transfer]:
        result = await db.execute(
            _LIST_SQL, {"user_id": user_id, "cursor_id": cursor_id, "limit": limit}
        )
        return [_row_to_transfer(row) for row in result.fetchall()]
