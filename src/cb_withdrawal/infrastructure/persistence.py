"""WithdrawalRepository — raw SQL over withdrawal_requests."""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.errors import InternalError
from src.cb_withdrawal.domain.models import WithdrawalRequest

_COLUMNS = """
    id, merchant_id, amount, fee_amount, net_amount, fee_rate, status,
    bank_details, admin_notes, processed_by, processed_at, created_at, updated_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO withdrawal_requests
        (id, merchant_id, amount, fee_amount, net_amount, fee_rate, status, bank_details)
    VALUES
        (:id, :merchant_id, :amount, :fee_amount, :net_amount, :fee_rate, :status,
         CAST(:bank_details AS JSONB))
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM withdrawal_requests WHERE id = :id")

_TRANSITION_SQL = text(f"""
    UPDATE withdrawal_requests
    SET status = :target,
        processed_by = :processed_by,
        admin_notes = :admin_notes,
        processed_at = NOW(),
        updated_at = NOW()
    WHERE id = :id AND status = 'pending'
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM withdrawal_requests
    WHERE (CAST(:merchant_id AS TEXT) IS NULL OR merchant_id = CAST(:merchant_id AS TEXT))
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_PENDING_SUMMARY_SQL = text("""
    SELECT COALESCE(SUM(amount), 0) AS total, COUNT(*) AS count
    FROM withdrawal_requests
    WHERE merchant_id = :merchant_id AND status = 'pending'
""")


def _row_to_request(row: Any) -> WithdrawalRequest:
    details = row.bank_details
    if isinstance(details, str):
        details = json.loads(details)
    return WithdrawalRequest(
        id=row.id,
        merchant_id=str(row.merchant_id),
        amount=row.amount,
        fee_amount=row.fee_amount,
        net_amount=row.net_amount,
        fee_rate=row.fee_rate,
        status=row.status,
        bank_details=details or {},
        admin_notes=row.admin_notes,
        processed_by=str(row.processed_by) if row.processed_by else None,
        processed_at=row.processed_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class WithdrawalRepository:
    async def insert(
        self, db: AsyncSession, request: WithdrawalRequest
    ) -> WithdrawalRequest:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": request.id,
                "merchant_id": request.merchant_id,
                "amount": request.amount,
                "fee_amount": request.fee_amount,
                "net_amount": request.net_amount,
                "fee_rate": request.fee_rate,
                "status": request.status,
                "bank_details": json.dumps(request.bank_details),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Withdrawal insert returned no rows")
        return _row_to_request(row)

    async def get_by_id(
        self, db: AsyncSession, withdrawal_id: str
    ) -> WithdrawalRequest | None:
        row = (await db.execute(_GET_SQL, {"id": withdrawal_id})).fetchone()
        return _row_to_request(row) if row else None

    async def transition(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        target: str,
        processed_by: str | None,
        admin_notes: str | None,
    ) -> WithdrawalRequest | None:
        result = await db.execute(
            _TRANSITION_SQL,
            {
                "id": withdrawal_id,
                "target": target,
                "processed_by": processed_by,
                "admin_notes": admin_notes,
            },
        )
        row = result.fetchone()
        return _row_to_request(row) if row else None

    async def list_requests(
        self,
        db: AsyncSession,
        merchant_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[WithdrawalRequest]:
        result = await db.execute(
            _LIST_SQL,
            {
                "merchant_id": merchant_id,
                "status": status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_request(row) for row in result.fetchall()]

    async def pending_summary(
        self, db: AsyncSession, merchant_id: str
    ) -> tuple[int, int]:
        row = (
            await db.execute(_PENDING_SUMMARY_SQL, {"merchant_id": merchant_id})
        ).fetchone()
        if row is None:
            return 0, 0
        return int(row.total), int(row.count)
