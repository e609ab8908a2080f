"""Raw SQL persistence for sales and payment QR codes.

Status changes are single guarded UPDATEs (WHERE status = :expected), so two
concurrent completes or refunds of one sale cannot both succeed, and a QR
code can be claimed exactly once.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.errors import InternalError
from src.cb_sales.domain.models import PaymentCode, Sale

_SALE_COLUMNS = """
    id, merchant_id, customer_id, amount, payment_method, status,
    platform_fee, client_cashback, referral_bonus, merchant_commission,
    merchant_net, referrer_id, source, payment_code, description,
    created_at, updated_at
"""

_INSERT_SALE_SQL = text(f"""
    INSERT INTO sales (id, merchant_id, customer_id, amount, payment_method, status,
        platform_fee, client_cashback, referral_bonus, merchant_commission,
        merchant_net, referrer_id, source, payment_code, description)
    VALUES (:id, :merchant_id, :customer_id, :amount, :payment_method, :status,
        :platform_fee, :client_cashback, :referral_bonus, :merchant_commission,
        :merchant_net, :referrer_id, :source, :payment_code, :description)
    RETURNING {_SALE_COLUMNS}
""")

_GET_SALE_SQL = text(f"SELECT {_SALE_COLUMNS} FROM sales WHERE id = :id")

_TRANSITION_SALE_SQL = text(f"""
    UPDATE sales
    SET status = :target, updated_at = NOW()
    WHERE id = :id AND status = :expected
    RETURNING {_SALE_COLUMNS}
""")

_LIST_SALES_SQL = text(f"""
    SELECT {_SALE_COLUMNS}
    FROM sales
    WHERE (CAST(:merchant_id AS TEXT) IS NULL OR merchant_id = CAST(:merchant_id AS TEXT))
      AND (CAST(:customer_id AS TEXT) IS NULL OR customer_id = CAST(:customer_id AS TEXT))
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_CODE_COLUMNS = """
    code, merchant_id, amount, status, expires_at, description,
    used_by, used_at, sale_id, created_at
"""

_INSERT_CODE_SQL = text(f"""
    INSERT INTO payment_codes (code, merchant_id, amount, status, expires_at, description)
    VALUES (:code, :merchant_id, :amount, :status, :expires_at, :description)
    RETURNING {_CODE_COLUMNS}
""")

_GET_CODE_SQL = text(f"SELECT {_CODE_COLUMNS} FROM payment_codes WHERE code = :code")

_CLAIM_CODE_SQL = text(f"""
    UPDATE payment_codes
    SET status = 'used', used_by = :used_by, used_at = NOW(), sale_id = :sale_id
    WHERE code = :code AND status = 'active' AND expires_at > NOW()
    RETURNING {_CODE_COLUMNS}
""")


def _row_to_sale(row: Any) -> Sale:
    return Sale(
        id=row.id,
        merchant_id=str(row.merchant_id),
        customer_id=str(row.customer_id),
        amount=row.amount,
        payment_method=row.payment_method,
        status=row.status,
        platform_fee=row.platform_fee,
        client_cashback=row.client_cashback,
        referral_bonus=row.referral_bonus,
        merchant_commission=row.merchant_commission,
        merchant_net=row.merchant_net,
        referrer_id=str(row.referrer_id) if row.referrer_id else None,
        source=row.source,
        payment_code=row.payment_code,
        description=row.description,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_code(row: Any) -> PaymentCode:
    return PaymentCode(
        code=row.code,
        merchant_id=str(row.merchant_id),
        amount=row.amount,
        status=row.status,
        expires_at=row.expires_at,
        description=row.description,
        used_by=str(row.used_by) if row.used_by else None,
        used_at=row.used_at,
        sale_id=row.sale_id,
        created_at=row.created_at,
    )


class SaleRepository:
    async def insert(self, db: AsyncSession, sale: Sale) -> Sale:
        result = await db.execute(
            _INSERT_SALE_SQL,
            {
                "id": sale.id,
                "merchant_id": sale.merchant_id,
                "customer_id": sale.customer_id,
                "amount": sale.amount,
                "payment_method": sale.payment_method,
                "status": sale.status,
                "platform_fee": sale.platform_fee,
                "client_cashback": sale.client_cashback,
                "referral_bonus": sale.referral_bonus,
                "merchant_commission": sale.merchant_commission,
                "merchant_net": sale.merchant_net,
                "referrer_id": sale.referrer_id,
                "source": sale.source,
                "payment_code": sale.payment_code,
                "description": sale.description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Sale insert returned no rows")
        return _row_to_sale(row)

    async def get_by_id(self, db: AsyncSession, sale_id: str) -> Sale | None:
        row = (await db.execute(_GET_SALE_SQL, {"id": sale_id})).fetchone()
        return _row_to_sale(row) if row else None

    async def transition(
        self, db: AsyncSession, sale_id: str, expected: str, target: str
    ) -> Sale | None:
        result = await db.execute(
            _TRANSITION_SALE_SQL,
            {"id": sale_id, "expected": expected, "target": target},
        )
        row = result.fetchone()
        return _row_to_sale(row) if row else None

    async def list_sales(
        self,
        db: AsyncSession,
        merchant_id: str | None,
        customer_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Sale]:
        result = await db.execute(
            _LIST_SALES_SQL,
            {
                "merchant_id": merchant_id,
                "customer_id": customer_id,
                "status": status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_sale(row) for row in result.fetchall()]


class PaymentCodeRepository:
    async def insert(self, db: AsyncSession, code: PaymentCode) -> PaymentCode:
        result = await db.execute(
            _INSERT_CODE_SQL,
            {
                "code": code.code,
                "merchant_id": code.merchant_id,
                "amount": code.amount,
                "status": code.status,
                "expires_at": code.expires_at,
                "description": code.description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Payment code insert returned no rows")
        return _row_to_code(row)

    async def get(self, db: AsyncSession, code: str) -> PaymentCode | None:
        row = (await db.execute(_GET_CODE_SQL, {"code": code})).fetchone()
        return _row_to_code(row) if row else None

    async def claim(
        self, db: AsyncSession, code: str, used_by: str, sale_id: str
    ) -> PaymentCode | None:
        result = await db.execute(
            _CLAIM_CODE_SQL, {"code": code, "used_by": used_by, "sale_id": sale_id}
        )
        row = result.fetchone()
        return _row_to_code(row) if row else None
