# src/cb_admin/application/service.py
"""Admin application service: rate updates, user status and the platform fee report."""
import logging
from datetime import date
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.datetime_utils import day_range_utc
from src.cb_common.enums import UserType
from src.cb_common.errors import (
    UserNotFoundError,
    UserStatusChangeError,
    ValidationError,
)
from src.cb_common.money import from_cents
from src.cb_gateway.user.db_models import UserModel
from src.cb_gateway.user.service import UserService
from src.cb_pricing.application.provider import RateConfigProvider, rate_provider
from src.cb_pricing.application.schemas import RatesResponse
from src.cb_pricing.domain.rates import RateConfig

logger = logging.getLogger("cb.admin")

_SALES_FEES_SQL = text("""
    SELECT
        COUNT(*) AS sale_count,
        COALESCE(SUM(amount), 0) AS gross_amount,
        COALESCE(SUM(platform_fee), 0) AS platform_fee,
        COALESCE(SUM(client_cashback), 0) AS client_cashback,
        COALESCE(SUM(referral_bonus) FILTER (WHERE referrer_id IS NOT NULL), 0)
            AS referral_bonus,
        COALESCE(SUM(merchant_net), 0) AS merchant_net
    FROM sales
    WHERE status = 'completed'
      AND created_at >= :start AND created_at < :end
""")

_SALES_FEES_BY_MERCHANT_SQL = text("""
    SELECT
        merchant_id,
        COUNT(*) AS sale_count,
        COALESCE(SUM(amount), 0) AS gross_amount,
        COALESCE(SUM(platform_fee), 0) AS platform_fee
    FROM sales
    WHERE status = 'completed'
      AND created_at >= :start AND created_at < :end
    GROUP BY merchant_id
    ORDER BY platform_fee DESC, merchant_id
""")

_WITHDRAWAL_FEES_SQL = text("""
    SELECT
        COUNT(*) AS withdrawal_count,
        COALESCE(SUM(fee_amount), 0) AS withdrawal_fees
    FROM withdrawal_requests
    WHERE status = 'completed'
      AND processed_at >= :start AND processed_at < :end
""")

_SET_USER_STATUS_SQL = text("""
    UPDATE users
    SET is_active = :is_active, updated_at = NOW()
    WHERE id = :id
    RETURNING id, username, user_type, is_active, updated_at
""")

_MAX_REPORT_DAYS = 366


def _money(cents: Any) -> str:
    return str(from_cents(int(cents)))


class AdminService:
    def __init__(
        self,
        provider: RateConfigProvider | None = None,
        users: UserService | None = None,
    ) -> None:
        self._provider = provider or rate_provider
        self._users = users or UserService()

    async def update_rates(
        self, db: AsyncSession, rates: RateConfig, admin_id: str
    ) -> RatesResponse:
        saved = await self._provider.update(db, rates, updated_by=admin_id)
        logger.info("Admin %s updated rates", admin_id)
        return RatesResponse.from_domain(saved)

    async def set_user_status(
        self, db: AsyncSession, admin: UserModel, user_id: str, is_active: bool
    ) -> dict[str, Any]:
        """Enable or disable a client or merchant account.

        A disabled user keeps their balance but is refused on every
        authenticated request, cannot refresh tokens and cannot receive
        transfers. Admin accounts are not managed here.
        """
        try:
            user = await self._users.get_user(user_id, db)
            if user.id == admin.id:
                raise UserStatusChangeError("admins cannot change their own status")
            if user.user_type == UserType.ADMIN.value:
                raise UserStatusChangeError("admin accounts are not managed here")
            row = (
                await db.execute(
                    _SET_USER_STATUS_SQL, {"id": user.id, "is_active": is_active}
                )
            ).fetchone()
            if row is None:
                raise UserNotFoundError(user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Admin %s set user %s is_active=%s", admin.id, user_id, is_active
        )
        return {
            "user_id": str(row.id),
            "username": row.username,
            "user_type": row.user_type,
            "is_active": row.is_active,
            "updated_at": row.updated_at.isoformat(),
        }

    async def fee_report(
        self, db: AsyncSession, start: date, end: date
    ) -> dict[str, Any]:
        """Totals over completed sales created in [start, end] (UTC, inclusive dates).

        Referral bonuses only count when a referrer was paid; the platform
        keeps the rest of the fee.
        """
        try:
            lo, hi = day_range_utc(start, end)
        except ValueError as exc:
            raise ValidationError(str(exc)) from None
        if (end - start).days >= _MAX_REPORT_DAYS:
            raise ValidationError(f"Report range is limited to {_MAX_REPORT_DAYS} days")

        params = {"start": lo, "end": hi}
        sales = (await db.execute(_SALES_FEES_SQL, params)).fetchone()
        merchants = (await db.execute(_SALES_FEES_BY_MERCHANT_SQL, params)).fetchall()
        withdrawals = (await db.execute(_WITHDRAWAL_FEES_SQL, params)).fetchone()

        platform_fee = int(sales.platform_fee) if sales else 0
        referral_bonus = int(sales.referral_bonus) if sales else 0
        withdrawal_fees = int(withdrawals.withdrawal_fees) if withdrawals else 0
        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "sale_count": int(sales.sale_count) if sales else 0,
            "gross_amount": _money(sales.gross_amount if sales else 0),
            "platform_fee": _money(platform_fee),
            "client_cashback": _money(sales.client_cashback if sales else 0),
            "referral_bonus": _money(referral_bonus),
            "merchant_net": _money(sales.merchant_net if sales else 0),
            "platform_retained": _money(platform_fee - referral_bonus),
            "withdrawal_count": int(withdrawals.withdrawal_count) if withdrawals else 0,
            "withdrawal_fees": _money(withdrawal_fees),
            "platform_revenue": _money(platform_fee - referral_bonus + withdrawal_fees),
            "by_merchant": [
                {
                    "merchant_id": str(m.merchant_id),
                    "sale_count": int(m.sale_count),
                    "gross_amount": _money(m.gross_amount),
                    "platform_fee": _money(m.platform_fee),
                }
                for m in merchants
            ],
        }
