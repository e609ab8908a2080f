"""ReferralRepository — read-only SQL over users and sales."""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_referral.domain.models import Referral, ReferralTotals

# A sale pays the customer's referrer first, else the merchant's. Attribute
# each bonus to whichever of the two parties this referrer brought in.
_LIST_SQL = text("""
    WITH earned AS (
        SELECT CASE
                   WHEN c.referred_by = CAST(:referrer_id AS UUID) THEN s.customer_id
                   ELSE s.merchant_id
               END AS referee_id,
               COUNT(*) AS sale_count,
               SUM(s.referral_bonus) AS bonus
        FROM sales s
        JOIN users c ON CAST(c.id AS TEXT) = s.customer_id
        WHERE s.referrer_id = :referrer_id AND s.status = 'completed'
        GROUP BY 1
    )
    SELECT u.id, u.name, u.user_type, u.store_name, u.is_active, u.created_at,
           COALESCE(e.sale_count, 0) AS completed_sales,
           COALESCE(e.bonus, 0) AS bonus_earned
    FROM users u
    LEFT JOIN earned e ON e.referee_id = CAST(u.id AS TEXT)
    WHERE u.referred_by = CAST(:referrer_id AS UUID)
      AND (CAST(:cursor_at AS TIMESTAMPTZ) IS NULL
           OR (u.created_at, u.id) < (CAST(:cursor_at AS TIMESTAMPTZ), CAST(:cursor_id AS UUID)))
    ORDER BY u.created_at DESC, u.id DESC
    LIMIT :limit
""")

_TOTALS_SQL = text("""
    SELECT
        (SELECT COUNT(*) FROM users WHERE referred_by = CAST(:referrer_id AS UUID))
            AS referral_count,
        (SELECT COALESCE(SUM(referral_bonus), 0) FROM sales
         WHERE referrer_id = :referrer_id AND status = 'completed')
            AS total_earned
""")


def _row_to_referral(row: Any) -> Referral:
    return Referral(
        user_id=str(row.id),
        name=row.name,
        user_type=row.user_type,
        store_name=row.store_name,
        is_active=row.is_active,
        joined_at=row.created_at,
        completed_sales=int(row.completed_sales),
        bonus_earned=int(row.bonus_earned),
    )


class ReferralRepository:
    async def list_referrals(
        self,
        db: AsyncSession,
        referrer_id: str,
        cursor: tuple[datetime, str] | None,
        limit: int,
    ) -> list[Referral]:
        cursor_at, cursor_id = cursor if cursor else (None, None)
        result = await db.execute(
            _LIST_SQL,
            {
                "referrer_id": referrer_id,
                "cursor_at": cursor_at,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_referral(row) for row in result.fetchall()]

    async def totals(self, db: AsyncSession, referrer_id: str) -> ReferralTotals:
        row = (await db.execute(_TOTALS_SQL, {"referrer_id": referrer_id})).fetchone()
        if row is None:
            return ReferralTotals()
        return ReferralTotals(int(row.referral_count), int(row.total_earned))
