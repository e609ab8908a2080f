"""RateSettingsRepository — single-row commission_settings table (id = 1).

Rates are stored as NUMERIC fractions; min_withdrawal as BIGINT cents.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.errors import InternalError
from src.cb_common.money import from_cents, to_cents
from src.cb_pricing.domain.rates import RateConfig

_GET_RATES_SQL = text("""
    SELECT platform_fee_rate, client_cashback_rate, referral_bonus_rate,
           merchant_commission_rate, withdrawal_fee_rate, min_withdrawal_cents
    FROM commission_settings
    WHERE id = 1
""")

_UPSERT_RATES_SQL = text("""
    INSERT INTO commission_settings
        (id, platform_fee_rate, client_cashback_rate, referral_bonus_rate,
         merchant_commission_rate, withdrawal_fee_rate, min_withdrawal_cents, updated_by)
    VALUES
        (1, :platform_fee_rate, :client_cashback_rate, :referral_bonus_rate,
         :merchant_commission_rate, :withdrawal_fee_rate, :min_withdrawal_cents, :updated_by)
    ON CONFLICT (id) DO UPDATE SET
        platform_fee_rate        = EXCLUDED.platform_fee_rate,
        client_cashback_rate     = EXCLUDED.client_cashback_rate,
        referral_bonus_rate      = EXCLUDED.referral_bonus_rate,
        merchant_commission_rate = EXCLUDED.merchant_commission_rate,
        withdrawal_fee_rate      = EXCLUDED.withdrawal_fee_rate,
        min_withdrawal_cents     = EXCLUDED.min_withdrawal_cents,
        updated_by               = EXCLUDED.updated_by,
        updated_at               = NOW()
    RETURNING platform_fee_rate, client_cashback_rate, referral_bonus_rate,
              merchant_commission_rate, withdrawal_fee_rate, min_withdrawal_cents
""")


def _row_to_rates(row: object) -> RateConfig:
    return RateConfig(
        platform_fee_rate=row.platform_fee_rate,  # type: ignore[attr-defined]
        client_cashback_rate=row.client_cashback_rate,  # type: ignore[attr-defined]
        referral_bonus_rate=row.referral_bonus_rate,  # type: ignore[attr-defined]
        merchant_commission_rate=row.merchant_commission_rate,  # type: ignore[attr-defined]
        withdrawal_fee_rate=row.withdrawal_fee_rate,  # type: ignore[attr-defined]
        min_withdrawal=from_cents(row.min_withdrawal_cents),  # type: ignore[attr-defined]
    )


class RateSettingsRepository:
    async def get_rates(self, db: AsyncSession) -> RateConfig | None:
        result = await db.execute(_GET_RATES_SQL)
        row = result.fetchone()
        return _row_to_rates(row) if row else None

    async def save_rates(
        self, db: AsyncSession, rates: RateConfig, updated_by: str | None
    ) -> RateConfig:
        result = await db.execute(
            _UPSERT_RATES_SQL,
            {
                "platform_fee_rate": rates.platform_fee_rate,
                "client_cashback_rate": rates.client_cashback_rate,
                "referral_bonus_rate": rates.referral_bonus_rate,
                "merchant_commission_rate": rates.merchant_commission_rate,
                "withdrawal_fee_rate": rates.withdrawal_fee_rate,
                "min_withdrawal_cents": to_cents(rates.min_withdrawal),
                "updated_by": updated_by,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("commission_settings upsert returned no rows")
        return _row_to_rates(row)
