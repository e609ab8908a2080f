"""RateConfigProvider — holds the process-wide RateConfig.

Loaded once at startup (lifespan), swapped atomically when an admin saves
new rates. Request handlers get it through the `get_rate_config` dependency
so every calculator call in a request sees one consistent configuration.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import settings
from src.cb_pricing.domain.rates import RateConfig
from src.cb_pricing.domain.repository import RateSettingsRepositoryProtocol
from src.cb_pricing.infrastructure.persistence import RateSettingsRepository

logger = logging.getLogger("cb.pricing")


def rates_from_settings() -> RateConfig:
    return RateConfig(
        platform_fee_rate=settings.DEFAULT_PLATFORM_FEE_RATE,
        client_cashback_rate=settings.DEFAULT_CLIENT_CASHBACK_RATE,
        referral_bonus_rate=settings.DEFAULT_REFERRAL_BONUS_RATE,
        merchant_commission_rate=settings.DEFAULT_MERCHANT_COMMISSION_RATE,
        withdrawal_fee_rate=settings.DEFAULT_WITHDRAWAL_FEE_RATE,
        min_withdrawal=settings.DEFAULT_MIN_WITHDRAWAL,
    )


class RateConfigProvider:
    # TODO: broadcast rate updates over Redis pub/sub so every API worker
    # swaps its copy, not only the worker that handled the PUT.

    def __init__(
        self,
        repo: RateSettingsRepositoryProtocol | None = None,
        defaults: RateConfig | None = None,
    ) -> None:
        self._repo: RateSettingsRepositoryProtocol = repo or RateSettingsRepository()
        self._defaults = defaults
        self._current: RateConfig | None = None

    @property
    def current(self) -> RateConfig:
        if self._current is None:
            if self._defaults is None:
                self._defaults = rates_from_settings()
            return self._defaults
        return self._current

    @property
    def loaded(self) -> bool:
        return self._current is not None

    async def load(self, session_factory: async_sessionmaker[AsyncSession]) -> RateConfig:
        """Read rates from the DB, seeding the row from settings if absent.

        A failed read is retried once; a second failure propagates.
        """
        try:
            rates = await self._load_once(session_factory)
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Loading rate configuration failed (%s), retrying once", exc)
            rates = await self._load_once(session_factory)
        self._current = rates
        logger.info("Rate configuration loaded: %s", rates)
        return rates

    async def _load_once(self, session_factory: async_sessionmaker[AsyncSession]) -> RateConfig:
        async with session_factory() as db:
            async with db.begin():
                rates = await self._repo.get_rates(db)
                if rates is None:
                    rates = await self._repo.save_rates(db, self.current, updated_by=None)
        return rates

    async def update(
        self, db: AsyncSession, rates: RateConfig, updated_by: str | None
    ) -> RateConfig:
        """Persist new rates and swap them in only after the commit succeeds."""
        try:
            saved = await self._repo.save_rates(db, rates, updated_by)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        self._current = saved
        logger.info("Rate configuration updated by %s: %s", updated_by, saved)
        return saved


rate_provider = RateConfigProvider()


def get_rate_config() -> RateConfig:
    """FastAPI dependency: the active RateConfig."""
    return rate_provider.current
