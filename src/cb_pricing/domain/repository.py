"""Repository Protocol for the commission_settings row."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_pricing.domain.rates import RateConfig


class RateSettingsRepositoryProtocol(Protocol):
    async def get_rates(self, db: AsyncSession) -> RateConfig | None: ...

    async def save_rates(
        self, db: AsyncSession, rates: RateConfig, updated_by: str | None
    ) -> RateConfig: ...
