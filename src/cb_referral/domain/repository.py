from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_referral.domain.models import Referral, ReferralTotals


class ReferralRepositoryProtocol(Protocol):
    async def list_referrals(
        self,
        db: AsyncSession,
        referrer_id: str,
        cursor: tuple[datetime, str] | None,
        limit: int,
    ) -> list[Referral]: ...

    async def totals(self, db: AsyncSession, referrer_id: str) -> ReferralTotals: ...
