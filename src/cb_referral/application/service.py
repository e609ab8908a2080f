"""ReferralService — invitation links and the referrer's dashboard."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.money import from_cents, rate_to_percent
from src.cb_gateway.user.db_models import UserModel
from src.cb_gateway.user.service import UserService
from src.cb_pricing.domain.rates import RateConfig
from src.cb_referral.application.schemas import (
    InviteResponse,
    ReferralOverviewResponse,
    ReferralResponse,
    referral_cursor_decode,
    referral_cursor_encode,
)
from src.cb_referral.domain.repository import ReferralRepositoryProtocol
from src.cb_referral.infrastructure.persistence import ReferralRepository


class ReferralService:
    def __init__(
        self,
        repo: ReferralRepositoryProtocol | None = None,
        users: UserService | None = None,
    ) -> None:
        self._repo: ReferralRepositoryProtocol = repo or ReferralRepository()
        self._users = users or UserService()

    async def overview(
        self,
        db: AsyncSession,
        user: UserModel,
        rates: RateConfig,
        cursor: str | None,
        limit: int,
    ) -> ReferralOverviewResponse:
        """The caller's invitation code, lifetime totals and one page of referrals."""
        user_id = str(user.id)
        rows = await self._repo.list_referrals(
            db, user_id, referral_cursor_decode(cursor), limit + 1
        )
        has_more = len(rows) > limit
        page = rows[:limit]
        totals = await self._repo.totals(db, user_id)
        return ReferralOverviewResponse(
            invitation_code=user.invitation_code,
            referral_bonus_percent=rate_to_percent(rates.referral_bonus_rate),
            referral_count=totals.referral_count,
            total_earned=str(from_cents(totals.total_earned)),
            items=[ReferralResponse.from_domain(r) for r in page],
            next_cursor=(
                referral_cursor_encode(page[-1].joined_at, page[-1].user_id)
                if has_more and page
                else None
            ),
            has_more=has_more,
        )

    async def lookup_invite(
        self, db: AsyncSession, code: str, rates: RateConfig
    ) -> InviteResponse:
        referrer = await self._users.get_by_invitation_code(code, db)
        return InviteResponse(
            valid=True,
            invitation_code=referrer.invitation_code,
            referrer_name=referrer.store_name or referrer.name,
            referrer_type=referrer.user_type,
            referral_bonus_percent=rate_to_percent(rates.referral_bonus_rate),
        )
