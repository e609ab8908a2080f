"""Referral REST API: the public invitation lookup and the referrer dashboard."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.database import get_db_session
from src.cb_common.response import ApiResponse, wrap
from src.cb_gateway.auth.dependencies import get_current_user
from src.cb_gateway.user.db_models import UserModel
from src.cb_pricing.application.provider import get_rate_config
from src.cb_pricing.domain.rates import RateConfig
from src.cb_referral.application.service import ReferralService

router = APIRouter(tags=["referrals"])

_service = ReferralService()


@router.get("/referrals")
async def my_referrals(
    user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rates: Annotated[RateConfig, Depends(get_rate_config)],
    request: Request,
    cursor: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.overview(db, user, rates, cursor, limit)
    return wrap(request, data.model_dump())


# Public: the sign-up page validates a shared link before the user registers
@router.get("/invite/{code}")
async def lookup_invite(
    code: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rates: Annotated[RateConfig, Depends(get_rate_config)],
    request: Request,
) -> ApiResponse:
    data = await _service.lookup_invite(db, code, rates)
    return wrap(request, data.model_dump())
