"""Rate settings and split preview endpoints (any authenticated user)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.cb_common.response import ApiResponse, wrap
from src.cb_gateway.auth.dependencies import get_current_user
from src.cb_gateway.user.db_models import UserModel
from src.cb_pricing.application.provider import get_rate_config
from src.cb_pricing.application.schemas import RatesResponse, SplitRequest, SplitResponse
from src.cb_pricing.domain.rates import RateConfig
from src.cb_pricing.domain.split import compute_value_split

router = APIRouter(tags=["pricing"])


@router.get("/settings/rates")
async def get_rates(
    _user: Annotated[UserModel, Depends(get_current_user)],
    rates: Annotated[RateConfig, Depends(get_rate_config)],
    request: Request,
) -> ApiResponse:
    return wrap(request, RatesResponse.from_domain(rates).model_dump())


@router.post("/pricing/split")
async def preview_split(
    body: SplitRequest,
    _user: Annotated[UserModel, Depends(get_current_user)],
    rates: Annotated[RateConfig, Depends(get_rate_config)],
    request: Request,
) -> ApiResponse:
    split = compute_value_split(body.amount, rates)
    return wrap(request, SplitResponse.from_domain(split).model_dump())
