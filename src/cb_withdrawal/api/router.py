"""Withdrawal REST API: merchant self-service and admin processing."""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.database import get_db_session
from src.cb_common.enums import WithdrawalStatus
from src.cb_common.response import ApiResponse, wrap
from src.cb_gateway.auth.dependencies import require_admin, require_merchant
from src.cb_gateway.user.db_models import UserModel
from src.cb_pricing.application.provider import get_rate_config
from src.cb_pricing.domain.rates import RateConfig
from src.cb_withdrawal.application.schemas import (
    CreateWithdrawalRequest,
    ProcessWithdrawalRequest,
)
from src.cb_withdrawal.application.service import WithdrawalService

router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])
admin_router = APIRouter(prefix="/admin/withdrawals", tags=["admin"])

_service = WithdrawalService()


@router.get("/wallet")
async def wallet(
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rates: Annotated[RateConfig, Depends(get_rate_config)],
    request: Request,
) -> ApiResponse:
    data = await _service.wallet(db, str(merchant.id), rates)
    return wrap(request, data.model_dump())


@router.get("/preview")
async def preview(
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rates: Annotated[RateConfig, Depends(get_rate_config)],
    request: Request,
    amount: Decimal = Query(..., gt=0, decimal_places=2),
) -> ApiResponse:
    data = await _service.preview(db, str(merchant.id), amount, rates)
    return wrap(request, data.model_dump())


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_withdrawal(
    body: CreateWithdrawalRequest,
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rates: Annotated[RateConfig, Depends(get_rate_config)],
    request: Request,
) -> ApiResponse:
    data = await _service.create(
        db, str(merchant.id), body.amount, body.bank_details.model_dump(), rates
    )
    return wrap(request, data.model_dump(), "Withdrawal requested")


@router.get("")
async def list_withdrawals(
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    withdrawal_status: WithdrawalStatus | None = Query(None, alias="status"),
    cursor: str | None = Query(None, description="Pagination cursor (withdrawal ID)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_own(
        db,
        str(merchant.id),
        withdrawal_status.value if withdrawal_status else None,
        cursor,
        limit,
    )
    return wrap(request, data.model_dump())


@router.post("/{withdrawal_id}/cancel")
async def cancel_withdrawal(
    withdrawal_id: str,
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel(db, str(merchant.id), withdrawal_id)
    return wrap(request, data.model_dump(), "Withdrawal cancelled")


@admin_router.get("")
async def admin_list_withdrawals(
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    withdrawal_status: WithdrawalStatus | None = Query(None, alias="status"),
    cursor: str | None = Query(None, description="Pagination cursor (withdrawal ID)"),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await _service.list_all(
        db, withdrawal_status.value if withdrawal_status else None, cursor, limit
    )
    return wrap(request, data.model_dump())


@admin_router.post("/{withdrawal_id}/process")
async def process_withdrawal(
    withdrawal_id: str,
    body: ProcessWithdrawalRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.process(
        db, str(admin.id), withdrawal_id, body.status, body.admin_notes
    )
    return wrap(request, data.model_dump(), f"Withdrawal {body.status}")
