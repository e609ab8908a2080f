# src/cb_admin/api/router.py
"""Admin REST API: rate configuration, user status and fee reports."""
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_admin.application.service import AdminService
from src.cb_common.database import get_db_session
from src.cb_common.response import ApiResponse, wrap
from src.cb_gateway.auth.dependencies import require_admin
from src.cb_gateway.user.db_models import UserModel
from src.cb_pricing.application.schemas import UpdateRatesRequest

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class UserStatusRequest(BaseModel):
    is_active: bool


@router.put("/settings/rates")
async def update_rates(
    body: UpdateRatesRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_rates(db, body.to_rate_config(), str(admin.id))
    return wrap(request, data.model_dump(), "Rates updated")


@router.get("/reports/fees")
async def fee_report(
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    start_date: date = Query(..., description="First day, inclusive (UTC)"),
    end_date: date = Query(..., description="Last day, inclusive (UTC)"),
) -> ApiResponse:
    data = await _service.fee_report(db, start_date, end_date)
    return wrap(request, data)


@router.patch("/users/{user_id}/status")
async def set_user_status(
    user_id: str,
    body: UserStatusRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.set_user_status(db, admin, user_id, body.is_active)
    return wrap(request, data, "User enabled" if body.is_active else "User disabled")
