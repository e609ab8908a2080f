"""Peer-to-peer transfer API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.database import get_db_session
from src.cb_common.response import ApiResponse, wrap
from src.cb_gateway.auth.dependencies import get_current_user
from src.cb_gateway.user.db_models import UserModel
from src.cb_transfer.application.schemas import CreateTransferRequest
from src.cb_transfer.application.service import TransferService

router = APIRouter(prefix="/transfers", tags=["transfers"])

_service = TransferService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transfer(
    body: CreateTransferRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create(
        db, str(current_user.id), body.to_user_id, body.amount, body.description
    )
    return wrap(request, data.model_dump(), "Transfer completed")


@router.get("")
async def list_transfers(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (transfer ID)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_own(db, str(current_user.id), cursor, limit)
    return wrap(request, data.model_dump())
