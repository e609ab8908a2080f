"""Account REST API: balance and ledger, any authenticated user."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_account.application.service import AccountApplicationService
from src.cb_common.database import get_db_session
from src.cb_common.enums import LedgerEntryType
from src.cb_common.response import ApiResponse, wrap
from src.cb_gateway.auth.dependencies import get_current_user
from src.cb_gateway.user.db_models import UserModel

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, str(current_user.id))
    return wrap(request, data.model_dump())


@router.get("/ledger")
async def list_ledger(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: LedgerEntryType | None = Query(None, description="Filter by entry type"),
) -> ApiResponse:
    data = await _service.list_ledger(
        db,
        str(current_user.id),
        cursor,
        limit,
        entry_type.value if entry_type else None,
    )
    return wrap(request, data.model_dump())
