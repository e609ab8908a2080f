"""Notification inbox REST API. Every authenticated user has one."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.database import get_db_session
from src.cb_common.response import ApiResponse, wrap
from src.cb_gateway.auth.dependencies import get_current_user
from src.cb_gateway.user.db_models import UserModel
from src.cb_notification.application.service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])

_service = NotificationService()


@router.get("")
async def list_notifications(
    user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    unread_only: bool = Query(False),
    cursor: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.inbox(db, str(user.id), unread_only, cursor, limit)
    return wrap(request, data.model_dump())


# Declared before /{notification_id}/read so "read-all" is not parsed as an id
@router.patch("/read-all")
async def mark_all_read(
    user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.mark_all_read(db, str(user.id))
    return wrap(request, data.model_dump(), "Notifications marked as read")


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.mark_read(db, str(user.id), notification_id)
    return wrap(request, data.model_dump(), "Notification marked as read")


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.delete(db, str(user.id), notification_id)
    return wrap(request, None, "Notification deleted")
