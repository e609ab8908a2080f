"""Pydantic schemas for the notification inbox."""

from typing import Any

from pydantic import BaseModel

from src.cb_notification.domain.models import Notification


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    data: dict[str, Any]
    is_read: bool
    read_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, n: Notification) -> "NotificationResponse":
        return cls(
            id=n.id,
            type=n.type,
            title=n.title,
            message=n.message,
            data=n.data,
            is_read=n.is_read,
            read_at=n.read_at.isoformat() if n.read_at else None,
            created_at=n.created_at.isoformat() if n.created_at else None,
        )


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    unread_count: int
    next_cursor: str | None
    has_more: bool


class MarkAllReadResponse(BaseModel):
    updated: int
