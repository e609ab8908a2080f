from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_notification.domain.models import Notification


class NotificationRepositoryProtocol(Protocol):
    async def insert(
        self,
        db: AsyncSession,
        user_id: str,
        type: str,
        title: str,
        message: str,
        data: dict[str, Any],
    ) -> Notification: ...

    async def insert_for_user_type(
        self,
        db: AsyncSession,
        user_type: str,
        type: str,
        title: str,
        message: str,
        data: dict[str, Any],
    ) -> int: ...

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        unread_only: bool,
        cursor_id: int | None,
        limit: int,
    ) -> list[Notification]: ...

    async def count_unread(self, db: AsyncSession, user_id: str) -> int: ...

    async def mark_read(
        self, db: AsyncSession, user_id: str, notification_id: int
    ) -> Notification | None: ...

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int: ...

    async def delete(
        self, db: AsyncSession, user_id: str, notification_id: int
    ) -> bool: ...
