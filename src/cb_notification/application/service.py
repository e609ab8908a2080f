"""NotificationService — per-user inbox.

The ``notify*`` methods only write rows; they run inside the caller's
transaction so a notice exists exactly when its event was committed.
Inbox operations (read, delete) commit on their own.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_account.application.schemas import cursor_decode, cursor_encode
from src.cb_common.enums import NotificationType, UserType, WithdrawalStatus
from src.cb_common.errors import NotificationNotFoundError
from src.cb_common.money import from_cents
from src.cb_notification.application.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from src.cb_notification.domain.models import (
    Notification,
    admin_withdrawal_notice,
    transfer_received_notice,
    withdrawal_notice,
)
from src.cb_notification.domain.repository import NotificationRepositoryProtocol
from src.cb_notification.infrastructure.persistence import NotificationRepository

logger = logging.getLogger("cb.notification")


class NotificationService:
    def __init__(self, repo: NotificationRepositoryProtocol | None = None) -> None:
        self._repo: NotificationRepositoryProtocol = repo or NotificationRepository()

    # ------------------------------------------------------------------
    # Writers (no commit)
    # ------------------------------------------------------------------

    async def notify(
        self,
        db: AsyncSession,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        return await self._repo.insert(
            db, user_id, type.value, title, message, data or {}
        )

    async def notify_admins(
        self,
        db: AsyncSession,
        type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> int:
        return await self._repo.insert_for_user_type(
            db, UserType.ADMIN.value, type.value, title, message, data or {}
        )

    async def withdrawal_status_changed(
        self,
        db: AsyncSession,
        merchant_id: str,
        withdrawal_id: str,
        status: str,
        amount: int,
        net_amount: int,
        admin_notes: str | None = None,
        merchant_name: str | None = None,
    ) -> None:
        data = {
            "withdrawal_id": withdrawal_id,
            "status": status,
            "amount": str(from_cents(amount)),
        }
        title, message = withdrawal_notice(status, amount, net_amount, admin_notes)
        await self.notify(
            db, merchant_id, NotificationType.WITHDRAWAL, title, message, data
        )
        if status == WithdrawalStatus.PENDING.value:
            title, message = admin_withdrawal_notice(merchant_name or merchant_id, amount)
            await self.notify_admins(
                db,
                NotificationType.WITHDRAWAL,
                title,
                message,
                {**data, "merchant_id": merchant_id},
            )

    async def transfer_received(
        self,
        db: AsyncSession,
        to_user_id: str,
        from_user_id: str,
        transfer_id: str,
        amount: int,
    ) -> Notification:
        title, message = transfer_received_notice(amount)
        return await self.notify(
            db,
            to_user_id,
            NotificationType.TRANSFER,
            title,
            message,
            {
                "transfer_id": transfer_id,
                "from_user_id": from_user_id,
                "amount": str(from_cents(amount)),
            },
        )

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    async def inbox(
        self,
        db: AsyncSession,
        user_id: str,
        unread_only: bool,
        cursor: str | None,
        limit: int,
    ) -> NotificationListResponse:
        rows = await self._repo.list_for_user(
            db, user_id, unread_only, cursor_decode(cursor), limit + 1
        )
        has_more = len(rows) > limit
        page = rows[:limit]
        unread = await self._repo.count_unread(db, user_id)
        return NotificationListResponse(
            items=[NotificationResponse.from_domain(n) for n in page],
            unread_count=unread,
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )

    async def mark_read(
        self, db: AsyncSession, user_id: str, notification_id: int
    ) -> NotificationResponse:
        try:
            notification = await self._repo.mark_read(db, user_id, notification_id)
            if notification is None:
                raise NotificationNotFoundError(notification_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return NotificationResponse.from_domain(notification)

    async def mark_all_read(
        self, db: AsyncSession, user_id: str
    ) -> MarkAllReadResponse:
        try:
            updated = await self._repo.mark_all_read(db, user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return MarkAllReadResponse(updated=updated)

    async def delete(
        self, db: AsyncSession, user_id: str, notification_id: int
    ) -> None:
        try:
            if not await self._repo.delete(db, user_id, notification_id):
                raise NotificationNotFoundError(notification_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Notification %s deleted by %s", notification_id, user_id)
