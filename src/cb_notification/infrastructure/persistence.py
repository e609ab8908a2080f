"""NotificationRepository — raw SQL over notifications."""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.errors import InternalError
from src.cb_notification.domain.models import Notification

_COLUMNS = "id, user_id, type, title, message, data, is_read, read_at, created_at"

_INSERT_SQL = text(f"""
    INSERT INTO notifications (user_id, type, title, message, data)
    VALUES (:user_id, :type, :title, :message, CAST(:data AS JSONB))
    RETURNING {_COLUMNS}
""")

# Fan-out to every active user of a type (e.g. all admins) in one statement
_INSERT_FOR_USER_TYPE_SQL = text("""
    INSERT INTO notifications (user_id, type, title, message, data)
    SELECT CAST(u.id AS TEXT), :type, :title, :message, CAST(:data AS JSONB)
    FROM users u
    WHERE u.user_type = :user_type AND u.is_active
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM notifications
    WHERE user_id = :user_id
      AND (NOT CAST(:unread_only AS BOOLEAN) OR NOT is_read)
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")

_COUNT_UNREAD_SQL = text("""
    SELECT COUNT(*) FROM notifications WHERE user_id = :user_id AND NOT is_read
""")

_MARK_READ_SQL = text(f"""
    UPDATE notifications
    SET is_read = TRUE, read_at = COALESCE(read_at, NOW())
    WHERE id = :id AND user_id = :user_id
    RETURNING {_COLUMNS}
""")

_MARK_ALL_READ_SQL = text("""
    UPDATE notifications
    SET is_read = TRUE, read_at = NOW()
    WHERE user_id = :user_id AND NOT is_read
""")

_DELETE_SQL = text("""
    DELETE FROM notifications WHERE id = :id AND user_id = :user_id RETURNING id
""")


def _row_to_notification(row: Any) -> Notification:
    data = row.data
    if isinstance(data, str):
        data = json.loads(data)
    return Notification(
        id=row.id,
        user_id=str(row.user_id),
        type=row.type,
        title=row.title,
        message=row.message,
        data=data or {},
        is_read=row.is_read,
        read_at=row.read_at,
        created_at=row.created_at,
    )


class NotificationRepository:
    async def insert(
        self,
        db: AsyncSession,
        user_id: str,
        type: str,
        title: str,
        message: str,
        data: dict[str, Any],
    ) -> Notification:
        result = await db.execute(
            _INSERT_SQL,
            {
                "user_id": user_id,
                "type": type,
                "title": title,
                "message": message,
                "data": json.dumps(data),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Notification insert returned no rows")
        return _row_to_notification(row)

    async def insert_for_user_type(
        self,
        db: AsyncSession,
        user_type: str,
        type: str,
        title: str,
        message: str,
        data: dict[str, Any],
    ) -> int:
        result = await db.execute(
            _INSERT_FOR_USER_TYPE_SQL,
            {
                "user_type": user_type,
                "type": type,
                "title": title,
                "message": message,
                "data": json.dumps(data),
            },
        )
        return result.rowcount or 0

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        unread_only: bool,
        cursor_id: int | None,
        limit: int,
    ) -> list[Notification]:
        result = await db.execute(
            _LIST_SQL,
            {
                "user_id": user_id,
                "unread_only": unread_only,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_notification(row) for row in result.fetchall()]

    async def count_unread(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_COUNT_UNREAD_SQL, {"user_id": user_id})
        return int(result.scalar_one())

    async def mark_read(
        self, db: AsyncSession, user_id: str, notification_id: int
    ) -> Notification | None:
        result = await db.execute(
            _MARK_READ_SQL, {"id": notification_id, "user_id": user_id}
        )
        row = result.fetchone()
        return _row_to_notification(row) if row else None

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_MARK_ALL_READ_SQL, {"user_id": user_id})
        return result.rowcount or 0

    async def delete(
        self, db: AsyncSession, user_id: str, notification_id: int
    ) -> bool:
        result = await db.execute(
            _DELETE_SQL, {"id": notification_id, "user_id": user_id}
        )
        return result.fetchone() is not None
