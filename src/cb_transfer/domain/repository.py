from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_transfer.domain.models import Transfer


class TransferRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, transfer: Transfer) -> Transfer: ...

    async def list_for_user(
        self, db: AsyncSession, user_id: str, cursor_id: str | None, limit: int
    ) -> list[Transfer]: ...
