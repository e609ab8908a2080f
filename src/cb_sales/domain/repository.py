"""Repository Protocols for sales and payment QR codes."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_sales.domain.models import PaymentCode, Sale


class SaleRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, sale: Sale) -> Sale: ...

    async def get_by_id(self, db: AsyncSession, sale_id: str) -> Sale | None: ...

    async def transition(
        self, db: AsyncSession, sale_id: str, expected: str, target: str
    ) -> Sale | None:
        """Move sale_id from expected to target; None if it was not in expected."""
        ...

    async def list_sales(
        self,
        db: AsyncSession,
        merchant_id: str | None,
        customer_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Sale]: ...


class PaymentCodeRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, code: PaymentCode) -> PaymentCode: ...

    async def get(self, db: AsyncSession, code: str) -> PaymentCode | None: ...

    async def claim(
        self, db: AsyncSession, code: str, used_by: str, sale_id: str
    ) -> PaymentCode | None:
        """Mark an active, unexpired code used; None if it was not claimable."""
        ...
