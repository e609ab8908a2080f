"""WithdrawalRepository Protocol."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_withdrawal.domain.models import WithdrawalRequest


class WithdrawalRepositoryProtocol(Protocol):
    async def insert(
        self, db: AsyncSession, request: WithdrawalRequest
    ) -> WithdrawalRequest: ...

    async def get_by_id(
        self, db: AsyncSession, withdrawal_id: str
    ) -> WithdrawalRequest | None: ...

    async def transition(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        target: str,
        processed_by: str | None,
        admin_notes: str | None,
    ) -> WithdrawalRequest | None:
        """pending -> target; None if the request was no longer pending."""
        ...

    async def list_requests(
        self,
        db: AsyncSession,
        merchant_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[WithdrawalRequest]: ...

    async def pending_summary(
        self, db: AsyncSession, merchant_id: str
    ) -> tuple[int, int]:
        """(total pending cents, pending count) for one merchant."""
        ...
