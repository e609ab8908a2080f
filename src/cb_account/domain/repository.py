"""Repository Protocol — dependency inversion for testability.

Unit tests inject an AsyncMock conforming to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_account.domain.models import Account, LedgerEntry


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def freeze_funds(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def unfreeze_funds(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def pay_out_frozen(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
