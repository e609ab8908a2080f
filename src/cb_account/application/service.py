"""AccountApplicationService — read side of balances and the ledger.

Balances only change as a side effect of sales, withdrawals and transfers;
those services post to the ledger through AccountRepository directly.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_account.application.schemas import (
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.cb_account.domain.repository import AccountRepositoryProtocol
from src.cb_account.infrastructure.persistence import AccountRepository
from src.cb_common.errors import AccountNotFoundError


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return BalanceResponse.from_domain(account)

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # limit+1 detects has_more without a COUNT(*)
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
