"""WithdrawalService — merchant payouts.

Creating a request moves the requested amount from available to frozen in
one guarded UPDATE. Cancel and reject move it back; completion pays it out
of the frozen bucket. The withdrawal fee stays with the platform: the
merchant gives up `amount` and receives `net_amount` at the bank.
"""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_account.domain.repository import AccountRepositoryProtocol
from src.cb_account.infrastructure.persistence import AccountRepository
from src.cb_common.enums import WithdrawalStatus
from src.cb_common.errors import (
    AccountNotFoundError,
    InvalidStatusTransitionError,
    WithdrawalNotFoundError,
)
from src.cb_common.id_generator import generate_id
from src.cb_common.money import from_cents, rate_to_percent, to_cents
from src.cb_notification.application.service import NotificationService
from src.cb_pricing.application.schemas import WithdrawalFeeResponse
from src.cb_pricing.domain.rates import RateConfig
from src.cb_pricing.domain.withdrawal_fee import compute_withdrawal_fee
from src.cb_withdrawal.application.schemas import (
    WalletResponse,
    WithdrawalListResponse,
    WithdrawalResponse,
)
from src.cb_withdrawal.domain.models import WithdrawalRequest, ensure_transition
from src.cb_withdrawal.domain.repository import WithdrawalRepositoryProtocol
from src.cb_withdrawal.infrastructure.persistence import WithdrawalRepository

logger = logging.getLogger("cb.withdrawal")

_REF_TYPE = "WITHDRAWAL"


class WithdrawalService:
    def __init__(
        self,
        repo: WithdrawalRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        notifier: NotificationService | None = None,
    ) -> None:
        self._repo: WithdrawalRepositoryProtocol = repo or WithdrawalRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._notifier = notifier or NotificationService()

    async def _notify(self, db: AsyncSession, request: WithdrawalRequest) -> None:
        await self._notifier.withdrawal_status_changed(
            db,
            request.merchant_id,
            request.id,
            request.status,
            request.amount,
            request.net_amount,
            admin_notes=request.admin_notes,
            merchant_name=request.bank_details.get("store_name"),
        )

    async def _available(self, db: AsyncSession, merchant_id: str) -> int:
        account = await self._accounts.get_account_by_user_id(db, merchant_id)
        if account is None:
            raise AccountNotFoundError(merchant_id)
        return account.available_balance

    async def wallet(
        self, db: AsyncSession, merchant_id: str, rates: RateConfig
    ) -> WalletResponse:
        account = await self._accounts.get_account_by_user_id(db, merchant_id)
        if account is None:
            raise AccountNotFoundError(merchant_id)
        pending_amount, pending_count = await self._repo.pending_summary(db, merchant_id)
        return WalletResponse(
            available_balance=str(from_cents(account.available_balance)),
            frozen_balance=str(from_cents(account.frozen_balance)),
            pending_amount=str(from_cents(pending_amount)),
            pending_count=pending_count,
            min_withdrawal=str(rates.min_withdrawal),
            withdrawal_fee_percent=rate_to_percent(rates.withdrawal_fee_rate),
        )

    async def preview(
        self, db: AsyncSession, merchant_id: str, amount: Decimal, rates: RateConfig
    ) -> WithdrawalFeeResponse:
        available = await self._available(db, merchant_id)
        fee = compute_withdrawal_fee(amount, rates, from_cents(available))
        return WithdrawalFeeResponse.from_domain(fee)

    async def create(
        self,
        db: AsyncSession,
        merchant_id: str,
        amount: Decimal,
        bank_details: dict[str, Any],
        rates: RateConfig,
    ) -> WithdrawalResponse:
        try:
            available = await self._available(db, merchant_id)
            fee = compute_withdrawal_fee(amount, rates, from_cents(available))
            request = WithdrawalRequest(
                id=generate_id("WD"),
                merchant_id=merchant_id,
                amount=to_cents(fee.requested_amount),
                fee_amount=to_cents(fee.fee_amount),
                net_amount=to_cents(fee.net_amount),
                fee_rate=fee.fee_rate,
                status=WithdrawalStatus.PENDING.value,
                bank_details=bank_details,
            )
            # The guarded freeze is the authoritative balance check under concurrency
            await self._accounts.freeze_funds(
                db, merchant_id, request.amount, _REF_TYPE, request.id,
                f"Reserved for withdrawal {request.id}",
            )
            saved = await self._repo.insert(db, request)
            await self._notify(db, saved)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Withdrawal %s requested by %s: amount=%d fee=%d net=%d",
            saved.id, merchant_id, saved.amount, saved.fee_amount, saved.net_amount,
        )
        return WithdrawalResponse.from_domain(saved)

    async def list_own(
        self,
        db: AsyncSession,
        merchant_id: str,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> WithdrawalListResponse:
        return await self._list(db, merchant_id, status, cursor, limit)

    async def list_all(
        self, db: AsyncSession, status: str | None, cursor: str | None, limit: int
    ) -> WithdrawalListResponse:
        return await self._list(db, None, status, cursor, limit)

    async def _list(
        self,
        db: AsyncSession,
        merchant_id: str | None,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> WithdrawalListResponse:
        rows = await self._repo.list_requests(db, merchant_id, status, cursor, limit + 1)
        has_more = len(rows) > limit
        page = rows[:limit]
        return WithdrawalListResponse(
            items=[WithdrawalResponse.from_domain(r) for r in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    async def _move(
        self,
        db: AsyncSession,
        current: WithdrawalRequest,
        target: str,
        processed_by: str | None,
        admin_notes: str | None,
    ) -> WithdrawalRequest:
        ensure_transition(current.status, target)
        updated = await self._repo.transition(
            db, current.id, target, processed_by, admin_notes
        )
        if updated is None:
            raise InvalidStatusTransitionError("Withdrawal", current.status, target)
        if target == WithdrawalStatus.COMPLETED.value:
            await self._accounts.pay_out_frozen(
                db, updated.merchant_id, updated.amount, _REF_TYPE, updated.id,
                f"Paid out withdrawal {updated.id} (net {updated.net_amount} cents)",
            )
        else:
            await self._accounts.unfreeze_funds(
                db, updated.merchant_id, updated.amount, _REF_TYPE, updated.id,
                f"Released withdrawal {updated.id} ({target})",
            )
        await self._notify(db, updated)
        return updated

    async def cancel(
        self, db: AsyncSession, merchant_id: str, withdrawal_id: str
    ) -> WithdrawalResponse:
        try:
            current = await self._repo.get_by_id(db, withdrawal_id)
            if current is None or current.merchant_id != merchant_id:
                raise WithdrawalNotFoundError(withdrawal_id)
            updated = await self._move(
                db, current, WithdrawalStatus.CANCELLED.value, None, None
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Withdrawal %s cancelled by merchant %s", withdrawal_id, merchant_id)
        return WithdrawalResponse.from_domain(updated)

    async def process(
        self,
        db: AsyncSession,
        admin_id: str,
        withdrawal_id: str,
        target: str,
        admin_notes: str | None = None,
    ) -> WithdrawalResponse:
        """Admin decision on a pending request: completed or rejected."""
        if target not in (WithdrawalStatus.COMPLETED.value, WithdrawalStatus.REJECTED.value):
            raise InvalidStatusTransitionError("Withdrawal", "pending", target)
        try:
            current = await self._repo.get_by_id(db, withdrawal_id)
            if current is None:
                raise WithdrawalNotFoundError(withdrawal_id)
            updated = await self._move(db, current, target, admin_id, admin_notes)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Withdrawal %s %s by admin %s", withdrawal_id, target, admin_id)
        return WithdrawalResponse.from_domain(updated)
