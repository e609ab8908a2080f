"""TransferService — move available balance between two users atomically."""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_account.domain.repository import AccountRepositoryProtocol
from src.cb_account.infrastructure.persistence import AccountRepository
from src.cb_common.enums import LedgerEntryType
from src.cb_common.errors import AccountDisabledError, SelfTransferError
from src.cb_common.id_generator import generate_id
from src.cb_common.money import to_cents
from src.cb_gateway.user.service import UserService
from src.cb_notification.application.service import NotificationService
from src.cb_pricing.domain.split import validate_amount
from src.cb_transfer.application.schemas import TransferListResponse, TransferResponse
from src.cb_transfer.domain.models import Transfer
from src.cb_transfer.domain.repository import TransferRepositoryProtocol
from src.cb_transfer.infrastructure.persistence import TransferRepository

logger = logging.getLogger("cb.transfer")

_REF_TYPE = "TRANSFER"


class TransferService:
    def __init__(
        self,
        repo: TransferRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        users: UserService | None = None,
        notifier: NotificationService | None = None,
    ) -> None:
        self._repo: TransferRepositoryProtocol = repo or TransferRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._users = users or UserService()
        self._notifier = notifier or NotificationService()

    async def create(
        self,
        db: AsyncSession,
        from_user_id: str,
        to_user_id: str,
        amount: Decimal,
        description: str | None = None,
    ) -> TransferResponse:
        cents = to_cents(validate_amount(amount))
        try:
            recipient = await self._users.get_user(to_user_id, db)
            # Compare canonical ids: the request may spell the UUID differently
            if str(recipient.id) == from_user_id:
                raise SelfTransferError()
            if not recipient.is_active:
                raise AccountDisabledError()
            transfer = Transfer(
                id=generate_id("TR"),
                from_user_id=from_user_id,
                to_user_id=str(recipient.id),
                amount=cents,
                description=description,
            )
            await self._accounts.debit(
                db, from_user_id, cents, LedgerEntryType.TRANSFER_OUT.value,
                _REF_TYPE, transfer.id, f"Transfer to {transfer.to_user_id}",
            )
            await self._accounts.credit(
                db, transfer.to_user_id, cents, LedgerEntryType.TRANSFER_IN.value,
                _REF_TYPE, transfer.id, f"Transfer from {from_user_id}",
            )
            saved = await self._repo.insert(db, transfer)
            await self._notifier.transfer_received(
                db, saved.to_user_id, from_user_id, saved.id, saved.amount
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Transfer %s: %s -> %s, %d cents",
            saved.id, saved.from_user_id, saved.to_user_id, saved.amount,
        )
        return TransferResponse.from_domain(saved, from_user_id)

    async def list_own(
        self, db: AsyncSession, user_id: str, cursor: str | None, limit: int
    ) -> TransferListResponse:
        rows = await self._repo.list_for_user(db, user_id, cursor, limit + 1)
        has_more = len(rows) > limit
        page = rows[:limit]
        return TransferListResponse(
            items=[TransferResponse.from_domain(t, user_id) for t in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )
