"""SalesService — record sales, move them through their lifecycle, settle QR payments.

Every write runs in one DB transaction owned by this service: the sale row,
its status change and the ledger postings it causes commit together or not
at all.
"""

import logging
import secrets
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cb_account.application.postings import apply_postings
from src.cb_account.domain.repository import AccountRepositoryProtocol
from src.cb_account.infrastructure.persistence import AccountRepository
from src.cb_common.datetime_utils import utc_now
from src.cb_common.enums import (
    PaymentCodeStatus,
    PaymentMethod,
    SaleSource,
    SaleStatus,
    UserType,
)
from src.cb_common.errors import (
    InvalidStatusTransitionError,
    PaymentCodeNotFoundError,
    PaymentCodeUnavailableError,
    SaleNotFoundError,
    UnsupportedPaymentMethodError,
    ValidationError,
)
from src.cb_common.id_generator import generate_id
from src.cb_common.money import from_cents, to_cents
from src.cb_gateway.user.db_models import UserModel
from src.cb_gateway.user.service import UserService
from src.cb_pricing.domain.rates import RateConfig
from src.cb_pricing.domain.split import compute_value_split, validate_amount
from src.cb_sales.application.schemas import (
    PaymentCodeResponse,
    RedeemResponse,
    SaleListResponse,
    SaleResponse,
)
from src.cb_sales.domain.models import PaymentCode, Sale, ensure_transition
from src.cb_sales.domain.repository import (
    PaymentCodeRepositoryProtocol,
    SaleRepositoryProtocol,
)
from src.cb_sales.domain.settlement import build_refund_postings, build_sale_postings
from src.cb_sales.infrastructure.persistence import PaymentCodeRepository, SaleRepository

logger = logging.getLogger("cb.sales")

_REF_TYPE = "SALE"


def generate_payment_code() -> str:
    return f"PAY{secrets.token_hex(6).upper()}"


def resolve_referrer(customer: UserModel, merchant: UserModel) -> str | None:
    """Whoever referred the customer earns the bonus, else whoever referred the merchant."""
    for party in (customer, merchant):
        if party.referred_by is not None:
            return str(party.referred_by)
    return None


class SalesService:
    def __init__(
        self,
        repo: SaleRepositoryProtocol | None = None,
        codes: PaymentCodeRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        users: UserService | None = None,
    ) -> None:
        self._repo: SaleRepositoryProtocol = repo or SaleRepository()
        self._codes: PaymentCodeRepositoryProtocol = codes or PaymentCodeRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._users = users or UserService()

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    async def _build_sale(
        self,
        db: AsyncSession,
        sale_id: str,
        merchant_id: str,
        customer_id: str,
        amount: Decimal,
        payment_method: str,
        status: str,
        rates: RateConfig,
        source: str = SaleSource.MANUAL.value,
        payment_code: str | None = None,
        description: str | None = None,
    ) -> Sale:
        if customer_id == merchant_id:
            raise ValidationError("A merchant cannot record a sale to themselves")
        customer = await self._users.get_user(customer_id, db)
        if customer.user_type != UserType.CLIENT.value:
            raise ValidationError("Sales can only be recorded for client accounts")
        merchant = await self._users.get_user(merchant_id, db)

        split = compute_value_split(amount, rates).as_cents()
        return Sale(
            id=sale_id,
            merchant_id=str(merchant.id),
            customer_id=str(customer.id),
            amount=split["amount"],
            payment_method=payment_method,
            status=status,
            platform_fee=split["platform_fee"],
            client_cashback=split["client_cashback"],
            referral_bonus=split["referral_bonus"],
            merchant_commission=split["merchant_commission"],
            merchant_net=split["merchant_net"],
            referrer_id=resolve_referrer(customer, merchant),
            source=source,
            payment_code=payment_code,
            description=description,
        )

    async def record_sale(
        self,
        db: AsyncSession,
        merchant_id: str,
        customer_id: str,
        amount: Decimal,
        payment_method: str,
        status: str,
        rates: RateConfig,
        description: str | None = None,
    ) -> SaleResponse:
        """Record a sale; a completed sale settles immediately.

        Balance-funded payments are started by the paying client through a
        payment QR code, never by the merchant.
        """
        if payment_method == PaymentMethod.CASHBACK.value:
            raise UnsupportedPaymentMethodError(payment_method)
        if status not in (SaleStatus.COMPLETED.value, SaleStatus.PENDING.value):
            raise ValidationError(f"A new sale must be completed or pending, got {status}")
        try:
            sale = await self._build_sale(
                db, generate_id("SL"), merchant_id, customer_id, amount,
                payment_method, status, rates, description=description,
            )
            saved = await self._repo.insert(db, sale)
            if saved.is_settled:
                await apply_postings(
                    db, self._accounts, build_sale_postings(saved), _REF_TYPE, saved.id
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Sale %s recorded by merchant %s: amount=%d status=%s method=%s",
            saved.id, merchant_id, saved.amount, saved.status, saved.payment_method,
        )
        return SaleResponse.from_domain(saved)

    async def _owned_by_merchant(
        self, db: AsyncSession, merchant_id: str, sale_id: str
    ) -> Sale:
        sale = await self._repo.get_by_id(db, sale_id)
        if sale is None or sale.merchant_id != merchant_id:
            raise SaleNotFoundError(sale_id)
        return sale

    async def _transition(
        self, db: AsyncSession, merchant_id: str, sale_id: str, target: str
    ) -> SaleResponse:
        try:
            sale = await self._owned_by_merchant(db, merchant_id, sale_id)
            ensure_transition(sale.status, target)
            updated = await self._repo.transition(db, sale_id, sale.status, target)
            if updated is None:
                # Lost a race with another transition of the same sale
                raise InvalidStatusTransitionError("Sale", sale.status, target)
            if target == SaleStatus.COMPLETED.value:
                postings = build_sale_postings(updated)
            elif target == SaleStatus.REFUNDED.value:
                postings = build_refund_postings(updated)
            else:
                postings = []
            await apply_postings(db, self._accounts, postings, _REF_TYPE, sale_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Sale %s: %s -> %s", sale_id, sale.status, target)
        return SaleResponse.from_domain(updated)

    async def complete_sale(
        self, db: AsyncSession, merchant_id: str, sale_id: str
    ) -> SaleResponse:
        return await self._transition(db, merchant_id, sale_id, SaleStatus.COMPLETED.value)

    async def cancel_sale(
        self, db: AsyncSession, merchant_id: str, sale_id: str
    ) -> SaleResponse:
        return await self._transition(db, merchant_id, sale_id, SaleStatus.CANCELLED.value)

    async def refund_sale(
        self, db: AsyncSession, merchant_id: str, sale_id: str
    ) -> SaleResponse:
        return await self._transition(db, merchant_id, sale_id, SaleStatus.REFUNDED.value)

    async def get_sale(
        self, db: AsyncSession, user_id: str, user_type: str, sale_id: str
    ) -> SaleResponse:
        sale = await self._repo.get_by_id(db, sale_id)
        if sale is None:
            raise SaleNotFoundError(sale_id)
        if user_type != UserType.ADMIN.value and user_id not in (
            sale.merchant_id, sale.customer_id
        ):
            raise SaleNotFoundError(sale_id)
        return SaleResponse.from_domain(sale)

    async def list_sales(
        self,
        db: AsyncSession,
        user_id: str,
        user_type: str,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> SaleListResponse:
        """Merchants see what they sold, clients what they bought, admins everything."""
        merchant_id = user_id if user_type == UserType.MERCHANT.value else None
        customer_id = user_id if user_type == UserType.CLIENT.value else None
        sales = await self._repo.list_sales(
            db, merchant_id, customer_id, status, cursor, limit + 1
        )
        has_more = len(sales) > limit
        page = sales[:limit]
        return SaleListResponse(
            items=[SaleResponse.from_domain(s) for s in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    # ------------------------------------------------------------------
    # Payment QR codes
    # ------------------------------------------------------------------

    async def create_payment_code(
        self,
        db: AsyncSession,
        merchant_id: str,
        amount: Decimal,
        description: str | None = None,
    ) -> PaymentCodeResponse:
        cents = to_cents(validate_amount(amount))
        now = utc_now()
        code = PaymentCode(
            code=generate_payment_code(),
            merchant_id=merchant_id,
            amount=cents,
            status=PaymentCodeStatus.ACTIVE.value,
            expires_at=now + timedelta(minutes=settings.PAYMENT_QR_TTL_MINUTES),
            description=description,
        )
        try:
            saved = await self._codes.insert(db, code)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Payment code %s created by merchant %s for %d cents",
            saved.code, merchant_id, cents,
        )
        return PaymentCodeResponse.from_domain(saved, now)

    async def get_payment_code(self, db: AsyncSession, code: str) -> PaymentCodeResponse:
        found = await self._codes.get(db, code)
        if found is None:
            raise PaymentCodeNotFoundError(code)
        return PaymentCodeResponse.from_domain(found, utc_now())

    async def redeem_payment_code(
        self, db: AsyncSession, client_id: str, code: str, rates: RateConfig
    ) -> RedeemResponse:
        """Pay a QR code from the client's balance; creates a completed sale.

        The code is claimed with a guarded UPDATE first, so two clients racing
        for one code cannot both pay it.
        """
        sale_id = generate_id("SL")
        try:
            claimed = await self._codes.claim(db, code, client_id, sale_id)
            if claimed is None:
                existing = await self._codes.get(db, code)
                if existing is None:
                    raise PaymentCodeNotFoundError(code)
                raise PaymentCodeUnavailableError(code, existing.effective_status(utc_now()))

            sale = await self._build_sale(
                db,
                sale_id,
                claimed.merchant_id,
                client_id,
                from_cents(claimed.amount),
                PaymentMethod.CASHBACK.value,
                SaleStatus.COMPLETED.value,
                rates,
                source=SaleSource.QRCODE.value,
                payment_code=claimed.code,
                description=claimed.description,
            )
            saved = await self._repo.insert(db, sale)
            await apply_postings(
                db, self._accounts, build_sale_postings(saved), _REF_TYPE, saved.id
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Payment code %s redeemed by client %s as sale %s", code, client_id, saved.id
        )
        return RedeemResponse(
            payment_code=PaymentCodeResponse.from_domain(claimed, utc_now()),
            sale=SaleResponse.from_domain(saved),
        )
