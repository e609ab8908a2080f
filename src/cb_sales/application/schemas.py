"""Pydantic schemas for sales and payment QR codes.

Amounts cross the API as 2-place decimal strings; the database holds cents.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from src.cb_common.enums import PaymentMethod, SaleStatus
from src.cb_common.money import from_cents
from src.cb_sales.domain.models import PaymentCode, Sale


class RecordSaleRequest(BaseModel):
    customer_id: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_method: PaymentMethod
    status: Literal["completed", "pending"] = SaleStatus.COMPLETED.value
    description: str | None = Field(None, max_length=500)


class SaleResponse(BaseModel):
    id: str
    merchant_id: str
    customer_id: str
    amount: str
    payment_method: str
    status: str
    source: str
    platform_fee: str
    client_cashback: str
    referral_bonus: str
    merchant_commission: str
    merchant_net: str
    referrer_id: str | None
    payment_code: str | None
    description: str | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, sale: Sale) -> "SaleResponse":
        return cls(
            id=sale.id,
            merchant_id=sale.merchant_id,
            customer_id=sale.customer_id,
            amount=str(from_cents(sale.amount)),
            payment_method=sale.payment_method,
            status=sale.status,
            source=sale.source,
            platform_fee=str(from_cents(sale.platform_fee)),
            client_cashback=str(from_cents(sale.client_cashback)),
            referral_bonus=str(from_cents(sale.referral_bonus)),
            merchant_commission=str(from_cents(sale.merchant_commission)),
            merchant_net=str(from_cents(sale.merchant_net)),
            referrer_id=sale.referrer_id,
            payment_code=sale.payment_code,
            description=sale.description,
            created_at=sale.created_at.isoformat() if sale.created_at else None,
            updated_at=sale.updated_at.isoformat() if sale.updated_at else None,
        )


class SaleListResponse(BaseModel):
    items: list[SaleResponse]
    next_cursor: str | None
    has_more: bool


class CreatePaymentCodeRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    description: str | None = Field(None, max_length=500)


class PaymentCodeResponse(BaseModel):
    code: str
    merchant_id: str
    amount: str
    status: str
    description: str | None
    expires_at: str
    used_by: str | None
    used_at: str | None
    sale_id: str | None

    @classmethod
    def from_domain(cls, code: PaymentCode, now: datetime) -> "PaymentCodeResponse":
        return cls(
            code=code.code,
            merchant_id=code.merchant_id,
            amount=str(from_cents(code.amount)),
            status=code.effective_status(now),
            description=code.description,
            expires_at=code.expires_at.isoformat(),
            used_by=code.used_by,
            used_at=code.used_at.isoformat() if code.used_at else None,
            sale_id=code.sale_id,
        )


class RedeemResponse(BaseModel):
    payment_code: PaymentCodeResponse
    sale: SaleResponse
