"""Pydantic schemas for merchant withdrawals."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from src.cb_common.money import from_cents, rate_to_percent
from src.cb_withdrawal.domain.models import WithdrawalRequest


class BankDetails(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=128)
    store_name: str = Field(..., min_length=1, max_length=128)
    phone: str = Field(..., min_length=1, max_length=32)
    email: EmailStr
    bank_name: str = Field(..., min_length=1, max_length=128)
    agency: str = Field(..., min_length=1, max_length=32)
    account: str = Field(..., min_length=1, max_length=64)
    payment_method: str = Field(..., min_length=1, max_length=32)


class CreateWithdrawalRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    bank_details: BankDetails


class ProcessWithdrawalRequest(BaseModel):
    status: Literal["completed", "rejected"]
    admin_notes: str | None = Field(None, max_length=500)


class WithdrawalResponse(BaseModel):
    id: str
    merchant_id: str
    amount: str
    fee_percent: str
    fee_amount: str
    net_amount: str
    status: str
    bank_details: dict
    admin_notes: str | None
    processed_by: str | None
    processed_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, req: WithdrawalRequest) -> "WithdrawalResponse":
        return cls(
            id=req.id,
            merchant_id=req.merchant_id,
            amount=str(from_cents(req.amount)),
            fee_percent=rate_to_percent(req.fee_rate),
            fee_amount=str(from_cents(req.fee_amount)),
            net_amount=str(from_cents(req.net_amount)),
            status=req.status,
            bank_details=req.bank_details,
            admin_notes=req.admin_notes,
            processed_by=req.processed_by,
            processed_at=req.processed_at.isoformat() if req.processed_at else None,
            created_at=req.created_at.isoformat() if req.created_at else None,
        )


class WithdrawalListResponse(BaseModel):
    items: list[WithdrawalResponse]
    next_cursor: str | None
    has_more: bool


class WalletResponse(BaseModel):
    available_balance: str
    frozen_balance: str
    pending_amount: str
    pending_count: int
    min_withdrawal: str
    withdrawal_fee_percent: str
