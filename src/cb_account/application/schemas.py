"""Pydantic schemas and cursor utilities for the account API."""

import base64
import binascii
import json

from pydantic import BaseModel

from src.cb_account.domain.models import Account, LedgerEntry
from src.cb_common.money import cents_to_display, from_cents


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor back to the last seen id. Garbage restarts from the top."""
    if not cursor:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None


class BalanceResponse(BaseModel):
    user_id: str
    available_balance: str
    available_balance_cents: int
    available_balance_display: str
    frozen_balance: str
    frozen_balance_cents: int
    total_balance_cents: int
    total_balance_display: str

    @classmethod
    def from_domain(cls, account: Account) -> "BalanceResponse":
        total = account.total_balance
        return cls(
            user_id=account.user_id,
            available_balance=str(from_cents(account.available_balance)),
            available_balance_cents=account.available_balance,
            available_balance_display=cents_to_display(account.available_balance),
            frozen_balance=str(from_cents(account.frozen_balance)),
            frozen_balance_cents=account.frozen_balance,
            total_balance_cents=total,
            total_balance_display=cents_to_display(total),
        )


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            amount_cents=entry.amount,
            amount_display=cents_to_display(entry.amount),
            balance_after_cents=entry.balance_after,
            balance_after_display=cents_to_display(entry.balance_after),
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            description=entry.description,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
