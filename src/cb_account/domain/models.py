"""Domain models for cb_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: str
    user_id: str
    available_balance: int   # cents
    frozen_balance: int      # cents, reserved by pending withdrawals
    version: int
    created_at: datetime
    updated_at: datetime

    @property
    def total_balance(self) -> int:
        return self.available_balance + self.frozen_balance


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # cents, positive=income negative=expense
    balance_after: int               # cents, available_balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Posting:
    """One signed movement on a user's available balance.

    Sale settlement and refunds are expressed as lists of postings so the
    bookkeeping can be computed (and tested) without a database.
    """

    user_id: str
    amount: int          # cents, positive=credit negative=debit
    entry_type: str      # LedgerEntryType value
    description: str

    def reversed(self, entry_type: str, description: str) -> "Posting":
        return Posting(self.user_id, -self.amount, entry_type, description)
