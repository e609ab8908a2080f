"""Withdrawal request domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.cb_common.enums import WithdrawalStatus
from src.cb_common.errors import InvalidStatusTransitionError

# Only pending requests move; completed, rejected and cancelled are terminal.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    WithdrawalStatus.COMPLETED.value: frozenset({WithdrawalStatus.PENDING.value}),
    WithdrawalStatus.REJECTED.value: frozenset({WithdrawalStatus.PENDING.value}),
    WithdrawalStatus.CANCELLED.value: frozenset({WithdrawalStatus.PENDING.value}),
}


def ensure_transition(current: str, target: str) -> None:
    current, target = WithdrawalStatus(current).value, WithdrawalStatus(target).value
    if current not in ALLOWED_TRANSITIONS.get(target, frozenset()):
        raise InvalidStatusTransitionError("Withdrawal", current, target)


@dataclass
class WithdrawalRequest:
    id: str
    merchant_id: str
    amount: int          # cents, reserved from available balance while pending
    fee_amount: int      # cents
    net_amount: int      # cents, what reaches the merchant's bank
    fee_rate: Decimal
    status: str
    bank_details: dict[str, Any] = field(default_factory=dict)
    admin_notes: str | None = None
    processed_by: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
