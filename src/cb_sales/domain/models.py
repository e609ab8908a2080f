"""Sale and payment QR code domain models."""

from dataclasses import dataclass
from datetime import datetime

from src.cb_common.enums import PaymentCodeStatus, SaleSource, SaleStatus
from src.cb_common.errors import InvalidStatusTransitionError

# target status -> statuses it may be reached from
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    SaleStatus.COMPLETED.value: frozenset({SaleStatus.PENDING.value}),
    SaleStatus.CANCELLED.value: frozenset({SaleStatus.PENDING.value}),
    SaleStatus.REFUNDED.value: frozenset({SaleStatus.COMPLETED.value}),
}


def ensure_transition(current: str, target: str) -> None:
    current, target = SaleStatus(current).value, SaleStatus(target).value
    if current not in ALLOWED_TRANSITIONS.get(target, frozenset()):
        raise InvalidStatusTransitionError("Sale", current, target)


@dataclass
class Sale:
    id: str
    merchant_id: str
    customer_id: str
    amount: int                  # cents
    payment_method: str
    status: str
    # Split frozen at record time, cents
    platform_fee: int
    client_cashback: int
    referral_bonus: int
    merchant_commission: int
    merchant_net: int
    referrer_id: str | None = None
    source: str = SaleSource.MANUAL.value
    payment_code: str | None = None
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        """Completed sales have moved money; pending and cancelled have not."""
        return self.status == SaleStatus.COMPLETED


@dataclass
class PaymentCode:
    code: str
    merchant_id: str
    amount: int                  # cents
    status: str
    expires_at: datetime
    description: str | None = None
    used_by: str | None = None
    used_at: datetime | None = None
    sale_id: str | None = None
    created_at: datetime | None = None

    def effective_status(self, now: datetime) -> str:
        """Active codes past their expiry read as expired without a write."""
        if self.status == PaymentCodeStatus.ACTIVE and self.expires_at <= now:
            return PaymentCodeStatus.EXPIRED.value
        return self.status
