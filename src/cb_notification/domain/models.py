"""Notification domain model and the texts of the events that raise one."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.cb_common.enums import WithdrawalStatus
from src.cb_common.money import cents_to_display


@dataclass
class Notification:
    id: int                          # BIGSERIAL
    user_id: str
    type: str                        # NotificationType value
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None


_WITHDRAWAL_NOTICES: dict[str, tuple[str, str]] = {
    WithdrawalStatus.PENDING.value: (
        "Withdrawal request received",
        "Your withdrawal request of {amount} was received and is being processed.",
    ),
    WithdrawalStatus.COMPLETED.value: (
        "Withdrawal approved",
        "Your withdrawal of {amount} was approved; {net} will be paid to your bank account.",
    ),
    WithdrawalStatus.REJECTED.value: (
        "Withdrawal rejected",
        "Your withdrawal request of {amount} was rejected and the amount is back in your balance.",
    ),
    WithdrawalStatus.CANCELLED.value: (
        "Withdrawal cancelled",
        "Your withdrawal request of {amount} was cancelled and the amount is back in your balance.",
    ),
}


def withdrawal_notice(
    status: str, amount: int, net_amount: int, admin_notes: str | None = None
) -> tuple[str, str]:
    """(title, message) for the merchant when a withdrawal request changes status."""
    title, template = _WITHDRAWAL_NOTICES[WithdrawalStatus(status).value]
    message = template.format(
        amount=cents_to_display(amount), net=cents_to_display(net_amount)
    )
    if admin_notes and status == WithdrawalStatus.REJECTED.value:
        message = f"{message} Note: {admin_notes}"
    return title, message


def admin_withdrawal_notice(merchant_name: str, amount: int) -> tuple[str, str]:
    return (
        "New withdrawal request",
        f"Merchant {merchant_name} requested a withdrawal of {cents_to_display(amount)}.",
    )


def transfer_received_notice(amount: int) -> tuple[str, str]:
    return (
        "Transfer received",
        f"You received a transfer of {cents_to_display(amount)}.",
    )
