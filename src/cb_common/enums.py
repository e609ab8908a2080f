"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class UserType(str, Enum):
    CLIENT = "client"
    MERCHANT = "merchant"
    ADMIN = "admin"


class SaleStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PIX = "pix"
    # Paid out of the customer's platform balance
    CASHBACK = "cashback"


class SaleSource(str, Enum):
    MANUAL = "manual"
    QRCODE = "qrcode"


class PaymentCodeStatus(str, Enum):
    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"


class WithdrawalStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class TransferStatus(str, Enum):
    COMPLETED = "completed"


class TransferType(str, Enum):
    P2P = "p2p"


class LedgerEntryType(str, Enum):
    # Sale settlement
    CASHBACK = "CASHBACK"
    REFERRAL_BONUS = "REFERRAL_BONUS"
    SALE_PAYMENT = "SALE_PAYMENT"
    SALE_PROCEEDS = "SALE_PROCEEDS"
    # Refund reversals
    CASHBACK_REVERSAL = "CASHBACK_REVERSAL"
    REFERRAL_REVERSAL = "REFERRAL_REVERSAL"
    SALE_PAYMENT_REFUND = "SALE_PAYMENT_REFUND"
    SALE_PROCEEDS_REVERSAL = "SALE_PROCEEDS_REVERSAL"
    # Withdrawal reserve/release/payout
    WITHDRAWAL_FREEZE = "WITHDRAWAL_FREEZE"
    WITHDRAWAL_UNFREEZE = "WITHDRAWAL_UNFREEZE"
    WITHDRAWAL_PAYOUT = "WITHDRAWAL_PAYOUT"
    # Transfers
    TRANSFER_OUT = "TRANSFER_OUT"
    TRANSFER_IN = "TRANSFER_IN"


class NotificationType(str, Enum):
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    SYSTEM = "system"
