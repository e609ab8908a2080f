"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Account
  3xxx: Pricing / rate configuration
  4xxx: Sales / payment QR codes
  5xxx: Withdrawals
  6xxx: Transfers
  7xxx: Notifications
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class InvalidReferralCodeError(AppError):
    def __init__(self, code: str) -> None:
        super().__init__(1006, f"Unknown referral code: {code}", 422)


class ForbiddenRoleError(AppError):
    def __init__(self, required: str) -> None:
        super().__init__(1007, f"Operation requires role: {required}", 403)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1008, f"User not found: {user_id}", 404)


class UserStatusChangeError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1009, f"User status cannot be changed: {detail}", 403)


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


# --- 3xxx: Pricing / rate configuration ---

class ValidationError(AppError):
    """Bad amount handed to a calculator. Surfaced as a form message."""

    def __init__(self, detail: str) -> None:
        super().__init__(3001, detail, 422)


class ConfigurationError(AppError):
    """Rate configuration rejected at load/update time."""

    def __init__(self, detail: str) -> None:
        super().__init__(3002, f"Invalid rate configuration: {detail}", 422)


# --- 4xxx: Sales / payment QR ---

class SaleNotFoundError(AppError):
    def __init__(self, sale_id: str) -> None:
        super().__init__(4001, f"Sale not found: {sale_id}", 404)


class InvalidStatusTransitionError(AppError):
    def __init__(self, entity: str, current: str, target: str) -> None:
        super().__init__(
            4002, f"{entity} cannot move from {current} to {target}", 422
        )


class PaymentCodeNotFoundError(AppError):
    def __init__(self, code: str) -> None:
        super().__init__(4003, f"Payment code not found: {code}", 404)


class PaymentCodeUnavailableError(AppError):
    def __init__(self, code: str, reason: str) -> None:
        super().__init__(4004, f"Payment code {code} is {reason}", 422)


class UnsupportedPaymentMethodError(AppError):
    def __init__(self, method: str) -> None:
        super().__init__(4005, f"Payment method not supported here: {method}", 422)


# --- 5xxx: Withdrawals ---

class WithdrawalNotFoundError(AppError):
    def __init__(self, withdrawal_id: str) -> None:
        super().__init__(5001, f"Withdrawal request not found: {withdrawal_id}", 404)


class WithdrawalBelowMinimumError(AppError):
    def __init__(self, requested: str, minimum: str) -> None:
        super().__init__(
            5002, f"Withdrawal of {requested} is below the minimum of {minimum}", 422
        )


class WithdrawalExceedsBalanceError(AppError):
    def __init__(self, requested: str, available: str) -> None:
        super().__init__(
            5003, f"Withdrawal of {requested} exceeds available balance {available}", 422
        )


# --- 6xxx: Transfers ---

class SelfTransferError(AppError):
    def __init__(self) -> None:
        super().__init__(6001, "Cannot transfer to yourself", 422)


# --- 7xxx: Notifications ---

class NotificationNotFoundError(AppError):
    def __init__(self, notification_id: int) -> None:
        super().__init__(7001, f"Notification not found: {notification_id}", 404)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
