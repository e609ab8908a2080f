"""Rate configuration — one immutable object, validated when it is built.

Rates are fractions (0.05 == 5%). Every consumer receives the same
RateConfig instance from RateConfigProvider; nothing reads module-level
rate constants.
"""

from dataclasses import dataclass, fields
from decimal import Decimal

from src.cb_common.errors import ConfigurationError
from src.cb_common.money import has_cent_precision

_ZERO = Decimal("0")
_ONE = Decimal("1")

_RATE_FIELDS = (
    "platform_fee_rate",
    "client_cashback_rate",
    "referral_bonus_rate",
    "merchant_commission_rate",
    "withdrawal_fee_rate",
)


@dataclass(frozen=True)
class RateConfig:
    platform_fee_rate: Decimal = Decimal("0.05")
    client_cashback_rate: Decimal = Decimal("0.02")
    referral_bonus_rate: Decimal = Decimal("0.01")
    # Legacy line item, reported but never deducted from merchant net
    merchant_commission_rate: Decimal = Decimal("0.00")
    withdrawal_fee_rate: Decimal = Decimal("0.05")
    min_withdrawal: Decimal = Decimal("20.00")

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, Decimal) or not value.is_finite():
                raise ConfigurationError(f"{f.name} must be a finite Decimal, got {value!r}")

        for name in _RATE_FIELDS:
            rate = getattr(self, name)
            if not (_ZERO <= rate <= _ONE):
                raise ConfigurationError(f"{name} must be within [0, 1], got {rate}")

        if self.min_withdrawal < _ZERO or not has_cent_precision(self.min_withdrawal):
            raise ConfigurationError(
                f"min_withdrawal must be a non-negative cent amount, got {self.min_withdrawal}"
            )

        # Payouts funded by the platform must fit inside the platform fee
        if self.platform_fee_rate < self.client_cashback_rate + self.referral_bonus_rate:
            raise ConfigurationError(
                "platform_fee_rate must be >= client_cashback_rate + referral_bonus_rate "
                f"({self.platform_fee_rate} < "
                f"{self.client_cashback_rate} + {self.referral_bonus_rate})"
            )

    @classmethod
    def from_percentages(cls, **percentages: Decimal) -> "RateConfig":
        """Build from percent values as admins enter them (5.0 -> 0.05).

        min_withdrawal is a currency amount and passes through unchanged.
        """
        kwargs: dict[str, Decimal] = {}
        for name, value in percentages.items():
            kwargs[name] = value if name == "min_withdrawal" else value / 100
        return cls(**kwargs)

    def as_dict(self) -> dict[str, Decimal]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
