"""Value split of a sale amount.

    platform_fee     = round(amount * platform_fee_rate)
    client_cashback  = round(amount * client_cashback_rate)
    referral_bonus   = round(amount * referral_bonus_rate)
    merchant_net     = amount - platform_fee - client_cashback

Each line item is rounded once (half-up, 2 places) from its exact product.
merchant_net is derived from the rounded items, so the three parts always
add back to the amount to the cent. The referral bonus is funded out of the
platform fee and never deducted from the merchant again.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.cb_common.errors import ValidationError
from src.cb_common.money import has_cent_precision, round_currency, to_cents
from src.cb_pricing.domain.rates import RateConfig


@dataclass(frozen=True)
class ValueSplit:
    amount: Decimal
    platform_fee: Decimal
    client_cashback: Decimal
    referral_bonus: Decimal
    merchant_commission: Decimal
    merchant_net: Decimal

    @property
    def platform_retained(self) -> Decimal:
        """What the platform keeps after paying the referral bonus."""
        return self.platform_fee - self.referral_bonus

    def as_cents(self) -> dict[str, int]:
        return {
            "amount": to_cents(self.amount),
            "platform_fee": to_cents(self.platform_fee),
            "client_cashback": to_cents(self.client_cashback),
            "referral_bonus": to_cents(self.referral_bonus),
            "merchant_commission": to_cents(self.merchant_commission),
            "merchant_net": to_cents(self.merchant_net),
        }


def validate_amount(amount: Decimal, field: str = "amount") -> Decimal:
    """Reject anything that is not a positive, finite, whole-cent Decimal."""
    if isinstance(amount, bool) or not isinstance(amount, (Decimal, int)):
        raise ValidationError(f"{field} must be a Decimal, got {type(amount).__name__}")
    value = Decimal(amount)
    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if value <= 0:
        raise ValidationError(f"{field} must be greater than zero, got {value}")
    if not has_cent_precision(value):
        raise ValidationError(f"{field} has more than 2 decimal places: {value}")
    return value


def compute_value_split(amount: Decimal, rates: RateConfig) -> ValueSplit:
    value = validate_amount(amount)

    platform_fee = round_currency(value * rates.platform_fee_rate)
    client_cashback = round_currency(value * rates.client_cashback_rate)
    referral_bonus = round_currency(value * rates.referral_bonus_rate)
    merchant_commission = round_currency(value * rates.merchant_commission_rate)

    return ValueSplit(
        amount=round_currency(value),
        platform_fee=platform_fee,
        client_cashback=client_cashback,
        referral_bonus=referral_bonus,
        merchant_commission=merchant_commission,
        merchant_net=round_currency(value) - platform_fee - client_cashback,
    )
