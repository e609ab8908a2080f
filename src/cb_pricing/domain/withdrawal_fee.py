"""Withdrawal fee: fee = round(requested * withdrawal_fee_rate), net = requested - fee."""

from dataclasses import dataclass
from decimal import Decimal

from src.cb_common.errors import WithdrawalBelowMinimumError, WithdrawalExceedsBalanceError
from src.cb_common.money import round_currency
from src.cb_pricing.domain.rates import RateConfig
from src.cb_pricing.domain.split import validate_amount


@dataclass(frozen=True)
class WithdrawalFee:
    requested_amount: Decimal
    fee_rate: Decimal
    fee_amount: Decimal
    net_amount: Decimal


def compute_withdrawal_fee(
    requested_amount: Decimal,
    rates: RateConfig,
    available_balance: Decimal | None = None,
) -> WithdrawalFee:
    """Fee breakdown for a withdrawal request.

    available_balance=None skips the balance guard (pure previews). The
    authoritative balance check is the atomic freeze in AccountRepository.
    """
    requested = round_currency(validate_amount(requested_amount, "requested_amount"))

    if requested < rates.min_withdrawal:
        raise WithdrawalBelowMinimumError(str(requested), str(rates.min_withdrawal))
    if available_balance is not None and requested > available_balance:
        raise WithdrawalExceedsBalanceError(str(requested), str(available_balance))

    fee = round_currency(requested * rates.withdrawal_fee_rate)
    return WithdrawalFee(
        requested_amount=requested,
        fee_rate=rates.withdrawal_fee_rate,
        fee_amount=fee,
        net_amount=requested - fee,
    )
