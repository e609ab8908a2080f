"""Pydantic schemas for rate settings and split previews.

Rates go over the wire as percentages (5.00 == 5%), the way admins enter
them; RateConfig holds fractions.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.cb_common.money import rate_to_percent, to_cents
from src.cb_pricing.domain.rates import RateConfig
from src.cb_pricing.domain.split import ValueSplit
from src.cb_pricing.domain.withdrawal_fee import WithdrawalFee


class UpdateRatesRequest(BaseModel):
    platform_fee_percent: Decimal = Field(..., ge=0, le=100, decimal_places=4)
    client_cashback_percent: Decimal = Field(..., ge=0, le=100, decimal_places=4)
    referral_bonus_percent: Decimal = Field(..., ge=0, le=100, decimal_places=4)
    merchant_commission_percent: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=4)
    withdrawal_fee_percent: Decimal = Field(..., ge=0, le=100, decimal_places=4)
    min_withdrawal: Decimal = Field(..., ge=0, decimal_places=2)

    def to_rate_config(self) -> RateConfig:
        return RateConfig.from_percentages(
            platform_fee_rate=self.platform_fee_percent,
            client_cashback_rate=self.client_cashback_percent,
            referral_bonus_rate=self.referral_bonus_percent,
            merchant_commission_rate=self.merchant_commission_percent,
            withdrawal_fee_rate=self.withdrawal_fee_percent,
            min_withdrawal=self.min_withdrawal,
        )


class RatesResponse(BaseModel):
    platform_fee_percent: str
    client_cashback_percent: str
    referral_bonus_percent: str
    merchant_commission_percent: str
    withdrawal_fee_percent: str
    min_withdrawal: str
    min_withdrawal_cents: int

    @classmethod
    def from_domain(cls, rates: RateConfig) -> "RatesResponse":
        return cls(
            platform_fee_percent=rate_to_percent(rates.platform_fee_rate),
            client_cashback_percent=rate_to_percent(rates.client_cashback_rate),
            referral_bonus_percent=rate_to_percent(rates.referral_bonus_rate),
            merchant_commission_percent=rate_to_percent(rates.merchant_commission_rate),
            withdrawal_fee_percent=rate_to_percent(rates.withdrawal_fee_rate),
            min_withdrawal=str(rates.min_withdrawal),
            min_withdrawal_cents=to_cents(rates.min_withdrawal),
        )


class SplitRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)


class SplitResponse(BaseModel):
    amount: str
    platform_fee: str
    client_cashback: str
    referral_bonus: str
    merchant_commission: str
    merchant_net: str
    platform_retained: str

    @classmethod
    def from_domain(cls, split: ValueSplit) -> "SplitResponse":
        return cls(
            amount=str(split.amount),
            platform_fee=str(split.platform_fee),
            client_cashback=str(split.client_cashback),
            referral_bonus=str(split.referral_bonus),
            merchant_commission=str(split.merchant_commission),
            merchant_net=str(split.merchant_net),
            platform_retained=str(split.platform_retained),
        )


class WithdrawalFeeResponse(BaseModel):
    requested_amount: str
    fee_percent: str
    fee_amount: str
    net_amount: str

    @classmethod
    def from_domain(cls, fee: WithdrawalFee) -> "WithdrawalFeeResponse":
        return cls(
            requested_amount=str(fee.requested_amount),
            fee_percent=rate_to_percent(fee.fee_rate),
            fee_amount=str(fee.fee_amount),
            net_amount=str(fee.net_amount),
        )
