"""Tests for sale settlement postings and status transitions."""

from datetime import UTC, datetime, timedelta

import pytest

from src.cb_account.domain.models import Posting
from src.cb_common.enums import LedgerEntryType, PaymentCodeStatus, PaymentMethod, SaleStatus
from src.cb_common.errors import InvalidStatusTransitionError
from src.cb_sales.domain.models import PaymentCode, Sale, ensure_transition
from src.cb_sales.domain.settlement import build_refund_postings, build_sale_postings


def _make_sale(
    payment_method: str = PaymentMethod.CASH.value,
    referrer_id: str | None = "referrer-1",
    status: str = SaleStatus.COMPLETED.value,
) -> Sale:
    return Sale(
        id="SL1",
        merchant_id="merchant-1",
        customer_id="customer-1",
        amount=10000,
        payment_method=payment_method,
        status=status,
        platform_fee=500,
        client_cashback=200,
        referral_bonus=100,
        merchant_commission=0,
        merchant_net=9300,
        referrer_id=referrer_id,
    )


def _summary(postings: list[Posting]) -> list[tuple[str, int, str]]:
    return [(p.user_id, p.amount, LedgerEntryType(p.entry_type).value) for p in postings]


class TestBuildSalePostings:
    def test_off_platform_payment_pays_cashback_and_referral(self) -> None:
        assert _summary(build_sale_postings(_make_sale())) == [
            ("customer-1", 200, "CASHBACK"),
            ("referrer-1", 100, "REFERRAL_BONUS"),
        ]

    def test_no_referrer_no_bonus(self) -> None:
        assert _summary(build_sale_postings(_make_sale(referrer_id=None))) == [
            ("customer-1", 200, "CASHBACK"),
        ]

    def test_balance_payment_debits_customer_first(self) -> None:
        postings = build_sale_postings(_make_sale(PaymentMethod.CASHBACK.value))
        assert _summary(postings) == [
            ("customer-1", -10000, "SALE_PAYMENT"),
            ("merchant-1", 9300, "SALE_PROCEEDS"),
            ("customer-1", 200, "CASHBACK"),
            ("referrer-1", 100, "REFERRAL_BONUS"),
        ]

    def test_balance_payment_conserves_value(self) -> None:
        sale = _make_sale(PaymentMethod.CASHBACK.value)
        moved = sum(p.amount for p in build_sale_postings(sale))
        # What left the system is what the platform kept
        assert -moved == sale.platform_fee - sale.referral_bonus


class TestBuildRefundPostings:
    def test_reverses_every_posting(self) -> None:
        sale = _make_sale(PaymentMethod.CASHBACK.value)
        forward = build_sale_postings(sale)
        refund = build_refund_postings(sale)
        assert sum(p.amount for p in forward) + sum(p.amount for p in refund) == 0
        assert len(refund) == len(forward)

    def test_credits_come_before_debits(self) -> None:
        refund = build_refund_postings(_make_sale(PaymentMethod.CASHBACK.value))
        signs = [p.amount > 0 for p in refund]
        assert signs == sorted(signs, reverse=True)
        assert _summary(refund)[0] == ("customer-1", 10000, "SALE_PAYMENT_REFUND")

    def test_reversal_entry_types(self) -> None:
        types = {LedgerEntryType(p.entry_type).value for p in build_refund_postings(_make_sale())}
        assert types == {"CASHBACK_REVERSAL", "REFERRAL_REVERSAL"}


class TestSaleTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [("pending", "completed"), ("pending", "cancelled"), ("completed", "refunded")],
    )
    def test_allowed(self, current: str, target: str) -> None:
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("completed", "cancelled"),
            ("completed", "completed"),
            ("cancelled", "completed"),
            ("refunded", "completed"),
            ("refunded", "refunded"),
            ("pending", "refunded"),
            ("completed", "pending"),
        ],
    )
    def test_rejected(self, current: str, target: str) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            ensure_transition(current, target)

    def test_accepts_enum_members(self) -> None:
        ensure_transition(SaleStatus.PENDING, SaleStatus.COMPLETED)

    def test_is_settled(self) -> None:
        assert _make_sale().is_settled
        assert not _make_sale(status=SaleStatus.PENDING.value).is_settled


class TestPaymentCodeStatus:
    def _code(self, status: str, expires_in: timedelta) -> tuple[PaymentCode, datetime]:
        now = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
        code = PaymentCode(
            code="PAY000000000001",
            merchant_id="merchant-1",
            amount=5000,
            status=status,
            expires_at=now + expires_in,
        )
        return code, now

    def test_active_before_expiry(self) -> None:
        code, now = self._code(PaymentCodeStatus.ACTIVE.value, timedelta(minutes=5))
        assert code.effective_status(now) == PaymentCodeStatus.ACTIVE

    def test_active_past_expiry_reads_expired(self) -> None:
        code, now = self._code(PaymentCodeStatus.ACTIVE.value, timedelta(seconds=0))
        assert code.effective_status(now) == PaymentCodeStatus.EXPIRED

    def test_used_stays_used(self) -> None:
        code, now = self._code(PaymentCodeStatus.USED.value, timedelta(minutes=-5))
        assert code.effective_status(now) == PaymentCodeStatus.USED
