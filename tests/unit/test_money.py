"""Tests for cb_common.money."""

from decimal import Decimal

import pytest

from src.cb_common.money import (
    cents_to_display,
    from_cents,
    has_cent_precision,
    rate_to_percent,
    round_currency,
    to_cents,
)


class TestRoundCurrency:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("0.125", "0.13"),
            ("0.135", "0.14"),
            ("0.124", "0.12"),
            ("2.005", "2.01"),
            ("-0.125", "-0.13"),
            ("10", "10.00"),
        ],
    )
    def test_half_up(self, value: str, expected: str) -> None:
        assert round_currency(Decimal(value)) == Decimal(expected)


class TestCents:
    def test_to_cents(self) -> None:
        assert to_cents(Decimal("65.00")) == 6500
        assert to_cents(Decimal("0.01")) == 1
        assert to_cents(Decimal("12.3")) == 1230

    def test_to_cents_rejects_sub_cent(self) -> None:
        with pytest.raises(ValueError):
            to_cents(Decimal("1.005"))

    def test_from_cents(self) -> None:
        assert from_cents(6500) == Decimal("65.00")
        assert str(from_cents(1)) == "0.01"
        assert str(from_cents(0)) == "0.00"

    def test_has_cent_precision(self) -> None:
        assert has_cent_precision(Decimal("1.10"))
        assert has_cent_precision(Decimal("7"))
        assert not has_cent_precision(Decimal("1.001"))


class TestDisplay:
    def test_positive(self) -> None:
        assert cents_to_display(6500) == "$65.00"

    def test_thousands(self) -> None:
        assert cents_to_display(123456789) == "$1,234,567.89"

    def test_negative(self) -> None:
        assert cents_to_display(-1205) == "-$12.05"


class TestRateToPercent:
    def test_whole_percent(self) -> None:
        assert rate_to_percent(Decimal("0.05")) == "5.00"

    def test_zero(self) -> None:
        assert rate_to_percent(Decimal("0")) == "0.00"

    def test_fine_grained(self) -> None:
        assert rate_to_percent(Decimal("0.012345")) == "1.2345"
