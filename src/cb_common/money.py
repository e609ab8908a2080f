"""Currency arithmetic utilities.

Balances and stored amounts are int cents. Calculations that involve rates
run on Decimal and are rounded half-up to whole cents exactly once, at the
end. No float anywhere on the money path.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def round_currency(value: Decimal) -> Decimal:
    """Round to 2 places, half away from zero: 0.125 -> 0.13, 0.135 -> 0.14."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def has_cent_precision(value: Decimal) -> bool:
    """True if value carries no digits beyond the cent."""
    return value == value.quantize(CENT)


def to_cents(value: Decimal) -> int:
    """Convert a currency amount to int cents. Sub-cent digits are an error."""
    if not has_cent_precision(value):
        raise ValueError(f"Amount has more than 2 decimal places: {value}")
    return int(value * 100)


def from_cents(cents: int) -> Decimal:
    """Convert int cents to a 2-place Decimal: 6500 -> Decimal('65.00')."""
    return (Decimal(cents) / 100).quantize(CENT)


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def rate_to_percent(rate: Decimal) -> str:
    """Fraction to percent string, at least 2 places: 0.05 -> "5.00", 0.012345 -> "1.2345"."""
    pct = (rate * 100).quantize(Decimal("0.0001")).normalize()
    if pct.as_tuple().exponent > -2:  # type: ignore[operator]
        pct = pct.quantize(CENT)
    return f"{pct:f}"
