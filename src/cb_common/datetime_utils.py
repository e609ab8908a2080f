"""UTC datetime utilities."""

from datetime import date, datetime, time, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def day_range_utc(start: date, end: date) -> tuple[datetime, datetime]:
    """Half-open UTC range [start 00:00, end+1 00:00) covering both dates."""
    if end < start:
        raise ValueError(f"end date {end} is before start date {start}")
    lo = datetime.combine(start, time.min, tzinfo=timezone.utc)
    hi = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return lo, hi
