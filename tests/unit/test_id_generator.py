"""Tests for cb_common.id_generator and cb_common.datetime_utils."""

from datetime import UTC, date, datetime, timedelta

import pytest

from src.cb_common.datetime_utils import day_range_utc, utc_now
from src.cb_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_returns_int(self) -> None:
        assert isinstance(SnowflakeIdGenerator(machine_id=1).next_int(), int)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_int() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = gen.next_int()
        for _ in range(100):
            current = gen.next_int()
            assert current > prev
            prev = current

    def test_machine_id_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)


class TestGenerateId:
    def test_prefix_and_width(self) -> None:
        sale_id = generate_id("SL")
        assert sale_id.startswith("SL")
        assert len(sale_id) == 24

    def test_string_order_matches_creation_order(self) -> None:
        ids = [generate_id("WD") for _ in range(50)]
        assert ids == sorted(ids)


class TestUtcNow:
    def test_returns_aware_datetime(self) -> None:
        now = utc_now()
        assert isinstance(now, datetime)
        assert now.tzinfo is not None

    def test_is_utc(self) -> None:
        assert utc_now().utcoffset() == timedelta(0)


class TestDayRangeUtc:
    def test_single_day_is_half_open(self) -> None:
        lo, hi = day_range_utc(date(2026, 3, 1), date(2026, 3, 1))
        assert lo == datetime(2026, 3, 1, tzinfo=UTC)
        assert hi == datetime(2026, 3, 2, tzinfo=UTC)

    def test_end_before_start(self) -> None:
        with pytest.raises(ValueError):
            day_range_utc(date(2026, 3, 2), date(2026, 3, 1))
