"""Tests for fs_common.id_generator and fs_common.datetime_utils."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.fs_common.datetime_utils import as_utc, iso_or_none, utc_now, window_end
from src.fs_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = gen.next_int()
        for _ in range(100):
            current = gen.next_int()
            assert current > prev
            prev = current

    def test_prefix(self) -> None:
        assert generate_id("auc").startswith("auc_")

    def test_machine_id_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)


class TestDatetimeUtils:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo is not None

    def test_naive_treated_as_utc(self) -> None:
        assert as_utc(datetime(2026, 5, 1, 9, 0)) == datetime(2026, 5, 1, 9, 0, tzinfo=UTC)

    def test_offset_converted(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        assert as_utc(datetime(2026, 5, 1, 11, 0, tzinfo=plus_two)).hour == 9

    def test_window_end(self) -> None:
        start = datetime(2026, 5, 1, 9, 0, tzinfo=UTC)
        assert window_end(start, 90) == datetime(2026, 5, 1, 10, 30, tzinfo=UTC)

    def test_iso_or_none(self) -> None:
        assert iso_or_none(None) is None
