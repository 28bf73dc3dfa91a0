"""Tests for fs_common.cents."""

import pytest

from src.fs_common.cents import cents_to_display, line_total


class TestCentsToDisplay:
    def test_whole_dollars(self) -> None:
        assert cents_to_display(6500) == "$65.00"

    def test_thousands_separator(self) -> None:
        assert cents_to_display(123456789) == "$1,234,567.89"

    def test_negative(self) -> None:
        assert cents_to_display(-1205) == "-$12.05"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "$0.00"


class TestLineTotal:
    def test_product(self) -> None:
        assert line_total(12, 10000) == 120000

    def test_zero_quantity(self) -> None:
        assert line_total(0, 10000) == 0

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            line_total(-1, 100)
