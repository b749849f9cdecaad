"""Tests for pm_common.money and pm_common.datetime_utils."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from src.pm_common.datetime_utils import as_utc
from src.pm_common.money import money_to_display, to_money


class TestToMoney:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Decimal("25"), Decimal("25.00")),
            ("19.999", Decimal("20.00")),
            ("0.005", Decimal("0.01")),
            (7, Decimal("7.00")),
        ],
    )
    def test_quantizes_half_up(self, value, expected) -> None:
        assert to_money(value) == expected
        assert to_money(value).as_tuple().exponent == -2


class TestMoneyToDisplay:
    def test_thousands_separator(self) -> None:
        assert money_to_display(Decimal("1234.5")) == "$1,234.50"

    def test_negative(self) -> None:
        assert money_to_display(Decimal("-12")) == "-$12.00"

    def test_zero(self) -> None:
        assert money_to_display(Decimal("0")) == "$0.00"


class TestAsUtc:
    def test_naive_is_tagged(self) -> None:
        assert as_utc(datetime(2026, 1, 1, 9, 0)).tzinfo == timezone.utc

    def test_offset_is_converted(self) -> None:
        eastern = datetime(2026, 1, 1, 9, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert as_utc(eastern) == datetime(2026, 1, 1, 14, 0, tzinfo=timezone.utc)
