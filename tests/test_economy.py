"""Tests for the decimal economy."""
from decimal import Decimal

import pytest

from idlecore import economy
from idlecore.errors import InvalidDecimalError


# ── Conversion ───────────────────────────────────────────────────────


def test_to_decimal_accepts_strings_ints_floats():
    assert economy.to_decimal("1.5") == Decimal("1.5")
    assert economy.to_decimal(" 42 ") == Decimal(42)
    assert economy.to_decimal(7) == Decimal(7)
    assert economy.to_decimal(0.05) == Decimal("0.05")


@pytest.mark.parametrize("bad", ["abc", "", "inf", "NaN", True, None])
def test_to_decimal_rejects_invalid(bad):
    with pytest.raises(InvalidDecimalError):
        economy.to_decimal(bad)


def test_invalid_decimal_error_is_value_error():
    with pytest.raises(ValueError):
        economy.add("not-a-number", "1")


def test_to_storage_normalises():
    assert economy.to_storage(Decimal("1.500")) == "1.5"
    assert economy.to_storage(Decimal("100")) == "100"
    assert economy.to_storage(Decimal("0E+10")) == "0"
    assert economy.to_storage(Decimal("1E+30")) == "1E+30"


def test_is_valid_decimal_string():
    assert economy.is_valid_decimal_string("1e400")
    assert not economy.is_valid_decimal_string("12abc")


# ── Arithmetic ───────────────────────────────────────────────────────


def test_basic_arithmetic_is_exact():
    assert economy.add("0.1", "0.2") == "0.3"
    assert economy.subtract("5", "7") == "-2"
    assert economy.multiply("1.5", "4") == "6"
    assert economy.divide("10", "4") == "2.5"


def test_arithmetic_beyond_float_range():
    assert economy.multiply("1e300", "1e300") == "1E+600"
    assert economy.is_greater_than(economy.multiply("1e400", "2"), "1e400")
    assert economy.format_decimal(economy.multiply("1e400", "2")) == "2.00e400"


def test_divide_by_zero_raises():
    with pytest.raises(ZeroDivisionError):
        economy.divide("1", "0")


def test_power():
    assert economy.power("2", 10) == "1024"
    assert economy.power("1.15", 0) == "1"
    assert economy.power("0", 0) == "1"


def test_rounding_helpers():
    assert economy.floor("2.7") == "2"
    assert economy.floor("-2.5") == "-3"
    assert economy.ceil("2.1") == "3"
    assert economy.minimum("3", "2.5") == "2.5"
    assert economy.maximum("3", "2.5") == "3"


def test_sum_decimals():
    assert economy.sum_decimals(["1", "2.5", "0.5"]) == "4"
    assert economy.sum_decimals([]) == "0"


# ── Comparison ───────────────────────────────────────────────────────


def test_comparisons():
    assert economy.is_greater_than("2", "1")
    assert economy.is_greater_or_equal("2", "2")
    assert economy.is_less_than("1", "2")
    assert economy.is_less_or_equal("2", "2.0")
    assert economy.is_equal("1.50", "1.5")
    assert economy.is_not_equal("1", "2")


def test_sign_predicates():
    assert economy.is_zero("0.000")
    assert economy.is_positive("0.01")
    assert not economy.is_positive("0")
    assert economy.is_negative("-1")


# ── Formatting ───────────────────────────────────────────────────────


def test_format_decimal_small_values():
    assert economy.format_decimal("0") == "0"
    assert economy.format_decimal("999") == "999"
    assert economy.format_decimal("100.00") == "100"
    assert economy.format_decimal("0.5") == "0.5"
    assert economy.format_decimal("12.345") == "12.35"


def test_format_decimal_suffixes():
    assert economy.format_decimal("1500") == "1.50K"
    assert economy.format_decimal("1234567") == "1.23M"
    assert economy.format_decimal("1.5e15") == "1.50Qa"
    assert economy.format_decimal("1e65") == "100.00Vg"


def test_format_decimal_negative():
    assert economy.format_decimal("-1500") == "-1.50K"
    assert economy.format_decimal("-5") == "-5"


def test_format_decimal_falls_back_to_scientific():
    assert economy.format_decimal("1e66") == "1.00e66"


def test_format_scientific():
    assert economy.format_scientific("12345") == "1.23e4"
    assert economy.format_scientific("0") == "0"


def test_format_percent_and_fixed():
    assert economy.format_percent("0.15") == "15%"
    assert economy.format_percent("1.05") == "105%"
    assert economy.format_fixed("0.3", 1) == "0.3"
    assert economy.format_fixed("1", 1) == "1.0"


def test_format_rate_and_resource():
    assert economy.format_rate("1500") == "1.50K/sec"
    assert economy.format_resource("money", "1500") == "$1.50K"
    assert economy.format_resource("technique", "5") == "5 TP"
    assert economy.format_resource("unknown", "5") == "5"


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "0s"),
        (59, "59s"),
        (90.7, "1m 30s"),
        (3600, "1h"),
        (3725, "1h 2m 5s"),
        (28800, "8h"),
    ],
)
def test_format_duration(seconds, expected):
    assert economy.format_duration(seconds) == expected


# ── Cost and generation helpers ──────────────────────────────────────


def test_calculate_cost():
    assert economy.calculate_cost("100", "1.15", 0) == "100"
    assert economy.calculate_cost("100", "1.15", 1) == "115"
    assert economy.calculate_cost("100", "1.15", 2) == "132.25"


def test_calculate_bulk_cost():
    assert economy.calculate_bulk_cost("100", "1.15", 0, 2) == "215"
    assert economy.calculate_bulk_cost("10", "1", 3, 4) == "40"
    assert economy.calculate_bulk_cost("100", "1.15", 0, 0) == "0"


def test_can_afford():
    assert economy.can_afford("100", "100")
    assert not economy.can_afford("99.99", "100")


def test_generation_and_efficiency():
    assert economy.calculate_generation("10", 30) == "300"
    assert economy.apply_efficiency("300", "0.5") == "150"


@pytest.mark.parametrize(
    "a, b",
    [("123.456", "1e10"), ("0", "7"), ("1e300", "3.5"), ("99.99", "0.01")],
)
def test_add_then_subtract_recovers_value(a, b):
    assert economy.is_equal(economy.subtract(economy.add(a, b), b), a)
