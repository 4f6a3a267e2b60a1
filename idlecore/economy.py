"""Arbitrary-precision economy math over decimal strings.

Every value destined for storage is returned as a normalised string so it
round-trips losslessly through the state store; comparisons return plain
booleans. Inputs may be strings, ints, floats or ``Decimal`` instances.
"""

from __future__ import annotations

from decimal import (
    MAX_EMAX,
    MIN_EMIN,
    ROUND_CEILING,
    ROUND_FLOOR,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    InvalidOperation,
)
from typing import Iterable

from idlecore._types import DecimalInput, compare
from idlecore.errors import InvalidDecimalError
from idlecore.resource import ResourceType, get_resource_def

ZERO = "0"
ONE = "1"

# Balances can climb far past float range over long idle sessions, so all
# arithmetic runs in a private context with generous precision and the full
# exponent range of the decimal module.
_CONTEXT = Context(prec=50, rounding=ROUND_HALF_EVEN, Emax=MAX_EMAX, Emin=MIN_EMIN)

# Plain notation is used for storage strings within this many orders of magnitude.
_PLAIN_NOTATION_LIMIT = 18

_THOUSAND = Decimal(1000)
_HUNDRED = Decimal(100)

NUMBER_SUFFIXES: tuple[str, ...] = (
    "",
    "K",
    "M",
    "B",
    "T",
    "Qa",
    "Qi",
    "Sx",
    "Sp",
    "Oc",
    "No",
    "Dc",
    "UDc",
    "DDc",
    "TDc",
    "QaDc",
    "QiDc",
    "SxDc",
    "SpDc",
    "OcDc",
    "NoDc",
    "Vg",
)


# ── Conversion ───────────────────────────────────────────────────────


def to_decimal(value: DecimalInput) -> Decimal:
    """Parse any accepted input into a finite Decimal."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidDecimalError(value)
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        # Go through repr so 0.05 stays 0.05 instead of its binary expansion
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise InvalidDecimalError(value) from exc
    else:
        raise InvalidDecimalError(value)

    if not result.is_finite():
        raise InvalidDecimalError(value)
    return result


def to_storage(value: Decimal) -> str:
    """Serialise a Decimal as a normalised string."""
    if not value:
        return ZERO
    normalised = value.normalize(_CONTEXT)
    if abs(normalised.adjusted()) > _PLAIN_NOTATION_LIMIT:
        return str(normalised)
    return format(normalised, "f")


def is_valid_decimal_string(value: str) -> bool:
    try:
        to_decimal(value)
    except InvalidDecimalError:
        return False
    return True


# ── Arithmetic ───────────────────────────────────────────────────────


def add(a: DecimalInput, b: DecimalInput) -> str:
    return to_storage(_CONTEXT.add(to_decimal(a), to_decimal(b)))


def subtract(a: DecimalInput, b: DecimalInput) -> str:
    return to_storage(_CONTEXT.subtract(to_decimal(a), to_decimal(b)))


def multiply(a: DecimalInput, b: DecimalInput) -> str:
    return to_storage(_CONTEXT.multiply(to_decimal(a), to_decimal(b)))


def divide(a: DecimalInput, b: DecimalInput) -> str:
    """Divide a by b. Division by zero raises ZeroDivisionError."""
    return to_storage(_CONTEXT.divide(to_decimal(a), to_decimal(b)))


def power(base: DecimalInput, exponent: DecimalInput) -> str:
    exp = to_decimal(exponent)
    if exp.is_zero():
        return ONE
    return to_storage(_CONTEXT.power(to_decimal(base), exp))


def minimum(a: DecimalInput, b: DecimalInput) -> str:
    return to_storage(_CONTEXT.min(to_decimal(a), to_decimal(b)))


def maximum(a: DecimalInput, b: DecimalInput) -> str:
    return to_storage(_CONTEXT.max(to_decimal(a), to_decimal(b)))


def floor(value: DecimalInput) -> str:
    return to_storage(to_decimal(value).to_integral_value(rounding=ROUND_FLOOR))


def ceil(value: DecimalInput) -> str:
    return to_storage(to_decimal(value).to_integral_value(rounding=ROUND_CEILING))


def sum_decimals(values: Iterable[DecimalInput]) -> str:
    total = Decimal(0)
    for value in values:
        total = _CONTEXT.add(total, to_decimal(value))
    return to_storage(total)


# ── Comparison ───────────────────────────────────────────────────────


def is_greater_than(a: DecimalInput, b: DecimalInput) -> bool:
    return compare(to_decimal(a), ">", to_decimal(b))


def is_greater_or_equal(a: DecimalInput, b: DecimalInput) -> bool:
    return compare(to_decimal(a), ">=", to_decimal(b))


def is_less_than(a: DecimalInput, b: DecimalInput) -> bool:
    return compare(to_decimal(a), "<", to_decimal(b))


def is_less_or_equal(a: DecimalInput, b: DecimalInput) -> bool:
    return compare(to_decimal(a), "<=", to_decimal(b))


def is_equal(a: DecimalInput, b: DecimalInput) -> bool:
    return compare(to_decimal(a), "==", to_decimal(b))


def is_not_equal(a: DecimalInput, b: DecimalInput) -> bool:
    return compare(to_decimal(a), "!=", to_decimal(b))


def is_zero(value: DecimalInput) -> bool:
    return to_decimal(value).is_zero()


def is_positive(value: DecimalInput) -> bool:
    return to_decimal(value) > 0


def is_negative(value: DecimalInput) -> bool:
    return to_decimal(value) < 0


# ── Formatting ───────────────────────────────────────────────────────


def _round(value: Decimal, precision: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP, context=_CONTEXT)


def format_decimal(value: DecimalInput, precision: int = 2) -> str:
    """Render a value for display.

    Values below 1000 use digit grouping and up to *precision* decimals.
    Larger values get a magnitude suffix (1.50K, 2.00M, ...) picked by
    ``exponent // 3``; past the end of the suffix table the value falls back
    to scientific notation.
    """
    number = to_decimal(value)

    if number.is_zero():
        return ZERO

    if number < 0:
        return "-" + format_decimal(-number, precision)

    if number < _THOUSAND:
        if number == number.to_integral_value():
            return f"{int(number):,}"
        text = f"{_round(number, precision):,f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text

    tier = number.adjusted() // 3
    if tier < len(NUMBER_SUFFIXES):
        mantissa = number.scaleb(-3 * tier, _CONTEXT)
        return f"{_round(mantissa, precision)}{NUMBER_SUFFIXES[tier]}"

    return format_scientific(number, precision)


def format_scientific(value: DecimalInput, precision: int = 2) -> str:
    """Render as ``<mantissa>e<exponent>``, e.g. ``1.23e100``."""
    number = to_decimal(value)

    if number.is_zero():
        return ZERO

    if number < 0:
        return "-" + format_scientific(-number, precision)

    exponent = number.adjusted()
    mantissa = _round(number.scaleb(-exponent, _CONTEXT), precision)
    return f"{mantissa}e{exponent}"


def format_fixed(value: DecimalInput, places: int) -> str:
    """Fixed-point rendering with exactly *places* decimals: 0.3 -> "0.3", 1 -> "1.0"."""
    return f"{_round(to_decimal(value), places):f}"


def format_percent(value: DecimalInput, precision: int = 0) -> str:
    """0.15 -> "15%"."""
    percentage = _CONTEXT.multiply(to_decimal(value), _HUNDRED)
    return f"{_round(percentage, precision)}%"


def format_rate(value: DecimalInput) -> str:
    return f"{format_decimal(value)}/sec"


def format_resource(resource: ResourceType | str, value: DecimalInput) -> str:
    """Format a value decorated with its resource symbol ("$1.23M", "5 TP")."""
    formatted = format_decimal(value)
    rdef = get_resource_def(resource)
    if rdef is None:
        return formatted
    return rdef.decorate(formatted)


def format_duration(seconds: float) -> str:
    """3725 -> "1h 2m 5s"; zero-valued units are omitted, 0 -> "0s"."""
    total = int(max(seconds, 0))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


# ── Cost and generation helpers ──────────────────────────────────────


def calculate_cost(base_cost: DecimalInput, growth_rate: DecimalInput, level: int) -> str:
    """Cost = base_cost * growth_rate^level."""
    return multiply(base_cost, power(growth_rate, level))


def calculate_bulk_cost(
    base_cost: DecimalInput,
    growth_rate: DecimalInput,
    current_level: int,
    levels_to_buy: int,
) -> str:
    """Total cost of buying *levels_to_buy* levels starting at *current_level*."""
    if levels_to_buy <= 0:
        return ZERO

    rate = to_decimal(growth_rate)
    start_cost = to_decimal(calculate_cost(base_cost, rate, current_level))

    if rate == 1:
        return multiply(start_cost, levels_to_buy)

    # Geometric series: start * (rate^n - 1) / (rate - 1)
    rate_to_levels = to_decimal(power(rate, levels_to_buy))
    numerator = _CONTEXT.multiply(start_cost, _CONTEXT.subtract(rate_to_levels, Decimal(1)))
    return divide(numerator, _CONTEXT.subtract(rate, Decimal(1)))


def can_afford(current: DecimalInput, cost: DecimalInput) -> bool:
    return is_greater_or_equal(current, cost)


def calculate_generation(rate_per_second: DecimalInput, seconds: DecimalInput) -> str:
    return multiply(rate_per_second, seconds)


def apply_efficiency(value: DecimalInput, efficiency: DecimalInput) -> str:
    return multiply(value, efficiency)
