"""
Decimal Math Utilities for agency money figures.

The backend stores premium as integer cents; calculators and reports work
in dollars. These helpers keep the conversion and rounding in one place so
a CSV total and a dashboard total never disagree by a penny.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional, Union
import logging

logger = logging.getLogger(__name__)

# Type alias for values that can be converted to Decimal
Numeric = Union[int, float, str, Decimal]

MONEY_PLACES = Decimal("0.01")  # Round to pennies
CENTS_PER_DOLLAR = Decimal("100")

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Examples:
        >>> to_decimal(100.50)
        Decimal('100.5')
        >>> to_decimal("100.50")
        Decimal('100.50')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Convert float to string first to preserve representation
        return Decimal(str(value))
    return Decimal(value)


def money(value: Numeric) -> Decimal:
    """
    Convert value to money (rounded half-up to pennies).

    Examples:
        >>> money(100.999)
        Decimal('101.00')
        >>> money(100.994)
        Decimal('100.99')
    """
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def cents_to_dollars(cents: Optional[int]) -> Decimal:
    """Convert backend integer cents to dollars; missing premium counts as zero."""
    if cents is None:
        return money(0)
    return money(to_decimal(cents) / CENTS_PER_DOLLAR)


def dollars_to_cents(value: Optional[Numeric]) -> Optional[int]:
    """
    Convert a dollar amount to integer cents, rounding half-up.

    Examples:
        >>> dollars_to_cents("1,234.505".replace(",", ""))
        123451
    """
    if value is None:
        return None
    cents = (to_decimal(value) * CENTS_PER_DOLLAR).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def round_half_up(value: Numeric, places: int = 0) -> Decimal:
    """
    Round half away from zero, as dashboards display it.

    Python's round() uses banker's rounding (round(2.5) == 2), which would
    make a 62.5% hit rate show as 62%.

    Examples:
        >>> round_half_up(2.5)
        Decimal('3')
        >>> round_half_up(1.25, 1)
        Decimal('1.3')
    """
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def round_int(value: Numeric) -> int:
    """Half-up rounding to an int."""
    return int(round_half_up(value))


def sum_cents(values: Iterable[Optional[int]]) -> int:
    """Sum cent amounts, treating missing values as zero."""
    return sum(v or 0 for v in values)


def divide_or_none(numerator: Optional[Numeric], denominator: Optional[Numeric]) -> Optional[float]:
    """
    Divide, returning None when either side is unknown or the denominator is zero.

    Used for every per-unit metric so a blank input never turns into a
    division error or an infinite cost.
    """
    if numerator is None or denominator is None:
        return None
    try:
        denom = to_decimal(denominator)
        if denom == 0:
            return None
        return float(to_decimal(numerator) / denom)
    except InvalidOperation:
        logger.debug("Non-numeric operand in divide_or_none: %r / %r", numerator, denominator)
        return None


def format_money(value: Optional[Numeric], missing: str = "--") -> str:
    """
    Format value as a US dollar string.

    Examples:
        >>> format_money(1234567.891)
        '$1,234,567.89'
        >>> format_money(-50)
        '-$50.00'
        >>> format_money(None)
        '--'
    """
    if value is None:
        return missing
    m = money(value)
    if m < 0:
        return f"-${-m:,.2f}"
    return f"${m:,.2f}"


def format_money_short(cents: Optional[int]) -> str:
    """
    Compact dollar figure for hero cards, from cents.

    Examples:
        >>> format_money_short(123456789)
        '$1.2M'
        >>> format_money_short(4560000)
        '$45.6K'
        >>> format_money_short(9900)
        '$99'
    """
    dollars = cents_to_dollars(cents)
    if dollars >= Decimal("1000000"):
        return f"${dollars / Decimal('1000000'):.1f}M"
    if dollars >= Decimal("1000"):
        return f"${dollars / Decimal('1000'):.1f}K"
    return f"${dollars:,.0f}"


def format_signed_percent(value: Optional[float], decimal_places: int = 1, missing: str = "--") -> str:
    """
    Format a percentage with an explicit sign for non-negative values.

    Examples:
        >>> format_signed_percent(12.345)
        '+12.3%'
        >>> format_signed_percent(-4)
        '-4.0%'
    """
    if value is None:
        return missing
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimal_places}f}%"
