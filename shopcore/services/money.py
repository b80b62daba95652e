"""
Money Utilities - Safe Decimal operations for monetary values.

Avoids float precision issues by using Decimal throughout. Floats are only
produced at display/serialization boundaries.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Number = Union[str, int, float, Decimal]

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

# Precision for zero-decimal currencies (NGN, INR, JMD)
INTEGER_PRECISION = Decimal("1")

# Currencies displayed without a fractional unit
ZERO_DECIMAL_CURRENCIES = frozenset({"NGN", "INR", "JMD"})


def to_decimal(value: Union[Number, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        # Convert via string to avoid float precision issues
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def round_money(value: Number, to_int: bool = False) -> Decimal:
    """
    Round monetary value to appropriate precision.

    ROUND_HALF_UP on Decimal rounds ties away from zero, so -2.5 becomes -3.

    Args:
        value: Value to round
        to_int: If True, round to a whole unit

    Returns:
        Rounded Decimal value
    """
    decimal_value = to_decimal(value)
    precision = INTEGER_PRECISION if to_int else MONEY_PRECISION
    return decimal_value.quantize(precision, rounding=ROUND_HALF_UP)


def is_zero_decimal(currency: str) -> bool:
    """Whether the currency is displayed in whole units only."""
    return (currency or "").upper() in ZERO_DECIMAL_CURRENCIES


def format_amount(value: Number, currency: str, symbol: str) -> str:
    """
    Render an amount that is already expressed in `currency`.

    Zero-decimal currencies are rounded to a whole unit and grouped with
    thousands separators; every other currency gets exactly two decimals.
    The symbol is prefixed with no separating space.

    Args:
        value: Amount in the target currency
        currency: Currency code deciding the family rule
        symbol: Display symbol

    Returns:
        Formatted string, e.g. "₦1,235" or "£9.00"
    """
    decimal_value = to_decimal(value)

    if is_zero_decimal(currency):
        formatted = f"{int(round_money(decimal_value, to_int=True)):,}"
    else:
        formatted = f"{round_money(decimal_value)}"

    return f"{symbol}{formatted}"
