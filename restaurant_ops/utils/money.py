"""
Currency and flag coercion helpers.

Form inputs are lenient: blank or unparsable amounts count as zero.
Wire output is fixed to two decimals, rounded half-up.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0")

_TRUE_STRINGS = {"true", "1", "yes", "y", "open", "on", "t"}
_FALSE_STRINGS = {"false", "0", "no", "n", "closed", "off", "f", ""}


def to_decimal(value: Any) -> Decimal:
    """Coerce a user/server value to Decimal; invalid input becomes 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip().replace(",", "").lstrip("$"))
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result


def to_count(value: Any) -> int:
    """Coerce a ticket count; fractional input is truncated toward zero."""
    return int(to_decimal(value))


def quantize_currency(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(value: Any) -> str:
    """Two-decimal wire string, e.g. Decimal('12.5') -> '12.50'."""
    return f"{quantize_currency(value):.2f}"


def normalize_flag(value: Any, default: Optional[bool] = None) -> Optional[bool]:
    """
    Normalize boolean/int/string encodings of a flag.

    None (or an unrecognized string) returns `default`.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return default
