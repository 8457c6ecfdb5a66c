"""
DECIMAL PRECISION & MONEY HELPERS

This module provides:
1. Decimal precision lock (2-decimal places)
2. Major -> minor currency unit conversion for the payment provider
3. Value validation (no negative amounts)
4. Safe summation for project statistics
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Union
import logging

from fintrack.errors import FinancialPrecisionError, NegativeValueError

logger = logging.getLogger(__name__)

# Precision configuration
DECIMAL_PLACES = 2
QUANTIZE_PATTERN = Decimal('0.01')
MINOR_UNITS_PER_MAJOR = 100


def _checked(value: Decimal, original) -> Decimal:
    if not value.is_finite():
        raise FinancialPrecisionError(f"Not a finite amount: {original}")
    return value


def to_decimal(value: Union[float, int, str, Decimal]) -> Decimal:
    """
    Convert any numeric value to Decimal.
    Does NOT round - preserves full precision for intermediate calculations.
    NaN and infinities are rejected.
    """
    if isinstance(value, bool):
        raise FinancialPrecisionError(f"Cannot convert {type(value)} to Decimal")
    if isinstance(value, Decimal):
        return _checked(value, value)
    if isinstance(value, (int, float)):
        # Convert via string to avoid float precision issues
        return _checked(Decimal(str(value)), value)
    if isinstance(value, str):
        try:
            return _checked(Decimal(value), value)
        except InvalidOperation:
            raise FinancialPrecisionError(f"Cannot convert '{value}' to Decimal")
    raise FinancialPrecisionError(f"Cannot convert {type(value)} to Decimal")


def round_financial(value: Union[float, int, str, Decimal]) -> Decimal:
    """
    Round a value to 2 decimal places (half up).
    This should be called ONLY at calculation boundaries.
    """
    try:
        return to_decimal(value).quantize(QUANTIZE_PATTERN, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More digits than the decimal context holds
        raise FinancialPrecisionError(f"Amount out of range: {value}")


def to_float(value: Union[float, int, Decimal]) -> float:
    """Convert back to float for MongoDB storage / JSON. Rounds to 2 places first."""
    return float(round_financial(value))


def to_minor_units(amount: Union[float, int, str, Decimal]) -> int:
    """
    Convert a major-unit amount (rupees) to minor units (paise).
    Example: to_minor_units(100) = 10000
    """
    return int(round_financial(amount) * MINOR_UNITS_PER_MAJOR)


def validate_non_negative(value: Union[float, int, Decimal], field_name: str) -> None:
    """
    Validate that a financial value is not negative.
    Raises NegativeValueError if validation fails, FinancialPrecisionError if
    the value is not a finite number.
    """
    if to_decimal(value) < Decimal('0'):
        raise NegativeValueError(
            f"Financial value '{field_name}' cannot be negative: {value}"
        )


def safe_add(*values: Union[float, int, Decimal]) -> Decimal:
    """Safe addition of multiple values"""
    result = Decimal('0')
    for v in values:
        result += to_decimal(v)
    return result


def sum_amounts(records: Iterable[dict], field_name: str = "amount") -> Decimal:
    """Sum one numeric field across documents; missing values count as zero"""
    return safe_add(*(record.get(field_name) or 0 for record in records))
