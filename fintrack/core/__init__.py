"""
Core money and signature helpers
"""
from .financial_precision import (
    to_decimal,
    round_financial,
    to_float,
    to_minor_units,
    validate_non_negative,
    safe_add,
    sum_amounts,
    FinancialPrecisionError,
    NegativeValueError
)

from .signatures import (
    compute_payment_signature,
    verify_payment_signature
)

__all__ = [
    # Financial Precision
    'to_decimal',
    'round_financial',
    'to_float',
    'to_minor_units',
    'validate_non_negative',
    'safe_add',
    'sum_amounts',
    'FinancialPrecisionError',
    'NegativeValueError',
    # Signatures
    'compute_payment_signature',
    'verify_payment_signature',
]
