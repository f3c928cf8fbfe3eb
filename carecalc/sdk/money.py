"""Fixed-point money helpers.

All monetary arithmetic uses ``Decimal``. Floats are converted through their
``str()`` form so 0.1 becomes Decimal("0.1") rather than its binary expansion.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from .errors import ValidationError

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
PENNY = Decimal("0.01")


def to_decimal(value: Number, field: str = "amount") -> Decimal:
    """Convert an int/float/str/Decimal to Decimal.

    Raises:
        ValidationError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(f"{field} must be a number, got {value!r}", field=field)
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite, got {value!r}", field=field)
    return result


def round_money(amount: Number) -> Decimal:
    """Round to pence, half up.

    Example: 394.665 -> 394.67, 394.664 -> 394.66
    """
    return to_decimal(amount).quantize(PENNY, rounding=ROUND_HALF_UP)


def require_non_negative(value: Number, field: str) -> Decimal:
    """Convert to Decimal and reject negative values."""
    amount = to_decimal(value, field)
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0, got {amount}", field=field)
    return amount
