"""Class 1 employee National Insurance.

Thresholds are weekly, so monthly pay is converted to a weekly equivalent
(x 12 / 52), banded, scaled by the NI category factor and converted back
(x 52 / 12).
"""

import logging
from decimal import Decimal
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from ..money import ZERO, Number, require_non_negative, round_money
from .schemas import NIRates

logger = logging.getLogger(__name__)

# Share of the standard employee rate each NI category pays
NI_CATEGORY_RATES = {
    "A": Decimal("1.0"),   # Standard rate
    "B": Decimal("0.85"),  # Married women's reduced rate
    "C": Decimal("0"),     # Over state pension age
    "H": Decimal("0.85"),  # Apprentice under 25
    "J": Decimal("0.95"),  # Deferred rate
    "M": Decimal("0.90"),  # Under 21
    "Z": Decimal("0.95"),  # Deferred rate under 21
}

WEEKS_PER_YEAR = Decimal(52)
MONTHS_PER_YEAR = Decimal(12)


def get_category_rate(ni_category: str) -> Decimal:
    """Look up the NI category factor (case-insensitive).

    Raises:
        ValidationError: If the category is unknown
    """
    category = str(ni_category or "").strip().upper()
    if category not in NI_CATEGORY_RATES:
        allowed = ", ".join(sorted(NI_CATEGORY_RATES))
        raise ValidationError(
            f"Invalid NI category '{ni_category}'. Must be one of: {allowed}",
            field="ni_category",
        )
    return NI_CATEGORY_RATES[category]


def _coerce_rates(ni_rates: Union[NIRates, dict, Any]) -> NIRates:
    if isinstance(ni_rates, NIRates):
        return ni_rates
    try:
        return NIRates.model_validate(ni_rates)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid NI rates: {e}", field="ni_rates")


def calculate_national_insurance(
    gross_pay: Number,
    ni_category: str,
    ni_rates: Union[NIRates, dict],
) -> Decimal:
    """Calculate monthly employee National Insurance.

    Args:
        gross_pay: Monthly gross pay
        ni_category: NI category letter (A, B, C, H, J, M, Z)
        ni_rates: Weekly thresholds and rates

    Returns:
        Monthly NI contribution, rounded to pence

    Example:
        # 3,000/month, PT 242/wk, UEL 967/wk, 8%
        calculate_national_insurance(3000, "A", rates)  # -> Decimal("156.11")
    """
    gross = require_non_negative(gross_pay, "gross_pay")
    category_rate = get_category_rate(ni_category)
    rates = _coerce_rates(ni_rates)

    weekly_pay = gross * MONTHS_PER_YEAR / WEEKS_PER_YEAR

    weekly_ni = ZERO
    if weekly_pay > rates.primary_threshold:
        main_earnings = min(weekly_pay, rates.upper_earnings_limit) - rates.primary_threshold
        weekly_ni += main_earnings * rates.primary_rate * category_rate

        if weekly_pay > rates.upper_earnings_limit:
            upper_earnings = weekly_pay - rates.upper_earnings_limit
            weekly_ni += upper_earnings * rates.upper_rate * category_rate

    monthly_ni = weekly_ni * WEEKS_PER_YEAR / MONTHS_PER_YEAR
    logger.debug(f"NI: gross={gross} category={ni_category} weekly_pay={weekly_pay} ni={monthly_ni}")
    return round_money(monthly_ni)
