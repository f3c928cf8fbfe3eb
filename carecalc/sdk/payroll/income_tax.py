"""Monthly PAYE income tax calculation.

Tax bands are annual figures. Each band covers a window of taxable income
starting at (threshold - first band threshold) and running for ``width``;
the monthly calculation uses a twelfth of both.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from ..money import ZERO, Number, require_non_negative, round_money, to_decimal
from .schemas import PayrollRules, RegionRules, TaxBand
from .tax_code import TaxCode, parse_tax_code

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = Decimal(12)
DEFAULT_REGION = "england"


def _coerce_bands(tax_bands: Iterable[Any]) -> List[TaxBand]:
    """Accept TaxBand models or plain dicts; bands must be ascending."""
    try:
        region = RegionRules(tax_bands=[
            band if isinstance(band, TaxBand) else TaxBand.model_validate(band)
            for band in tax_bands
        ])
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid tax bands: {e}", field="tax_bands")
    return region.tax_bands


def calculate_income_tax(
    gross_pay: Number,
    tax_bands: Iterable[Any],
    personal_allowance: Number,
) -> Decimal:
    """Calculate income tax for one month.

    Args:
        gross_pay: Monthly gross pay
        tax_bands: Ordered annual tax bands (TaxBand or dicts with
            threshold/width/rate)
        personal_allowance: Annual personal allowance. Negative for K codes,
            which adds the amount to taxable income.

    Returns:
        Monthly income tax, rounded to pence

    Example:
        # 3,000/month, 12,570 allowance, 20% basic band
        calculate_income_tax(3000, bands, 12570)  # -> Decimal("390.50")
    """
    gross = require_non_negative(gross_pay, "gross_pay")
    allowance = to_decimal(personal_allowance, "personal_allowance")
    bands = _coerce_bands(tax_bands)

    taxable = max(ZERO, gross - allowance / MONTHS_PER_YEAR)
    origin = bands[0].threshold

    tax = ZERO
    for band in bands:
        band_start = (band.threshold - origin) / MONTHS_PER_YEAR
        in_band = taxable - band_start
        if in_band <= 0:
            break
        if band.width is not None:
            in_band = min(in_band, band.width / MONTHS_PER_YEAR)
        tax += in_band * band.rate

    logger.debug(f"income tax: gross={gross} allowance={allowance} taxable={taxable} tax={tax}")
    return round_money(tax)


def calculate_taxable_income(gross_pay: Number, tax_code: str) -> Decimal:
    """Monthly taxable income after applying a tax code's allowance.

    Standard codes subtract a twelfth of the allowance (floored at zero); K
    codes add it. Flat-rate codes (BR, D0, NT, ...) tax the whole gross.
    """
    gross = require_non_negative(gross_pay, "gross_pay")
    parsed = parse_tax_code(tax_code)
    if parsed.special is not None:
        return round_money(gross)
    taxable = max(ZERO, gross - parsed.annual_allowance / MONTHS_PER_YEAR)
    return round_money(taxable)


def resolve_region(rules: PayrollRules, tax_code: Optional[TaxCode] = None, region: Optional[str] = None) -> str:
    """Pick the tax region: code prefix (S/C) first, then the argument, then england.

    Raises:
        ValidationError: If the rules have no bands for the region
    """
    name = (tax_code.region if tax_code else None) or region or DEFAULT_REGION
    name = name.lower()
    if name not in rules.regions:
        available = ", ".join(sorted(rules.regions))
        raise ValidationError(
            f"No tax bands for region '{name}' in {rules.tax_year} rules. Available: {available}",
            field="region",
        )
    return name


def calculate_flat_rate_tax(gross_pay: Number, rate: Number) -> Decimal:
    """Tax the whole gross at one rate (BR/D0/D1 codes, emergency tax)."""
    gross = require_non_negative(gross_pay, "gross_pay")
    return round_money(gross * to_decimal(rate, "rate"))


def calculate_emergency_tax(gross_pay: Number, rate: Number = Decimal("0.20")) -> Decimal:
    """Basic-rate tax on all income, used when no tax code is known."""
    return calculate_flat_rate_tax(gross_pay, rate)


def calculate_tax_for_code(
    gross_pay: Number,
    tax_code: str,
    rules: PayrollRules,
    region: Optional[str] = None,
) -> Decimal:
    """Calculate monthly income tax for an employee's tax code.

    Args:
        gross_pay: Monthly gross pay
        tax_code: PAYE tax code (1257L, K475, BR, S1257L, ...)
        rules: Payroll rules for the tax year
        region: Tax region when the code has no country prefix (default england)

    Returns:
        Monthly income tax, rounded to pence

    Raises:
        ValidationError: For malformed codes, unknown regions, or flat-rate
            codes the region does not define (e.g. D2 outside Scotland)
    """
    parsed = parse_tax_code(tax_code)
    region_rules = rules.regions[resolve_region(rules, parsed, region)]

    if parsed.special == "NT":
        return Decimal("0.00")

    if parsed.special is not None:
        band_name = region_rules.special_codes.get(parsed.special)
        if band_name is None:
            raise ValidationError(
                f"Tax code '{tax_code}' is not valid for this region", field="tax_code"
            )
        return calculate_flat_rate_tax(gross_pay, region_rules.band(band_name).rate)

    return calculate_income_tax(gross_pay, region_rules.tax_bands, parsed.annual_allowance)
