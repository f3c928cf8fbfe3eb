"""PAYE tax code parsing and adjustment.

Supported forms (case-insensitive, spaces ignored around markers):

    1257L, 1257M, 1257N, 1257T   standard allowance = number x 10
    0T                           no personal allowance
    K475                         negative allowance - 4,750 is ADDED to income
    BR, D0, D1 (D2, D3 Scotland) all income taxed at a single band's rate
    NT                           no tax
    S1257L, C1257L               Scottish / Welsh taxpayer prefix
    1257L W1, 1257L M1, 1257LX   emergency (non-cumulative) marker

Calculation here is always non-cumulative, so the emergency marker is
recorded but does not change the result.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..errors import ValidationError

EMERGENCY_MARKER_RE = re.compile(r"\s*(W1|M1|X)$")
TAX_CODE_RE = re.compile(
    r"^(?P<country>[SC])?"
    r"(?:(?P<special>BR|D[0-3]|NT)"
    r"|K(?P<k_number>\d+)"
    r"|(?P<number>\d+)(?P<suffix>[LMNT]?))$"
)

COUNTRY_REGIONS = {
    "S": "scotland",
    "C": "wales",
}


@dataclass(frozen=True)
class TaxCode:
    """A parsed PAYE tax code."""

    code: str
    country_prefix: Optional[str] = None
    is_k_code: bool = False
    allowance_number: Optional[int] = None
    suffix: str = ""
    special: Optional[str] = None
    is_emergency: bool = False

    @property
    def annual_allowance(self) -> Decimal:
        """Annual personal allowance. Negative for K codes, zero for flat-rate codes."""
        if self.allowance_number is None:
            return Decimal("0")
        amount = Decimal(self.allowance_number) * 10
        return -amount if self.is_k_code else amount

    @property
    def region(self) -> Optional[str]:
        """Tax region implied by the country prefix, if any."""
        if self.country_prefix is None:
            return None
        return COUNTRY_REGIONS[self.country_prefix]


def parse_tax_code(code: str) -> TaxCode:
    """Parse a PAYE tax code.

    Raises:
        ValidationError: If the code is empty or not a recognised form

    Example:
        parse_tax_code("K475").annual_allowance  # -> Decimal("-4750")
    """
    if not isinstance(code, str) or not code.strip():
        raise ValidationError(f"Tax code must be a non-empty string, got {code!r}", field="tax_code")

    normalized = code.strip().upper()
    is_emergency = False
    marker = EMERGENCY_MARKER_RE.search(normalized)
    if marker:
        is_emergency = True
        normalized = normalized[:marker.start()]
    normalized = normalized.replace(" ", "")

    match = TAX_CODE_RE.match(normalized)
    if not match:
        raise ValidationError(f"Unrecognised tax code '{code}'", field="tax_code")

    if match.group("special"):
        return TaxCode(
            code=normalized,
            country_prefix=match.group("country"),
            special=match.group("special"),
            is_emergency=is_emergency,
        )

    if match.group("k_number") is not None:
        return TaxCode(
            code=normalized,
            country_prefix=match.group("country"),
            is_k_code=True,
            allowance_number=int(match.group("k_number")),
            is_emergency=is_emergency,
        )

    return TaxCode(
        code=normalized,
        country_prefix=match.group("country"),
        allowance_number=int(match.group("number")),
        suffix=match.group("suffix"),
        is_emergency=is_emergency,
    )


def personal_allowance_for_code(code: str) -> Decimal:
    """Annual personal allowance encoded in a tax code (negative for K codes)."""
    return parse_tax_code(code).annual_allowance


def adjust_tax_code(code: str, adjustment: int) -> str:
    """Shift a tax code's allowance number, clamping at zero.

    The K prefix, country prefix and suffix letter are preserved. Adjusting
    by +N and then -N returns the original code unless the first step was
    clamped.

    Raises:
        ValidationError: For flat-rate codes (BR, D0, NT, ...) which carry no number

    Example:
        adjust_tax_code("1257L", 100)  # -> "1357L"
    """
    parsed = parse_tax_code(code)
    if parsed.allowance_number is None:
        raise ValidationError(f"Tax code '{code}' has no allowance to adjust", field="tax_code")

    new_number = max(0, parsed.allowance_number + int(adjustment))
    return (
        f"{parsed.country_prefix or ''}"
        f"{'K' if parsed.is_k_code else ''}"
        f"{new_number}{parsed.suffix}"
    )
