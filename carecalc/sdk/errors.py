"""Domain errors raised by the calculators.

Every error carries a stable ``code`` so the calling service can map it to a
user-facing message without parsing the text.
"""

from typing import Any, Optional


class CareCalcError(Exception):
    """Base class for all calculator errors."""

    code = "CARE_CALC_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CareCalcError, ValueError):
    """Raised when caller input is missing, malformed or out of range."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class FundingPeriodOverlapError(CareCalcError):
    """Raised when a funding record overlaps an existing one for the same resident and source."""

    code = "FUNDING_PERIOD_OVERLAP"

    def __init__(self, message: str, conflicting: Any = None):
        super().__init__(message)
        self.conflicting = conflicting
