"""Pydantic schemas for payroll rules validation.

These schemas validate the payroll_rules/*.yaml files and provide typed access
to tax bands, National Insurance thresholds and student loan plans.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TaxBand(BaseModel):
    """Single income tax band.

    ``threshold`` is the annual gross income at which the band starts for a
    standard personal allowance. ``width`` is the annual size of the band
    (None for the top band).
    """
    model_config = ConfigDict(extra="forbid")

    name: str = Field(default="", description="Band name, e.g. 'basic'")
    threshold: Decimal = Field(..., ge=0, description="Annual start of band")
    width: Optional[Decimal] = Field(default=None, gt=0, description="Annual band size (None if unbounded)")
    rate: Decimal = Field(..., ge=0, le=1, description="Tax rate as decimal")


class RegionRules(BaseModel):
    """Income tax bands for a tax region (England, Scotland, ...)."""
    model_config = ConfigDict(extra="forbid")

    tax_bands: list[TaxBand] = Field(..., min_length=1)
    special_codes: dict[str, str] = Field(
        default_factory=dict,
        description="Flat-rate tax codes (BR, D0, ...) mapped to the band whose rate they apply",
    )

    @model_validator(mode="after")
    def check_band_order(self) -> "RegionRules":
        """Bands must be in ascending threshold order with only the last one unbounded."""
        thresholds = [band.threshold for band in self.tax_bands]
        if thresholds != sorted(thresholds):
            raise ValueError("tax_bands must be ordered by ascending threshold")
        for band in self.tax_bands[:-1]:
            if band.width is None:
                raise ValueError(f"only the top band may be unbounded (band '{band.name}')")
        names = {band.name for band in self.tax_bands}
        for code, band_name in self.special_codes.items():
            if band_name not in names:
                raise ValueError(f"special code {code} refers to unknown band '{band_name}'")
        return self

    def band(self, name: str) -> TaxBand:
        """Look up a band by name."""
        for band in self.tax_bands:
            if band.name == name:
                return band
        raise KeyError(f"No tax band named '{name}'")


class NIRates(BaseModel):
    """Class 1 employee National Insurance rates (weekly thresholds)."""
    model_config = ConfigDict(extra="forbid")

    primary_threshold: Decimal = Field(..., ge=0, description="Weekly primary threshold (PT)")
    upper_earnings_limit: Decimal = Field(..., ge=0, description="Weekly upper earnings limit (UEL)")
    primary_rate: Decimal = Field(..., ge=0, le=1, description="Rate between PT and UEL")
    upper_rate: Decimal = Field(..., ge=0, le=1, description="Rate above UEL")

    @model_validator(mode="after")
    def check_limits(self) -> "NIRates":
        if self.upper_earnings_limit < self.primary_threshold:
            raise ValueError("upper_earnings_limit must be >= primary_threshold")
        return self


class StudentLoanPlan(BaseModel):
    """Student loan repayment plan."""
    model_config = ConfigDict(extra="forbid")

    threshold: Decimal = Field(..., ge=0, description="Annual repayment threshold")
    rate: Decimal = Field(..., ge=0, le=1)


class PayrollRules(BaseModel):
    """Complete payroll rules for a tax year."""
    model_config = ConfigDict(extra="ignore")  # Allow unknown fields for forward compat

    tax_year: int
    personal_allowance: Decimal = Field(..., ge=0)
    emergency_rate: Decimal = Field(default=Decimal("0.20"), ge=0, le=1)
    default_pension_percentage: Decimal = Field(default=Decimal("5"), ge=0, le=100)
    regions: dict[str, RegionRules]
    national_insurance: NIRates
    student_loans: dict[str, StudentLoanPlan] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_default_region(self) -> "PayrollRules":
        if "england" not in self.regions:
            raise ValueError("regions must define 'england'")
        return self
