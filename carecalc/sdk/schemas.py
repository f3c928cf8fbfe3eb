"""Pydantic schemas for care-calc data validation.

All schemas use extra='forbid' to reject unknown fields, ensuring
typos in input files cause clear errors rather than silent ignoring.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Billing
# =============================================================================


class Frequency(str, Enum):
    """How often a billing schedule runs."""

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"


# Months advanced per run for month-based frequencies
MONTHS_PER_RUN = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.ANNUALLY: 12,
}


class BillingSchedule(BaseModel):
    """Recurring billing schedule for a resident account.

    Weekly schedules are anchored on ``day_of_week`` (0=Sunday .. 6=Saturday);
    month-based schedules on ``day_of_month`` (1-31, clamped to month end).
    """

    model_config = ConfigDict(extra="forbid")

    frequency: Frequency
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    last_run: Optional[date] = None
    next_run: date
    is_active: bool = True

    @model_validator(mode="after")
    def check_anchor(self) -> "BillingSchedule":
        """Weekly schedules need day_of_week; the others need day_of_month."""
        if self.frequency == Frequency.WEEKLY:
            if self.day_of_week is None:
                raise ValueError("day_of_week is required for WEEKLY schedules")
            if self.day_of_month is not None:
                raise ValueError("day_of_month is not used by WEEKLY schedules")
        else:
            if self.day_of_month is None:
                raise ValueError(f"day_of_month is required for {self.frequency.value} schedules")
            if self.day_of_week is not None:
                raise ValueError(f"day_of_week is not used by {self.frequency.value} schedules")
        return self


# =============================================================================
# Resident funding
# =============================================================================


class FundingRecord(BaseModel):
    """Weekly contribution from one funding source (local authority, NHS, ...)
    towards one resident's fees. ``end_date`` of None means open-ended."""

    model_config = ConfigDict(extra="forbid")

    resident_id: str
    funding_source_id: str
    start_date: date
    end_date: Optional[date] = None
    weekly_amount: Decimal = Field(..., ge=0)

    @model_validator(mode="after")
    def check_dates(self) -> "FundingRecord":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError(
                f"end_date ({self.end_date}) is before start_date ({self.start_date})"
            )
        return self


class ResidentFinancialProfile(BaseModel):
    """Weekly fee components for a resident."""

    model_config = ConfigDict(extra="forbid")

    resident_id: str
    room_rate: Decimal = Field(..., ge=0)
    care_package_rate: Decimal = Field(..., ge=0)

    @property
    def total_weekly_cost(self) -> Decimal:
        return self.room_rate + self.care_package_rate


class FundingBreakdown(BaseModel):
    """Who pays what for one resident in a given week."""

    model_config = ConfigDict(extra="forbid")

    resident_id: str
    as_of: date
    total_weekly_cost: Decimal
    weekly_funding: Decimal
    resident_contribution: Decimal
    by_source: Dict[str, Decimal] = Field(default_factory=dict)


# =============================================================================
# Payroll
# =============================================================================


class DeductionType(str, Enum):
    TAX = "TAX"
    NATIONAL_INSURANCE = "NATIONAL_INSURANCE"
    PENSION = "PENSION"
    STUDENT_LOAN = "STUDENT_LOAN"


class PayrollDeduction(BaseModel):
    """One deduction line on a payslip. Snapshot only, never updated."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: DeductionType
    amount: Decimal = Field(..., ge=0)
    description: str


class TimeEntry(BaseModel):
    """Hours worked in a pay period, split by pay treatment."""

    model_config = ConfigDict(extra="forbid")

    regular_hours: Decimal = Field(default=Decimal("0"), ge=0)
    overtime_hours: Decimal = Field(default=Decimal("0"), ge=0)
    holiday_hours: Decimal = Field(default=Decimal("0"), ge=0)
    sick_hours: Decimal = Field(default=Decimal("0"), ge=0)


class EmployeeRates(BaseModel):
    """Hourly pay rates. Unset rates derive from ``hourly_rate``:
    overtime 1.5x, holiday 2x, sick 1x."""

    model_config = ConfigDict(extra="forbid")

    hourly_rate: Decimal = Field(..., ge=0)
    overtime_rate: Optional[Decimal] = Field(default=None, ge=0)
    holiday_rate: Optional[Decimal] = Field(default=None, ge=0)
    sick_pay_rate: Optional[Decimal] = Field(default=None, ge=0)


class PayslipResult(BaseModel):
    """Monthly payslip calculation result."""

    model_config = ConfigDict(extra="forbid")

    gross_pay: Decimal
    tax_code: Optional[str]  # None when emergency tax was applied
    ni_category: str
    taxable_income: Decimal
    income_tax: Decimal
    national_insurance: Decimal
    deductions: List[PayrollDeduction]
    total_deductions: Decimal
    net_pay: Decimal

    def deduction(self, deduction_type: DeductionType) -> Decimal:
        """Amount of a deduction type on this payslip (0 if absent)."""
        return sum(
            (d.amount for d in self.deductions if d.type == deduction_type),
            Decimal("0"),
        )


class PayrollTotals(BaseModel):
    """Totals across a pay run."""

    model_config = ConfigDict(extra="forbid")

    employee_count: int = 0
    total_gross: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    total_ni: Decimal = Decimal("0")
    total_deductions: Decimal = Decimal("0")
    total_net: Decimal = Decimal("0")


class PayrollEmployee(BaseModel):
    """One employee in a pay run: either a fixed monthly gross or hourly
    rates with time entries."""

    model_config = ConfigDict(extra="forbid")

    employee_id: str
    tax_code: Optional[str] = "1257L"  # null = no code yet, emergency tax
    ni_category: str = "A"
    gross_pay: Optional[Decimal] = Field(default=None, ge=0)
    rates: Optional[EmployeeRates] = None
    time_entries: List[TimeEntry] = Field(default_factory=list)
    pension_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    pension_enrolled: bool = False
    student_loan_plan: Optional[str] = None

    @model_validator(mode="after")
    def check_pay_basis(self) -> "PayrollEmployee":
        if self.gross_pay is None and self.rates is None:
            raise ValueError(f"{self.employee_id}: set gross_pay or rates + time_entries")
        if self.gross_pay is not None and self.rates is not None:
            raise ValueError(f"{self.employee_id}: gross_pay and rates are mutually exclusive")
        return self
