"""Care Calc MCP Server - FastMCP implementation exposing the calculators as tools."""

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from carecalc.sdk import (
    CareCalcError,
    FundingRecord,
    calculate_next_run_date,
    calculate_payslip,
    calculate_resident_contribution,
    calculate_weekly_funding,
    check_funding_overlap,
    get_default_region,
    load_payroll_rules,
)
from carecalc.sdk.payroll import adjust_tax_code as sdk_adjust_tax_code

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("care-calc")


# --- Tools ---

@mcp.tool()
async def next_run_date(
    frequency: str = Field(description="WEEKLY, MONTHLY, QUARTERLY or ANNUALLY"),
    base_date: str = Field(description="Date to advance from (YYYY-MM-DD)"),
    day_of_month: int | None = Field(default=None, description="Anchor day 1-31 (monthly/quarterly/annually)"),
    day_of_week: int | None = Field(default=None, description="Anchor weekday 0-6, 0=Sunday (weekly)"),
) -> dict[str, Any]:
    """Calculate the next run date of a billing schedule. Month-end days are clamped to the last day of shorter months."""
    try:
        next_run = calculate_next_run_date(frequency, day_of_month, day_of_week, base_date)
        return {"frequency": frequency.upper(), "base_date": base_date, "next_run": next_run.isoformat()}
    except CareCalcError as e:
        return {"error": str(e), "code": e.code, "next_run": None}


@mcp.tool()
async def resident_contribution(
    room_rate: float = Field(description="Weekly room rate"),
    care_package_rate: float = Field(description="Weekly care package rate"),
    as_of_date: str = Field(description="Date to evaluate funding on (YYYY-MM-DD)"),
    funding: list[dict] = Field(
        default_factory=list,
        description=(
            "Funding records: resident_id, funding_source_id, start_date, "
            "end_date (null = open-ended), weekly_amount"
        ),
    ),
    resident_id: str | None = Field(default=None, description="Only count funding for this resident"),
) -> dict[str, Any]:
    """Calculate weekly funding and a resident's out-of-pocket contribution (never negative)."""
    try:
        records = [FundingRecord.model_validate(r) for r in funding]
        weekly_funding = calculate_weekly_funding(records, as_of_date, resident_id=resident_id)
        contribution = calculate_resident_contribution(room_rate, care_package_rate, weekly_funding)
        return {
            "resident_id": resident_id,
            "as_of_date": as_of_date,
            "weekly_funding": str(weekly_funding),
            "resident_contribution": str(contribution),
        }
    except (CareCalcError, ValueError) as e:
        logger.error(f"Error calculating contribution: {e}")
        return {"error": str(e), "resident_contribution": None}


@mcp.tool()
async def check_funding(
    existing: list[dict] = Field(description="Existing funding records"),
    new_record: dict = Field(description="Funding record to add"),
) -> dict[str, Any]:
    """Check whether a new funding record overlaps an existing one for the same resident and source."""
    try:
        records = [FundingRecord.model_validate(r) for r in existing]
        check_funding_overlap(records, FundingRecord.model_validate(new_record))
        return {"ok": True}
    except CareCalcError as e:
        return {"ok": False, "error": str(e), "code": e.code}
    except ValueError as e:
        return {"ok": False, "error": str(e), "code": "VALIDATION_ERROR"}


@mcp.tool()
async def payslip(
    gross_pay: float = Field(description="Monthly gross pay"),
    tax_code: str | None = Field(default="1257L", description="PAYE tax code (null for emergency tax)"),
    ni_category: str = Field(default="A", description="NI category letter"),
    tax_year: int | None = Field(default=None, description="Tax year, e.g. 2025 for 2025/26 (default: current)"),
    region: str | None = Field(default=None, description="england, wales or scotland"),
    pension_percentage: float | None = Field(default=None, description="Pension contribution % if enrolled"),
    pension_enrolled: bool = Field(default=False, description="Enrolled at the rules' default percentage"),
    student_loan_plan: str | None = Field(default=None, description="plan_1, plan_2, plan_4, plan_5, postgraduate"),
) -> dict[str, Any]:
    """Calculate a monthly payslip: income tax, National Insurance, pension, student loan and net pay."""
    try:
        rules = load_payroll_rules(tax_year)
        result = calculate_payslip(
            gross_pay,
            tax_code,
            ni_category,
            rules,
            region=region or get_default_region(),
            pension_percentage=pension_percentage,
            student_loan_plan=student_loan_plan,
            pension_enrolled=pension_enrolled,
        )
        return {"tax_year": rules.tax_year, **result.model_dump(mode="json")}
    except (CareCalcError, FileNotFoundError, ValueError) as e:
        logger.error(f"Error calculating payslip: {e}")
        return {"error": str(e), "payslip": None}


@mcp.tool()
async def adjust_tax_code(
    tax_code: str = Field(description="Current PAYE tax code"),
    adjustment: int = Field(description="Amount to add to the allowance number (negative to reduce)"),
) -> dict[str, Any]:
    """Shift a tax code's allowance number, keeping K prefix and suffix."""
    try:
        return {"tax_code": sdk_adjust_tax_code(tax_code, adjustment)}
    except CareCalcError as e:
        return {"error": str(e), "tax_code": None}


# --- Server Entry Point ---

def run_server():
    """Run the MCP server in stdio mode."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
