"""Gross pay, deductions and net pay for a monthly pay run."""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from ..errors import ValidationError
from ..money import ZERO, Number, require_non_negative, round_money
from ..schemas import (
    DeductionType,
    EmployeeRates,
    PayrollDeduction,
    PayrollEmployee,
    PayrollTotals,
    PayslipResult,
    TimeEntry,
)
from .income_tax import calculate_emergency_tax, calculate_tax_for_code, calculate_taxable_income
from .national_insurance import calculate_national_insurance
from .schemas import PayrollRules

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = Decimal(12)

# Multipliers applied to the hourly rate when a specific rate is not set
OVERTIME_MULTIPLIER = Decimal("1.5")
HOLIDAY_MULTIPLIER = Decimal("2")
SICK_MULTIPLIER = Decimal("1")


def calculate_gross_pay(time_entries: Iterable[TimeEntry], rates: EmployeeRates) -> Decimal:
    """Gross pay for hours worked.

    Example:
        # 160 regular + 10 overtime at 12.00/hour
        calculate_gross_pay([TimeEntry(regular_hours=160, overtime_hours=10)],
                            EmployeeRates(hourly_rate=12))  # -> Decimal("2100.00")
    """
    overtime_rate = rates.overtime_rate if rates.overtime_rate is not None else rates.hourly_rate * OVERTIME_MULTIPLIER
    holiday_rate = rates.holiday_rate if rates.holiday_rate is not None else rates.hourly_rate * HOLIDAY_MULTIPLIER
    sick_rate = rates.sick_pay_rate if rates.sick_pay_rate is not None else rates.hourly_rate * SICK_MULTIPLIER

    total = ZERO
    for entry in time_entries:
        total += entry.regular_hours * rates.hourly_rate
        total += entry.overtime_hours * overtime_rate
        total += entry.holiday_hours * holiday_rate
        total += entry.sick_hours * sick_rate
    return round_money(total)


def calculate_pension(gross_pay: Number, contribution_percentage: Number) -> Decimal:
    """Employee pension contribution as a percentage of gross."""
    gross = require_non_negative(gross_pay, "gross_pay")
    percentage = require_non_negative(contribution_percentage, "pension_percentage")
    if percentage > 100:
        raise ValidationError(
            f"pension_percentage must be <= 100, got {percentage}", field="pension_percentage"
        )
    return round_money(gross * percentage / 100)


def calculate_student_loan(gross_pay: Number, plan: str, rules: PayrollRules) -> Decimal:
    """Monthly student loan repayment: rate x earnings above the monthly threshold.

    Raises:
        ValidationError: If the plan is not defined in the rules
    """
    gross = require_non_negative(gross_pay, "gross_pay")
    plan_key = str(plan).strip().lower()
    if plan_key not in rules.student_loans:
        available = ", ".join(sorted(rules.student_loans)) or "none"
        raise ValidationError(
            f"Unknown student loan plan '{plan}'. Available for {rules.tax_year}: {available}",
            field="student_loan_plan",
        )

    loan_plan = rules.student_loans[plan_key]
    monthly_threshold = loan_plan.threshold / MONTHS_PER_YEAR
    if gross <= monthly_threshold:
        return Decimal("0.00")
    return round_money((gross - monthly_threshold) * loan_plan.rate)


def resolve_pension_percentage(
    rules: PayrollRules,
    pension_percentage: Optional[Number] = None,
    pension_enrolled: bool = False,
) -> Optional[Number]:
    """Contribution percentage for an employee, or None if not enrolled.

    An explicit percentage wins; enrolled employees without one pay the
    rules' default_pension_percentage.
    """
    if pension_percentage is not None:
        return pension_percentage
    if pension_enrolled:
        return rules.default_pension_percentage
    return None


def calculate_deductions(
    gross_pay: Number,
    tax_code: Optional[str],
    ni_category: str,
    rules: PayrollRules,
    region: Optional[str] = None,
    pension_percentage: Optional[Number] = None,
    student_loan_plan: Optional[str] = None,
    pension_enrolled: bool = False,
) -> List[PayrollDeduction]:
    """Build the deduction lines for one monthly payslip.

    Tax and NI lines are only included when non-zero. Pension is included
    when the employee is enrolled (pension_enrolled, or pension_percentage
    set), student loan when a plan is given. A tax_code of None means no
    code is known yet: all income is taxed at the rules' emergency_rate.
    """
    deductions = []

    if tax_code is None:
        income_tax = calculate_emergency_tax(gross_pay, rules.emergency_rate)
    else:
        income_tax = calculate_tax_for_code(gross_pay, tax_code, rules, region)
    if income_tax > 0:
        deductions.append(PayrollDeduction(
            type=DeductionType.TAX,
            amount=income_tax,
            description="Income Tax",
        ))

    ni = calculate_national_insurance(gross_pay, ni_category, rules.national_insurance)
    if ni > 0:
        deductions.append(PayrollDeduction(
            type=DeductionType.NATIONAL_INSURANCE,
            amount=ni,
            description="National Insurance Contribution",
        ))

    percentage = resolve_pension_percentage(rules, pension_percentage, pension_enrolled)
    if percentage is not None:
        deductions.append(PayrollDeduction(
            type=DeductionType.PENSION,
            amount=calculate_pension(gross_pay, percentage),
            description="Pension Contribution",
        ))

    if student_loan_plan:
        deductions.append(PayrollDeduction(
            type=DeductionType.STUDENT_LOAN,
            amount=calculate_student_loan(gross_pay, student_loan_plan, rules),
            description="Student Loan Repayment",
        ))

    return deductions


def calculate_net_pay(gross_pay: Number, deductions: Iterable[PayrollDeduction]) -> Decimal:
    """Gross pay less all deductions."""
    gross = require_non_negative(gross_pay, "gross_pay")
    total = sum((d.amount for d in deductions), ZERO)
    return round_money(gross - total)


def calculate_payslip(
    gross_pay: Number,
    tax_code: Optional[str],
    ni_category: str,
    rules: PayrollRules,
    region: Optional[str] = None,
    pension_percentage: Optional[Number] = None,
    student_loan_plan: Optional[str] = None,
    pension_enrolled: bool = False,
) -> PayslipResult:
    """Complete monthly payslip calculation for one employee.

    Pass tax_code=None for emergency tax (no code known).
    """
    gross = round_money(require_non_negative(gross_pay, "gross_pay"))
    deductions = calculate_deductions(
        gross,
        tax_code,
        ni_category,
        rules,
        region=region,
        pension_percentage=pension_percentage,
        student_loan_plan=student_loan_plan,
        pension_enrolled=pension_enrolled,
    )
    total_deductions = round_money(sum((d.amount for d in deductions), ZERO))

    result = PayslipResult(
        gross_pay=gross,
        tax_code=tax_code.strip().upper() if tax_code is not None else None,
        ni_category=ni_category.strip().upper(),
        taxable_income=calculate_taxable_income(gross, tax_code) if tax_code is not None else gross,
        income_tax=sum((d.amount for d in deductions if d.type == DeductionType.TAX), Decimal("0.00")),
        national_insurance=sum(
            (d.amount for d in deductions if d.type == DeductionType.NATIONAL_INSURANCE),
            Decimal("0.00"),
        ),
        deductions=deductions,
        total_deductions=total_deductions,
        net_pay=calculate_net_pay(gross, deductions),
    )
    logger.debug(f"payslip: gross={gross} code={tax_code} net={result.net_pay}")
    return result


def summarize_payroll(payslips: Iterable[PayslipResult]) -> PayrollTotals:
    """Totals across a pay run."""
    totals = PayrollTotals()
    for payslip in payslips:
        totals.employee_count += 1
        totals.total_gross += payslip.gross_pay
        totals.total_tax += payslip.income_tax
        totals.total_ni += payslip.national_insurance
        totals.total_deductions += payslip.total_deductions
        totals.total_net += payslip.net_pay

    return totals.model_copy(update={
        "total_gross": round_money(totals.total_gross),
        "total_tax": round_money(totals.total_tax),
        "total_ni": round_money(totals.total_ni),
        "total_deductions": round_money(totals.total_deductions),
        "total_net": round_money(totals.total_net),
    })


def run_payroll(
    employees: Iterable[PayrollEmployee],
    rules: PayrollRules,
    region: Optional[str] = None,
) -> Tuple[List[Tuple[str, PayslipResult]], PayrollTotals]:
    """Calculate payslips for a pay run.

    Returns:
        ([(employee_id, payslip), ...], totals)
    """
    payslips = []
    for employee in employees:
        if employee.gross_pay is not None:
            gross = employee.gross_pay
        else:
            gross = calculate_gross_pay(employee.time_entries, employee.rates)

        payslip = calculate_payslip(
            gross,
            employee.tax_code,
            employee.ni_category,
            rules,
            region=region,
            pension_percentage=employee.pension_percentage,
            student_loan_plan=employee.student_loan_plan,
            pension_enrolled=employee.pension_enrolled,
        )
        payslips.append((employee.employee_id, payslip))

    logger.info(f"Pay run calculated for {len(payslips)} employee(s)")
    return payslips, summarize_payroll(p for _, p in payslips)
