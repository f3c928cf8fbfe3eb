"""payroll - UK PAYE income tax, National Insurance and payslip deductions.

Scope:
- Tax code parsing and adjustment (tax_code.py)
- Banded monthly income tax with personal allowance / K codes (income_tax.py)
- Class 1 employee NI with category factors (national_insurance.py)
- Pension, student loan, gross/net pay, payslips and pay-run totals (deductions.py)

Constraints:
- Pure calculation - rules tables are passed in, never looked up here
- Money is Decimal, rounded half-up to pence

Usage:
    from carecalc.sdk import load_payroll_rules
    from carecalc.sdk.payroll import calculate_payslip

    rules = load_payroll_rules(2025)
    payslip = calculate_payslip(3000, "1257L", "A", rules)
"""

from .schemas import PayrollRules, RegionRules, TaxBand, NIRates, StudentLoanPlan

from .tax_code import (
    TaxCode,
    parse_tax_code,
    personal_allowance_for_code,
    adjust_tax_code,
)

from .income_tax import (
    calculate_income_tax,
    calculate_taxable_income,
    calculate_tax_for_code,
    calculate_flat_rate_tax,
    calculate_emergency_tax,
    resolve_region,
)

from .national_insurance import (
    NI_CATEGORY_RATES,
    calculate_national_insurance,
    get_category_rate,
)

from .deductions import (
    calculate_gross_pay,
    calculate_pension,
    calculate_student_loan,
    resolve_pension_percentage,
    calculate_deductions,
    calculate_net_pay,
    calculate_payslip,
    summarize_payroll,
    run_payroll,
)

__all__ = [
    # Rules schemas
    "PayrollRules",
    "RegionRules",
    "TaxBand",
    "NIRates",
    "StudentLoanPlan",
    # Tax codes
    "TaxCode",
    "parse_tax_code",
    "personal_allowance_for_code",
    "adjust_tax_code",
    # Income tax
    "calculate_income_tax",
    "calculate_taxable_income",
    "calculate_tax_for_code",
    "calculate_flat_rate_tax",
    "calculate_emergency_tax",
    "resolve_region",
    # National Insurance
    "NI_CATEGORY_RATES",
    "calculate_national_insurance",
    "get_category_rate",
    # Deductions and payslips
    "calculate_gross_pay",
    "calculate_pension",
    "calculate_student_loan",
    "resolve_pension_percentage",
    "calculate_deductions",
    "calculate_net_pay",
    "calculate_payslip",
    "summarize_payroll",
    "run_payroll",
]
