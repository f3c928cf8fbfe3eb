"""Care Calc SDK - billing, funding and payroll calculations."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_default_region,
    get_rules_dir,
    get_available_tax_years,
    tax_year_for_date,
    load_payroll_rules,
)

from .errors import (
    CareCalcError,
    ValidationError,
    FundingPeriodOverlapError,
)

from .money import round_money, to_decimal

from .schemas import (
    Frequency,
    BillingSchedule,
    FundingRecord,
    ResidentFinancialProfile,
    FundingBreakdown,
    DeductionType,
    PayrollDeduction,
    TimeEntry,
    EmployeeRates,
    PayslipResult,
    PayrollTotals,
    PayrollEmployee,
)

from .billing import (
    calculate_next_run_date,
    upcoming_run_dates,
    create_schedule,
    advance_schedule,
    deactivate_schedule,
    is_due,
)

from .funding import (
    calculate_weekly_funding,
    calculate_resident_contribution,
    check_funding_overlap,
    add_funding_record,
    find_overlaps,
    reconcile_resident,
)

from .payroll import (
    PayrollRules,
    TaxBand,
    NIRates,
    parse_tax_code,
    adjust_tax_code,
    calculate_income_tax,
    calculate_tax_for_code,
    calculate_emergency_tax,
    calculate_national_insurance,
    calculate_gross_pay,
    calculate_deductions,
    calculate_net_pay,
    calculate_payslip,
    summarize_payroll,
    run_payroll,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_default_region",
    "get_rules_dir",
    "get_available_tax_years",
    "tax_year_for_date",
    "load_payroll_rules",
    # Errors
    "CareCalcError",
    "ValidationError",
    "FundingPeriodOverlapError",
    # Money
    "round_money",
    "to_decimal",
    # Schemas
    "Frequency",
    "BillingSchedule",
    "FundingRecord",
    "ResidentFinancialProfile",
    "FundingBreakdown",
    "DeductionType",
    "PayrollDeduction",
    "TimeEntry",
    "EmployeeRates",
    "PayslipResult",
    "PayrollTotals",
    "PayrollEmployee",
    # Billing
    "calculate_next_run_date",
    "upcoming_run_dates",
    "create_schedule",
    "advance_schedule",
    "deactivate_schedule",
    "is_due",
    # Funding
    "calculate_weekly_funding",
    "calculate_resident_contribution",
    "check_funding_overlap",
    "add_funding_record",
    "find_overlaps",
    "reconcile_resident",
    # Payroll
    "PayrollRules",
    "TaxBand",
    "NIRates",
    "parse_tax_code",
    "adjust_tax_code",
    "calculate_income_tax",
    "calculate_tax_for_code",
    "calculate_emergency_tax",
    "calculate_national_insurance",
    "calculate_gross_pay",
    "calculate_deductions",
    "calculate_net_pay",
    "calculate_payslip",
    "summarize_payroll",
    "run_payroll",
]
