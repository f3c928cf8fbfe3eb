"""Payroll calculation commands."""

import json
from pathlib import Path

import click
import yaml
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console

from carecalc.sdk import (
    CareCalcError,
    PayrollEmployee,
    get_default_region,
    get_rules_dir,
    load_payroll_rules,
)
from carecalc.sdk.payroll import (
    adjust_tax_code,
    calculate_national_insurance,
    calculate_payslip,
    calculate_tax_for_code,
    parse_tax_code,
    run_payroll,
)

from .renderers.payslip_renderer import render_pay_run, render_payslip


def rules_for_year(year=None):
    """Load payroll rules, reporting missing or malformed rules files as CLI errors."""
    try:
        return load_payroll_rules(year)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))
    except PydanticValidationError as e:
        raise click.ClickException(f"Invalid payroll rules in {get_rules_dir()}: {e}")
    except yaml.YAMLError as e:
        raise click.ClickException(f"Cannot parse payroll rules in {get_rules_dir()}: {e}")


def _region(region):
    return region or get_default_region()


@click.group()
def payroll():
    """Monthly PAYE income tax, National Insurance and payslips.

    Amounts are monthly. Tax year defaults to the current UK tax year
    (starting 6 April); rules fall back to the latest earlier year available.
    """
    pass


@payroll.command("calc")
@click.argument("gross", type=str)
@click.option("--tax-code", "-t", default="1257L", show_default=True, help="PAYE tax code")
@click.option("--ni-category", "-c", default="A", show_default=True, help="NI category letter")
@click.option("--year", "-y", type=int, help="Tax year (e.g. 2025 for 2025/26)")
@click.option("--region", "-r", help="Tax region when the code has no S/C prefix (default from settings)")
@click.option("--pension", "pension_pct", type=str, default=None,
              help="Enrolled in pension at this percentage of gross")
@click.option("--pension-enrolled", is_flag=True,
              help="Enrolled in pension at the rules' default percentage")
@click.option("--emergency", is_flag=True, help="No tax code known: tax all pay at the emergency rate")
@click.option("--student-loan", "student_loan_plan", help="Student loan plan (plan_1, plan_2, plan_4, plan_5, postgraduate)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def payroll_calc(gross, tax_code, ni_category, year, region, pension_pct, pension_enrolled, emergency,
                 student_loan_plan, as_json):
    """Calculate a full monthly payslip for GROSS pay.

    Examples:
        care-calc payroll calc 3000
        care-calc payroll calc 3000 -t K475 -c B --pension 5 --student-loan plan_2
        care-calc payroll calc 3000 --emergency --pension-enrolled
    """
    rules = rules_for_year(year)
    try:
        payslip = calculate_payslip(
            gross,
            None if emergency else tax_code,
            ni_category,
            rules,
            region=_region(region),
            pension_percentage=pension_pct,
            student_loan_plan=student_loan_plan,
            pension_enrolled=pension_enrolled,
        )
    except CareCalcError as e:
        raise click.ClickException(str(e))

    if as_json:
        output = {"tax_year": rules.tax_year, **payslip.model_dump(mode="json")}
        click.echo(json.dumps(output, indent=2))
        return

    render_payslip(Console(), payslip, title=f"Monthly Payslip {rules.tax_year}/{(rules.tax_year + 1) % 100:02d}")


@payroll.command("tax")
@click.argument("gross", type=str)
@click.option("--tax-code", "-t", default="1257L", show_default=True, help="PAYE tax code")
@click.option("--year", "-y", type=int, help="Tax year (e.g. 2025 for 2025/26)")
@click.option("--region", "-r", help="Tax region when the code has no S/C prefix")
def payroll_tax(gross, tax_code, year, region):
    """Monthly income tax on GROSS pay."""
    rules = rules_for_year(year)
    try:
        tax = calculate_tax_for_code(gross, tax_code, rules, _region(region))
    except CareCalcError as e:
        raise click.ClickException(str(e))
    click.echo(f"{tax:.2f}")


@payroll.command("ni")
@click.argument("gross", type=str)
@click.option("--ni-category", "-c", default="A", show_default=True, help="NI category letter")
@click.option("--year", "-y", type=int, help="Tax year (e.g. 2025 for 2025/26)")
def payroll_ni(gross, ni_category, year):
    """Monthly employee National Insurance on GROSS pay."""
    rules = rules_for_year(year)
    try:
        ni = calculate_national_insurance(gross, ni_category, rules.national_insurance)
    except CareCalcError as e:
        raise click.ClickException(str(e))
    click.echo(f"{ni:.2f}")


@payroll.command("tax-code")
@click.argument("code")
@click.option("--adjust", type=int, help="Shift the allowance number by this amount (e.g. -100)")
def payroll_tax_code(code, adjust):
    """Explain a tax code, or adjust it with --adjust."""
    try:
        if adjust is not None:
            click.echo(adjust_tax_code(code, adjust))
            return
        parsed = parse_tax_code(code)
    except CareCalcError as e:
        raise click.ClickException(str(e))

    click.echo(f"Tax code:   {parsed.code}")
    click.echo(f"Region:     {parsed.region or '(default)'}")
    if parsed.special:
        click.echo(f"Flat rate:  {parsed.special}")
    else:
        kind = "added to income (K code)" if parsed.is_k_code else "tax-free allowance"
        click.echo(f"Allowance:  {abs(parsed.annual_allowance):,.0f} per year, {kind}")
    if parsed.is_emergency:
        click.echo("Emergency:  yes (non-cumulative)")


@payroll.command("run")
@click.argument("file", type=click.Path(exists=True))
@click.option("--year", "-y", type=int, help="Tax year (overrides tax_year in FILE)")
@click.option("--region", "-r", help="Tax region (overrides region in FILE)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def payroll_run(file, year, region, as_json):
    """Calculate payslips and totals for every employee in FILE.

    FILE is YAML with optional 'tax_year' and 'region' keys and an
    'employees' list. Each employee has either gross_pay or rates +
    time_entries, plus tax_code (null for emergency tax), ni_category,
    pension_percentage or pension_enrolled, and student_loan_plan.
    """
    try:
        with open(file) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise click.ClickException(f"Cannot parse {Path(file).name}: {e}")
    if not isinstance(data, dict):
        raise click.ClickException(f"{Path(file).name}: expected a mapping with an 'employees' list")

    try:
        employees = [PayrollEmployee.model_validate(e) for e in data.get("employees") or []]
    except PydanticValidationError as e:
        raise click.ClickException(f"{Path(file).name}: {e}")

    rules = rules_for_year(year or data.get("tax_year"))
    try:
        payslips, totals = run_payroll(employees, rules, _region(region or data.get("region")))
    except CareCalcError as e:
        raise click.ClickException(str(e))

    if as_json:
        output = {
            "tax_year": rules.tax_year,
            "payslips": [
                {"employee_id": employee_id, **payslip.model_dump(mode="json")}
                for employee_id, payslip in payslips
            ],
            "totals": totals.model_dump(mode="json"),
        }
        click.echo(json.dumps(output, indent=2))
        return

    render_pay_run(Console(width=140), payslips, totals)
