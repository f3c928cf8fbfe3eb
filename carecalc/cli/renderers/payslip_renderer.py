"""Rich renderers for payslips, pay runs and funding breakdowns.

Transforms SDK results into formatted Rich tables.
"""

from decimal import Decimal
from typing import Iterable, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from carecalc.sdk.schemas import FundingBreakdown, PayrollTotals, PayslipResult


def render_payslip(console: Console, payslip: PayslipResult, title: str = "Monthly Payslip") -> None:
    """Render a single payslip as a Rich table."""
    table = Table(
        title=f"{title}: {payslip.tax_code or 'emergency'} / NI {payslip.ni_category}",
        box=box.ROUNDED,
    )
    table.add_column("", style="bold", min_width=30)
    table.add_column("Amount", justify="right", min_width=12)

    table.add_row("[bold]EARNINGS[/bold]", "")
    table.add_row("  Gross Pay", _fmt(payslip.gross_pay))
    table.add_row("  Taxable Income", _fmt(payslip.taxable_income), style="dim")
    table.add_row("", "")

    table.add_row("[bold]DEDUCTIONS[/bold]", "")
    if not payslip.deductions:
        table.add_row("  [dim]None[/dim]", "")
    for deduction in payslip.deductions:
        table.add_row(f"  {deduction.description}", _fmt(deduction.amount))
    table.add_row("  [dim]Total Deductions[/dim]", f"[dim]{_fmt(payslip.total_deductions)}[/dim]")
    table.add_row("", "")

    table.add_row(
        "[bold green]NET PAY[/bold green]",
        f"[bold green]{_fmt(payslip.net_pay)}[/bold green]",
    )

    console.print(table)


def render_pay_run(console: Console, rows: Iterable[tuple], totals: PayrollTotals) -> None:
    """Render a pay run: one row per employee plus a totals row.

    Args:
        console: Rich Console instance
        rows: (employee_id, PayslipResult) tuples
        totals: Totals from summarize_payroll()
    """
    table = Table(title=f"Pay Run ({totals.employee_count} employees)", box=box.ROUNDED)
    table.add_column("Employee", style="bold")
    table.add_column("Code")
    table.add_column("Gross", justify="right")
    table.add_column("Tax", justify="right")
    table.add_column("NI", justify="right")
    table.add_column("Deductions", justify="right")
    table.add_column("Net", justify="right")

    for employee_id, payslip in rows:
        table.add_row(
            str(employee_id),
            payslip.tax_code or "emergency",
            _fmt(payslip.gross_pay),
            _fmt(payslip.income_tax),
            _fmt(payslip.national_insurance),
            _fmt(payslip.total_deductions),
            _fmt(payslip.net_pay),
        )

    table.add_section()
    table.add_row(
        "[bold]TOTAL[/bold]",
        "",
        _fmt(totals.total_gross),
        _fmt(totals.total_tax),
        _fmt(totals.total_ni),
        _fmt(totals.total_deductions),
        f"[bold green]{_fmt(totals.total_net)}[/bold green]",
    )

    console.print(table)


def render_funding_breakdown(console: Console, breakdown: FundingBreakdown) -> None:
    """Render who pays what for one resident."""
    table = Table(
        title=f"Resident {breakdown.resident_id} - week of {breakdown.as_of.isoformat()}",
        box=box.ROUNDED,
    )
    table.add_column("", style="bold", min_width=30)
    table.add_column("Weekly", justify="right", min_width=12)

    table.add_row("Total Weekly Cost", _fmt(breakdown.total_weekly_cost))
    table.add_row("", "")
    table.add_row("[bold]FUNDING[/bold]", "")
    if not breakdown.by_source:
        table.add_row("  [dim]No active funding[/dim]", "")
    for source_id, amount in breakdown.by_source.items():
        table.add_row(f"  {source_id}", _fmt(amount))
    table.add_row("  [dim]Total Funding[/dim]", f"[dim]{_fmt(breakdown.weekly_funding)}[/dim]")
    table.add_row("", "")
    table.add_row(
        "[bold green]RESIDENT CONTRIBUTION[/bold green]",
        f"[bold green]{_fmt(breakdown.resident_contribution)}[/bold green]",
    )

    console.print(table)


def _fmt(amount: Optional[Decimal]) -> str:
    """Format currency amount."""
    if amount is None:
        return "-"
    return f"£{amount:,.2f}"
