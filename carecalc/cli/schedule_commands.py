"""Billing schedule commands."""

import json

import click

from carecalc.sdk import CareCalcError
from carecalc.sdk.billing import calculate_next_run_date, sunday_based_weekday, upcoming_run_dates

FREQUENCIES = ["WEEKLY", "MONTHLY", "QUARTERLY", "ANNUALLY"]
WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


@click.group()
def schedule():
    """Billing schedule next-run dates.

    Weekly schedules use --day-of-week (0=Sunday .. 6=Saturday); monthly,
    quarterly and annual schedules use --day-of-month (1-31, clamped to the
    end of shorter months).
    """
    pass


@schedule.command("next")
@click.argument("frequency", type=click.Choice(FREQUENCIES, case_sensitive=False))
@click.option("--day-of-month", "-m", type=int, help="Anchor day of month (1-31)")
@click.option("--day-of-week", "-w", type=int, help="Anchor weekday (0=Sunday .. 6=Saturday)")
@click.option("--from", "base_date", type=str, help="Base date (YYYY-MM-DD). Defaults to today.")
@click.option("--include-today", is_flag=True,
              help="WEEKLY: return the base date itself if it already falls on the weekday")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def schedule_next(frequency, day_of_month, day_of_week, base_date, include_today, as_json):
    """Show the next run date of a schedule.

    Examples:
        care-calc schedule next monthly -m 31 --from 2024-01-31
        care-calc schedule next weekly -w 1 --from 2025-06-02 --include-today
    """
    try:
        next_run = calculate_next_run_date(
            frequency, day_of_month, day_of_week, base_date, include_base_date=include_today
        )
    except CareCalcError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps({"frequency": frequency.upper(), "next_run": next_run.isoformat()}))
        return

    click.echo(f"{next_run.isoformat()} ({WEEKDAY_NAMES[sunday_based_weekday(next_run)]})")


@schedule.command("preview")
@click.argument("frequency", type=click.Choice(FREQUENCIES, case_sensitive=False))
@click.option("--day-of-month", "-m", type=int, help="Anchor day of month (1-31)")
@click.option("--day-of-week", "-w", type=int, help="Anchor weekday (0=Sunday .. 6=Saturday)")
@click.option("--from", "base_date", type=str, help="Base date (YYYY-MM-DD). Defaults to today.")
@click.option("--count", "-n", type=int, default=12, show_default=True, help="Number of runs to list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def schedule_preview(frequency, day_of_month, day_of_week, base_date, count, as_json):
    """List upcoming run dates of a schedule."""
    try:
        dates = upcoming_run_dates(frequency, day_of_month, day_of_week, base_date, count)
    except CareCalcError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps([d.isoformat() for d in dates], indent=2))
        return

    for i, run_date in enumerate(dates, start=1):
        click.echo(f"{i:>3}. {run_date.isoformat()} ({WEEKDAY_NAMES[sunday_based_weekday(run_date)]})")
