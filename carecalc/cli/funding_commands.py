"""Resident funding commands."""

import json
from datetime import date
from pathlib import Path

import click
from rich.console import Console

from carecalc.sdk import CareCalcError, FundingPeriodOverlapError, FundingRecord
from carecalc.sdk.billing import parse_date
from carecalc.sdk.funding import (
    add_funding_record,
    find_overlaps,
    load_funding_file,
    reconcile_resident,
    save_funding_file,
)

from .renderers.payslip_renderer import render_funding_breakdown


def _load(path: str):
    try:
        return load_funding_file(Path(path))
    except (FileNotFoundError, CareCalcError) as e:
        raise click.ClickException(str(e))


def _window(record: FundingRecord) -> str:
    end = record.end_date.isoformat() if record.end_date else "open"
    return f"{record.start_date.isoformat()}..{end}"


@click.group()
def funding():
    """Resident funding and contribution calculations.

    FILE is a YAML or JSON file with 'residents' (room_rate,
    care_package_rate) and 'funding' (funding_source_id, start_date,
    end_date, weekly_amount) lists.
    """
    pass


@funding.command("contribution")
@click.argument("file", type=click.Path(exists=True))
@click.option("--as-of", type=str, help="Date to evaluate (YYYY-MM-DD). Defaults to today.")
@click.option("--resident", "resident_id", type=str, help="Only show this resident")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def funding_contribution(file, as_of, resident_id, as_json):
    """Show weekly funding and resident contribution per resident."""
    residents, records = _load(file)

    try:
        as_of_date = parse_date(as_of, "as_of") if as_of else date.today()
    except CareCalcError as e:
        raise click.ClickException(str(e))

    if resident_id:
        residents = [r for r in residents if r.resident_id == resident_id]
        if not residents:
            raise click.ClickException(f"Resident not found in {file}: {resident_id}")

    breakdowns = [reconcile_resident(profile, records, as_of_date) for profile in residents]

    if as_json:
        click.echo(json.dumps([b.model_dump(mode="json") for b in breakdowns], indent=2))
        return

    if not breakdowns:
        click.echo("No residents found.")
        return

    console = Console()
    for breakdown in breakdowns:
        render_funding_breakdown(console, breakdown)


@funding.command("check")
@click.argument("file", type=click.Path(exists=True))
def funding_check(file):
    """Check a funding file for overlapping periods (same resident and source)."""
    _, records = _load(file)

    overlaps = find_overlaps(records)
    if not overlaps:
        click.echo(f"No overlapping funding periods ({len(records)} records checked).")
        return

    click.echo(f"Found {len(overlaps)} overlapping funding period(s):")
    for first, second in overlaps:
        click.echo(
            f"  {first.resident_id} / {first.funding_source_id}: "
            f"{_window(first)} overlaps {_window(second)}"
        )
    raise click.ClickException("FUNDING_PERIOD_OVERLAP")


@funding.command("add")
@click.argument("file", type=click.Path(exists=True))
@click.option("--resident", "resident_id", required=True, help="Resident ID")
@click.option("--source", "source_id", required=True, help="Funding source ID")
@click.option("--start", "start_date", required=True, help="Start date (YYYY-MM-DD)")
@click.option("--end", "end_date", default=None, help="End date (YYYY-MM-DD). Omit for open-ended.")
@click.option("--amount", "weekly_amount", required=True, type=str, help="Weekly amount")
@click.option("--write", is_flag=True, help="Save the new record back to FILE")
def funding_add(file, resident_id, source_id, start_date, end_date, weekly_amount, write):
    """Add a funding record, rejecting overlapping periods.

    Without --write, only validates the new record against FILE.
    """
    residents, records = _load(file)

    try:
        new_record = FundingRecord(
            resident_id=resident_id,
            funding_source_id=source_id,
            start_date=parse_date(start_date, "start"),
            end_date=parse_date(end_date, "end") if end_date else None,
            weekly_amount=weekly_amount,
        )
    except (CareCalcError, ValueError) as e:
        raise click.ClickException(str(e))

    try:
        updated = add_funding_record(records, new_record)
    except FundingPeriodOverlapError as e:
        raise click.ClickException(f"{e.code}: {e}")

    if write:
        save_funding_file(Path(file), residents, updated)
        click.echo(f"Added funding {source_id} for {resident_id} ({_window(new_record)}) to {file}")
    else:
        click.echo(f"OK: no overlap for {source_id} / {resident_id} ({_window(new_record)})")
