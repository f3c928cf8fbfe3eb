"""Settings and payroll rules CLI commands.

Manages settings.json - custom rules directory, default region.
"""

import json
from pathlib import Path

import click

from carecalc.sdk import (
    get_available_tax_years,
    get_default_region,
    get_rules_dir,
    get_setting,
    get_settings_path,
    load_settings,
    save_settings,
    set_setting,
)

from .payroll_commands import rules_for_year


@click.group()
def settings():
    """Manage settings (settings.json).

    Available settings:
    - rules_dir: directory with custom payroll rules ({year}.yaml)
    - region: default tax region (england, wales, scotland)
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
    else:
        click.echo("Current settings:")
        for key, value in current.items():
            click.echo(f"  {key}: {value}")

    click.echo()
    click.echo("Effective values:")
    click.echo(f"  rules_dir: {get_rules_dir()}")
    click.echo(f"  region: {get_default_region()}")


@settings.command("rules-dir")
@click.argument("path", required=False, type=click.Path())
@click.option("--clear", is_flag=True, help="Clear custom rules_dir, revert to packaged rules")
def settings_rules_dir(path, clear):
    """Set or clear the custom payroll rules directory.

    Examples:
        care-calc settings rules-dir ~/care-calc/rules
        care-calc settings rules-dir --clear
    """
    if clear:
        current = load_settings()
        if "rules_dir" in current:
            del current["rules_dir"]
            save_settings(current)
            click.echo("Cleared rules_dir setting.")
            click.echo(f"Rules directory is now: {get_rules_dir()} (packaged)")
        else:
            click.echo("rules_dir was not set.")
        return

    if not path:
        current_dir = get_setting("rules_dir")
        if current_dir:
            click.echo(f"Current rules_dir: {current_dir}")
        else:
            click.echo(f"No custom rules_dir set. Using packaged rules: {get_rules_dir()}")
        return

    rules_path = Path(path).expanduser().resolve()
    if not rules_path.is_dir():
        raise click.ClickException(f"Not a directory: {rules_path}")
    if not any(p.stem.isdigit() for p in rules_path.glob("*.yaml")):
        raise click.ClickException(f"No {{year}}.yaml rules files in {rules_path}")

    set_setting("rules_dir", str(rules_path))
    click.echo(f"Set rules_dir: {rules_path}")
    click.echo(f"Saved to: {get_settings_path()}")


@settings.command("region")
@click.argument("name", required=False)
def settings_region(name):
    """Show or set the default tax region."""
    if not name:
        click.echo(get_default_region())
        return

    region = name.strip().lower()
    rules = rules_for_year()
    if region not in rules.regions:
        available = ", ".join(sorted(rules.regions))
        raise click.ClickException(f"Unknown region '{name}'. Available: {available}")

    set_setting("region", region)
    click.echo(f"Set region: {region}")


@click.group()
def rules():
    """Inspect payroll rules tables."""
    pass


@rules.command("years")
def rules_years():
    """List tax years with rules available."""
    years = get_available_tax_years()
    if not years:
        raise click.ClickException(f"No payroll rules found in {get_rules_dir()}")
    for year in sorted(years):
        click.echo(f"{year}/{(year + 1) % 100:02d}")


@rules.command("show")
@click.argument("year", required=False, type=int)
@click.option("--region", "-r", help="Only show bands for this region")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def rules_show(year, region, as_json):
    """Show the rules used for a tax year (default: current)."""
    payroll_rules = rules_for_year(year)

    regions = payroll_rules.regions
    if region:
        key = region.strip().lower()
        if key not in regions:
            raise click.ClickException(f"No bands for region '{region}'")
        regions = {key: regions[key]}

    if as_json:
        data = payroll_rules.model_dump(mode="json")
        data["regions"] = {k: v.model_dump(mode="json") for k, v in regions.items()}
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"Tax year {payroll_rules.tax_year}/{(payroll_rules.tax_year + 1) % 100:02d}")
    click.echo(f"Personal allowance: {payroll_rules.personal_allowance:,.0f}")
    for name, region_rules in regions.items():
        click.echo(f"\n{name.title()} income tax bands:")
        for band in region_rules.tax_bands:
            upper = f"{band.threshold + band.width:,.0f}" if band.width is not None else "and above"
            click.echo(f"  {band.name:<13} {band.threshold:>9,.0f} - {upper:<10} {band.rate * 100:.0f}%")

    ni = payroll_rules.national_insurance
    click.echo("\nNational Insurance (weekly):")
    click.echo(f"  primary threshold {ni.primary_threshold:,.0f} @ {ni.primary_rate * 100:.1f}%")
    click.echo(f"  upper earnings limit {ni.upper_earnings_limit:,.0f}, above @ {ni.upper_rate * 100:.1f}%")

    if payroll_rules.student_loans:
        click.echo("\nStudent loans:")
        for plan, loan in payroll_rules.student_loans.items():
            click.echo(f"  {plan:<13} threshold {loan.threshold:,.0f} @ {loan.rate * 100:.0f}%")
