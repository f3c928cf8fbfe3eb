"""Care Calc CLI - Command-line interface for billing, funding and payroll calculations."""

import logging
import os

import click

from carecalc import __version__

from .schedule_commands import schedule as schedule_group
from .funding_commands import funding as funding_group
from .payroll_commands import payroll as payroll_group
from .settings_commands import settings as settings_group
from .settings_commands import rules as rules_group


def _configure_logging() -> None:
    """Configure logging based on LOG_LEVEL environment variable."""
    log_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@click.group()
@click.version_option(version=__version__, prog_name="care-calc")
def cli():
    """Care Calc - billing, funding and payroll calculations for care homes.

    Settings are loaded from (in order):

    \b
    1. CARE_CALC_CONFIG_PATH environment variable
    2. ~/.config/care-calc/settings.json (XDG default)

    Set LOG_LEVEL=DEBUG to trace calculations.
    """
    _configure_logging()


cli.add_command(schedule_group)
cli.add_command(funding_group)
cli.add_command(payroll_group)
cli.add_command(rules_group)
cli.add_command(settings_group)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
