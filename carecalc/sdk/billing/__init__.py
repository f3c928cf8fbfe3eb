"""billing - Recurring billing schedule calculations.

Scope:
- Next-run date for weekly / monthly / quarterly / annual schedules
- Schedule lifecycle: create, advance after a run, deactivate

Constraints:
- Pure calculation - schedules are passed in and returned, never stored

Usage:
    from carecalc.sdk.billing import calculate_next_run_date

    calculate_next_run_date("QUARTERLY", day_of_month=10, base_date=date(2024, 1, 15))
    # -> date(2024, 4, 10)
"""

from .schedule import (
    calculate_next_run_date,
    upcoming_run_dates,
    create_schedule,
    advance_schedule,
    deactivate_schedule,
    is_due,
    parse_frequency,
    parse_date,
    sunday_based_weekday,
)

__all__ = [
    "calculate_next_run_date",
    "upcoming_run_dates",
    "create_schedule",
    "advance_schedule",
    "deactivate_schedule",
    "is_due",
    "parse_frequency",
    "parse_date",
    "sunday_based_weekday",
]
