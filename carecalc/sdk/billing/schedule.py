"""Billing schedule next-run calculation.

Weekly schedules run on a fixed weekday; monthly, quarterly and annual
schedules run on a fixed day of the month, clamped to the last day when the
target month is shorter (31st -> 28th/29th February, 30th April, ...).

Weekdays use 0=Sunday .. 6=Saturday, the convention the billing UI stores.
"""

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from ..schemas import MONTHS_PER_RUN, BillingSchedule, Frequency

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]


def parse_frequency(value: Union[str, Frequency]) -> Frequency:
    """Parse a frequency name (case-insensitive)."""
    if isinstance(value, Frequency):
        return value
    try:
        return Frequency(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(f.value for f in Frequency)
        raise ValidationError(
            f"Unsupported frequency '{value}'. Must be one of: {allowed}",
            field="frequency",
        )


def parse_date(value: DateLike, field: str = "date") -> date:
    """Parse a date, datetime or YYYY-MM-DD string into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date, got {value!r}", field=field)


def sunday_based_weekday(value: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def _check_anchor(
    frequency: Frequency,
    day_of_month: Optional[int],
    day_of_week: Optional[int],
) -> None:
    if frequency == Frequency.WEEKLY:
        if day_of_week is None:
            raise ValidationError("day_of_week is required for WEEKLY schedules", field="day_of_week")
        if isinstance(day_of_week, bool) or not isinstance(day_of_week, int) or not 0 <= day_of_week <= 6:
            raise ValidationError(
                f"day_of_week must be 0-6 (0=Sunday), got {day_of_week!r}", field="day_of_week"
            )
    else:
        if day_of_month is None:
            raise ValidationError(
                f"day_of_month is required for {frequency.value} schedules", field="day_of_month"
            )
        if isinstance(day_of_month, bool) or not isinstance(day_of_month, int) or not 1 <= day_of_month <= 31:
            raise ValidationError(
                f"day_of_month must be 1-31, got {day_of_month!r}", field="day_of_month"
            )


def _add_months_clamped(base: date, months: int, day_of_month: int) -> date:
    """Move to the first of base's month, add months, then set the day (clamped)."""
    month_index = base.month - 1 + months
    year = base.year + month_index // 12
    month = month_index % 12 + 1
    max_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day_of_month, max_day))


def calculate_next_run_date(
    frequency: Union[str, Frequency],
    day_of_month: Optional[int] = None,
    day_of_week: Optional[int] = None,
    base_date: Optional[DateLike] = None,
    include_base_date: bool = False,
) -> date:
    """Calculate the next run date of a billing schedule.

    Args:
        frequency: WEEKLY, MONTHLY, QUARTERLY or ANNUALLY
        day_of_month: Anchor day 1-31 (month-based frequencies)
        day_of_week: Anchor weekday 0-6, 0=Sunday (WEEKLY)
        base_date: Date to advance from (default: today)
        include_base_date: WEEKLY only. If True and base_date already falls on
            day_of_week, base_date itself is returned. By default the next run
            is always strictly after base_date.

    Returns:
        Next run date

    Raises:
        ValidationError: If the frequency is unsupported or the anchor day is
            missing or out of range

    Example:
        calculate_next_run_date("MONTHLY", 31, None, date(2024, 1, 31))
        # -> date(2024, 2, 29)
    """
    freq = parse_frequency(frequency)
    _check_anchor(freq, day_of_month, day_of_week)
    base = parse_date(base_date, "base_date") if base_date is not None else date.today()

    if freq == Frequency.WEEKLY:
        days_ahead = (day_of_week - sunday_based_weekday(base) + 7) % 7
        if days_ahead == 0 and not include_base_date:
            days_ahead = 7
        next_run = base + timedelta(days=days_ahead)
    else:
        next_run = _add_months_clamped(base, MONTHS_PER_RUN[freq], day_of_month)

    logger.debug(
        f"next run: {freq.value} dom={day_of_month} dow={day_of_week} from {base} -> {next_run}"
    )
    return next_run


def upcoming_run_dates(
    frequency: Union[str, Frequency],
    day_of_month: Optional[int] = None,
    day_of_week: Optional[int] = None,
    base_date: Optional[DateLike] = None,
    count: int = 12,
) -> List[date]:
    """List the next ``count`` run dates after base_date.

    Each date is computed from the previous run, the same way the schedule
    is advanced after every billing run.
    """
    if count < 1:
        raise ValidationError(f"count must be >= 1, got {count}", field="count")

    dates = []
    current = parse_date(base_date, "base_date") if base_date is not None else date.today()
    for _ in range(count):
        current = calculate_next_run_date(frequency, day_of_month, day_of_week, current)
        dates.append(current)
    return dates


# =============================================================================
# Schedule lifecycle
# =============================================================================

def create_schedule(
    frequency: Union[str, Frequency],
    day_of_month: Optional[int] = None,
    day_of_week: Optional[int] = None,
    start_date: Optional[DateLike] = None,
) -> BillingSchedule:
    """Create an active schedule whose first run is the next occurrence after start_date.

    Raises:
        ValidationError: If the anchor is missing or out of range, or an
            anchor is given that the frequency doesn't use (day_of_week on a
            MONTHLY schedule)
    """
    freq = parse_frequency(frequency)
    next_run = calculate_next_run_date(freq, day_of_month, day_of_week, start_date)
    try:
        return BillingSchedule(
            frequency=freq,
            day_of_month=day_of_month,
            day_of_week=day_of_week,
            next_run=next_run,
        )
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid billing schedule: {e.errors()[0]['msg']}")


def advance_schedule(schedule: BillingSchedule, run_date: Optional[DateLike] = None) -> BillingSchedule:
    """Record a billing run and recompute next_run.

    Args:
        schedule: Schedule that just ran
        run_date: Date of the run (default: the schedule's next_run)

    Returns:
        New schedule with last_run and next_run updated

    Raises:
        ValidationError: If the schedule is inactive
    """
    if not schedule.is_active:
        raise ValidationError("Cannot advance an inactive billing schedule", field="is_active")

    ran_on = parse_date(run_date, "run_date") if run_date is not None else schedule.next_run
    next_run = calculate_next_run_date(
        schedule.frequency, schedule.day_of_month, schedule.day_of_week, ran_on
    )
    return schedule.model_copy(update={"last_run": ran_on, "next_run": next_run})


def deactivate_schedule(schedule: BillingSchedule) -> BillingSchedule:
    """Deactivate a schedule. Schedules are never deleted so billing history stays traceable."""
    return schedule.model_copy(update={"is_active": False})


def is_due(schedule: BillingSchedule, as_of: Optional[DateLike] = None) -> bool:
    """True if the schedule is active and its next run is on or before as_of."""
    check_date = parse_date(as_of, "as_of") if as_of is not None else date.today()
    return schedule.is_active and schedule.next_run <= check_date
