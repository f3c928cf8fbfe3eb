"""Unit tests for billing schedule next-run calculation.

Covers month-end clamping, the weekly 0=Sunday convention and the schedule
lifecycle (create, advance, deactivate).
"""

import calendar
from datetime import date, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from carecalc.sdk import BillingSchedule, Frequency, ValidationError
from carecalc.sdk.billing import (
    advance_schedule,
    calculate_next_run_date,
    create_schedule,
    deactivate_schedule,
    is_due,
    parse_frequency,
    sunday_based_weekday,
    upcoming_run_dates,
)


class TestMonthlyClamping:
    """Month-based schedules land on day_of_month, clamped to month end."""

    def test_jan_31_to_leap_february(self):
        assert calculate_next_run_date("MONTHLY", 31, None, date(2024, 1, 31)) == date(2024, 2, 29)

    def test_jan_31_to_non_leap_february(self):
        assert calculate_next_run_date("MONTHLY", 31, None, date(2023, 1, 31)) == date(2023, 2, 28)

    def test_day_30_to_april(self):
        assert calculate_next_run_date("MONTHLY", 30, None, date(2025, 3, 30)) == date(2025, 4, 30)

    def test_crosses_year_end(self):
        assert calculate_next_run_date("MONTHLY", 15, None, date(2024, 12, 20)) == date(2025, 1, 15)

    def test_always_advances_a_full_month(self):
        """The next run is in the following month even if the anchor day hasn't passed."""
        assert calculate_next_run_date("MONTHLY", 5, None, date(2024, 3, 1)) == date(2024, 4, 5)

    def test_quarterly(self):
        assert calculate_next_run_date("QUARTERLY", 10, None, date(2024, 1, 15)) == date(2024, 4, 10)

    def test_quarterly_clamps(self):
        assert calculate_next_run_date("QUARTERLY", 31, None, date(2024, 11, 30)) == date(2025, 2, 28)

    def test_annually_from_leap_day(self):
        assert calculate_next_run_date("ANNUALLY", 29, None, date(2024, 2, 29)) == date(2025, 2, 28)

    def test_result_day_never_exceeds_month_length(self):
        """Every anchor day over three years of base dates clamps correctly."""
        for year in (2023, 2024, 2025):
            for month in range(1, 13):
                base = date(year, month, 15)
                for day_of_month in range(1, 32):
                    result = calculate_next_run_date("MONTHLY", day_of_month, None, base)
                    max_day = calendar.monthrange(result.year, result.month)[1]
                    assert result.day == min(day_of_month, max_day)
                    assert result > base


class TestWeekly:
    """Weekly schedules use 0=Sunday .. 6=Saturday."""

    # 2024-01-01 is a Monday (1)

    def test_sunday_based_weekday(self):
        assert sunday_based_weekday(date(2024, 1, 1)) == 1
        assert sunday_based_weekday(date(2024, 1, 7)) == 0
        assert sunday_based_weekday(date(2024, 1, 6)) == 6

    def test_later_in_same_week(self):
        assert calculate_next_run_date("WEEKLY", None, 3, date(2024, 1, 1)) == date(2024, 1, 3)

    def test_sunday(self):
        assert calculate_next_run_date("WEEKLY", None, 0, date(2024, 1, 1)) == date(2024, 1, 7)

    def test_same_weekday_moves_to_next_week(self):
        assert calculate_next_run_date("WEEKLY", None, 1, date(2024, 1, 1)) == date(2024, 1, 8)

    def test_same_weekday_included_when_requested(self):
        result = calculate_next_run_date("WEEKLY", None, 1, date(2024, 1, 1), include_base_date=True)
        assert result == date(2024, 1, 1)

    def test_result_is_within_seven_days(self):
        base = date(2025, 6, 4)
        for day_of_week in range(7):
            result = calculate_next_run_date("WEEKLY", None, day_of_week, base)
            assert 1 <= (result - base).days <= 7
            assert sunday_based_weekday(result) == day_of_week


class TestInputs:
    """Frequency parsing, date parsing and anchor validation."""

    def test_frequency_case_insensitive(self):
        assert parse_frequency("monthly") == Frequency.MONTHLY
        assert calculate_next_run_date("quarterly", 10, None, "2024-01-15") == date(2024, 4, 10)

    def test_unsupported_frequency(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_next_run_date("DAILY", 1, None, date(2024, 1, 1))
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.field == "frequency"

    def test_datetime_base(self):
        result = calculate_next_run_date("MONTHLY", 31, None, datetime(2024, 1, 31, 17, 30))
        assert result == date(2024, 2, 29)

    def test_bad_date_string(self):
        with pytest.raises(ValidationError):
            calculate_next_run_date("MONTHLY", 1, None, "31/01/2024")

    def test_weekly_requires_day_of_week(self):
        with pytest.raises(ValidationError, match="day_of_week is required"):
            calculate_next_run_date("WEEKLY", 15, None, date(2024, 1, 1))

    def test_monthly_requires_day_of_month(self):
        with pytest.raises(ValidationError, match="day_of_month is required"):
            calculate_next_run_date("MONTHLY", None, 3, date(2024, 1, 1))

    @pytest.mark.parametrize("day_of_month", [0, 32, -1])
    def test_day_of_month_out_of_range(self, day_of_month):
        with pytest.raises(ValidationError):
            calculate_next_run_date("MONTHLY", day_of_month, None, date(2024, 1, 1))

    @pytest.mark.parametrize("day_of_week", [7, -1])
    def test_day_of_week_out_of_range(self, day_of_week):
        with pytest.raises(ValidationError):
            calculate_next_run_date("WEEKLY", None, day_of_week, date(2024, 1, 1))

    @pytest.mark.parametrize("value", ["2024-01-31garbage", "2024-01-31T10:00", "2024-1-31x", "2024-02-30"])
    def test_malformed_date_string_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            calculate_next_run_date("MONTHLY", 1, None, value)
        assert exc_info.value.field == "base_date"

    def test_date_string_whitespace_ignored(self):
        assert calculate_next_run_date("MONTHLY", 1, None, " 2024-01-31 ") == date(2024, 2, 1)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            calculate_next_run_date("MONTHLY", 0, None, date(2024, 1, 1))


class TestUpcomingRunDates:

    def test_anchor_day_survives_short_months(self):
        dates = upcoming_run_dates("MONTHLY", 31, None, date(2024, 1, 31), count=3)
        assert dates == [date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]

    def test_weekly(self):
        dates = upcoming_run_dates("WEEKLY", None, 5, date(2024, 1, 1), count=2)
        assert dates == [date(2024, 1, 5), date(2024, 1, 12)]

    def test_count_must_be_positive(self):
        with pytest.raises(ValidationError):
            upcoming_run_dates("MONTHLY", 1, None, date(2024, 1, 1), count=0)


class TestScheduleLifecycle:

    def test_create(self):
        schedule = create_schedule("MONTHLY", day_of_month=31, start_date=date(2024, 1, 31))
        assert schedule.frequency == Frequency.MONTHLY
        assert schedule.next_run == date(2024, 2, 29)
        assert schedule.last_run is None
        assert schedule.is_active

    def test_advance_uses_next_run_by_default(self):
        schedule = create_schedule("MONTHLY", day_of_month=31, start_date=date(2024, 1, 31))
        advanced = advance_schedule(schedule)
        assert advanced.last_run == date(2024, 2, 29)
        assert advanced.next_run == date(2024, 3, 31)
        # original untouched
        assert schedule.last_run is None

    def test_advance_from_explicit_run_date(self):
        schedule = create_schedule("WEEKLY", day_of_week=1, start_date=date(2024, 1, 1))
        advanced = advance_schedule(schedule, run_date="2024-01-10")
        assert advanced.last_run == date(2024, 1, 10)
        assert advanced.next_run == date(2024, 1, 15)

    def test_deactivated_schedule_cannot_advance(self):
        schedule = deactivate_schedule(create_schedule("QUARTERLY", 1, start_date=date(2024, 1, 1)))
        assert not schedule.is_active
        with pytest.raises(ValidationError):
            advance_schedule(schedule)

    def test_is_due(self):
        schedule = create_schedule("MONTHLY", 10, start_date=date(2024, 1, 1))
        assert not is_due(schedule, date(2024, 2, 9))
        assert is_due(schedule, date(2024, 2, 10))
        assert not is_due(deactivate_schedule(schedule), date(2024, 3, 1))

    @pytest.mark.parametrize("frequency,day_of_month,day_of_week", [
        ("MONTHLY", 31, 3),
        ("WEEKLY", 15, 3),
    ])
    def test_create_rejects_unused_anchor(self, frequency, day_of_month, day_of_week):
        with pytest.raises(ValidationError) as exc_info:
            create_schedule(frequency, day_of_month, day_of_week, start_date=date(2024, 1, 31))
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert "is not used by" in str(exc_info.value)

    def test_model_requires_matching_anchor(self):
        with pytest.raises(PydanticValidationError):
            BillingSchedule(frequency="WEEKLY", day_of_month=1, next_run=date(2024, 1, 1))
        with pytest.raises(PydanticValidationError):
            BillingSchedule(frequency="MONTHLY", day_of_month=1, day_of_week=2, next_run=date(2024, 1, 1))
