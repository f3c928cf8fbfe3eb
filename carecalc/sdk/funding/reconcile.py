"""Resident funding reconciliation.

A resident's weekly fee (room rate + care package rate) is covered partly by
funding sources (local authority, NHS continuing healthcare, FNC, third-party
top-ups) and the rest by the resident. Funding above the fee is never
refunded, so the resident contribution is clamped at zero.

Funding windows are closed intervals [start_date, end_date]; an end_date of
None means the funding is open-ended.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from ..billing.schedule import DateLike, parse_date
from ..errors import FundingPeriodOverlapError
from ..money import ZERO, Number, require_non_negative, round_money
from ..schemas import FundingBreakdown, FundingRecord, ResidentFinancialProfile

logger = logging.getLogger(__name__)


def is_funding_active(record: FundingRecord, as_of: DateLike) -> bool:
    """True if the funding record covers as_of (inclusive at both ends)."""
    check_date = parse_date(as_of, "as_of")
    if record.start_date > check_date:
        return False
    return record.end_date is None or record.end_date >= check_date


def calculate_weekly_funding(
    funding_records: Iterable[FundingRecord],
    as_of_date: DateLike,
    resident_id: Optional[str] = None,
) -> Decimal:
    """Sum weekly_amount over funding records active on as_of_date.

    Args:
        funding_records: Funding records to consider
        as_of_date: Date to evaluate
        resident_id: Only count this resident's records (default: all records)

    Returns:
        Total weekly funding
    """
    check_date = parse_date(as_of_date, "as_of_date")
    total = ZERO
    for record in funding_records:
        if resident_id is not None and record.resident_id != resident_id:
            continue
        if is_funding_active(record, check_date):
            total += record.weekly_amount
    return round_money(total)


def calculate_resident_contribution(
    room_rate: Number,
    care_package_rate: Number,
    weekly_funding: Number,
) -> Decimal:
    """Weekly amount the resident pays: max(0, room + care - funding).

    Raises:
        ValidationError: If any amount is negative

    Example:
        calculate_resident_contribution(1000, 500, 800)  # -> Decimal("700.00")
    """
    room = require_non_negative(room_rate, "room_rate")
    care = require_non_negative(care_package_rate, "care_package_rate")
    funding = require_non_negative(weekly_funding, "weekly_funding")

    contribution = max(ZERO, room + care - funding)
    return round_money(contribution)


def periods_overlap(
    a_start: date,
    a_end: Optional[date],
    b_start: date,
    b_end: Optional[date],
) -> bool:
    """True if two closed date windows intersect. None end dates are unbounded."""
    a_ends_before_b = a_end is not None and a_end < b_start
    b_ends_before_a = b_end is not None and b_end < a_start
    return not (a_ends_before_b or b_ends_before_a)


def _records_conflict(a: FundingRecord, b: FundingRecord) -> bool:
    return (
        a.resident_id == b.resident_id
        and a.funding_source_id == b.funding_source_id
        and periods_overlap(a.start_date, a.end_date, b.start_date, b.end_date)
    )


def _describe_window(record: FundingRecord) -> str:
    end = record.end_date.isoformat() if record.end_date else "open-ended"
    return f"{record.start_date.isoformat()} to {end}"


def check_funding_overlap(
    existing_records: Iterable[FundingRecord],
    new_record: FundingRecord,
) -> None:
    """Reject a new funding record that overlaps an existing one.

    Only records for the same resident and funding source can conflict.

    Raises:
        FundingPeriodOverlapError: On the first conflicting record
    """
    for existing in existing_records:
        if _records_conflict(existing, new_record):
            logger.debug(
                f"funding overlap: resident={new_record.resident_id} "
                f"source={new_record.funding_source_id} "
                f"new={_describe_window(new_record)} existing={_describe_window(existing)}"
            )
            raise FundingPeriodOverlapError(
                f"Funding period {_describe_window(new_record)} for resident "
                f"{new_record.resident_id} from source {new_record.funding_source_id} "
                f"overlaps existing period {_describe_window(existing)}",
                conflicting=existing,
            )


def add_funding_record(
    existing_records: Iterable[FundingRecord],
    new_record: FundingRecord,
) -> List[FundingRecord]:
    """Validate and append a funding record.

    Returns:
        New list of records including new_record (input is not modified)

    Raises:
        FundingPeriodOverlapError: If new_record overlaps an existing record
    """
    records = list(existing_records)
    check_funding_overlap(records, new_record)
    return records + [new_record]


def find_overlaps(records: Iterable[FundingRecord]) -> List[Tuple[FundingRecord, FundingRecord]]:
    """Find every pair of conflicting records in an already-loaded set.

    Used to audit imported data, where the insert-time check never ran.
    """
    records = list(records)
    conflicts = []
    for i, first in enumerate(records):
        for second in records[i + 1:]:
            if _records_conflict(first, second):
                conflicts.append((first, second))
    return conflicts


def reconcile_resident(
    profile: ResidentFinancialProfile,
    funding_records: Iterable[FundingRecord],
    as_of: DateLike,
) -> FundingBreakdown:
    """Break down one resident's weekly fee by payer on a given date."""
    check_date = parse_date(as_of, "as_of")

    by_source = {}
    for record in funding_records:
        if record.resident_id != profile.resident_id:
            continue
        if not is_funding_active(record, check_date):
            continue
        by_source[record.funding_source_id] = (
            by_source.get(record.funding_source_id, ZERO) + record.weekly_amount
        )

    weekly_funding = round_money(sum(by_source.values(), ZERO))
    contribution = calculate_resident_contribution(
        profile.room_rate, profile.care_package_rate, weekly_funding
    )

    return FundingBreakdown(
        resident_id=profile.resident_id,
        as_of=check_date,
        total_weekly_cost=round_money(profile.total_weekly_cost),
        weekly_funding=weekly_funding,
        resident_contribution=contribution,
        by_source={source: round_money(amount) for source, amount in sorted(by_source.items())},
    )
