"""funding - Resident fee funding reconciliation.

Scope:
- Weekly funding active on a date
- Resident out-of-pocket contribution (never negative)
- Funding period overlap detection per resident + source

Usage:
    from carecalc.sdk.funding import calculate_weekly_funding, calculate_resident_contribution

    funding = calculate_weekly_funding(records, date(2025, 6, 1), resident_id="res-1")
    contribution = calculate_resident_contribution(1000, 500, funding)
"""

from .reconcile import (
    is_funding_active,
    calculate_weekly_funding,
    calculate_resident_contribution,
    periods_overlap,
    check_funding_overlap,
    add_funding_record,
    find_overlaps,
    reconcile_resident,
)

from .files import load_funding_file, save_funding_file

__all__ = [
    "is_funding_active",
    "calculate_weekly_funding",
    "calculate_resident_contribution",
    "periods_overlap",
    "check_funding_overlap",
    "add_funding_record",
    "find_overlaps",
    "reconcile_resident",
    "load_funding_file",
    "save_funding_file",
]
