"""Unit tests for the MCP server tools.

The tools are plain async functions once registered, so they are called
directly with every argument given.
"""

import asyncio

import pytest

pytest.importorskip("mcp")

from carecalc.mcp import server  # noqa: E402

FUNDING = [
    {
        "resident_id": "res-001",
        "funding_source_id": "la-leeds",
        "start_date": "2025-04-01",
        "end_date": None,
        "weekly_amount": 800,
    },
    {
        "resident_id": "res-002",
        "funding_source_id": "la-leeds",
        "start_date": "2025-04-01",
        "end_date": None,
        "weekly_amount": 900,
    },
]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("CARE_CALC_CONFIG_PATH", str(tmp_path / "config"))


def contribution(resident_id, funding=FUNDING):
    return asyncio.run(server.resident_contribution(
        room_rate=1000,
        care_package_rate=500,
        as_of_date="2025-06-01",
        funding=funding,
        resident_id=resident_id,
    ))


class TestResidentContribution:

    def test_only_counts_the_residents_funding(self):
        result = contribution("res-001")
        assert result["resident_id"] == "res-001"
        assert result["weekly_funding"] == "800.00"
        assert result["resident_contribution"] == "700.00"

    def test_without_resident_sums_all_records(self):
        result = contribution(None)
        assert result["weekly_funding"] == "1700.00"
        assert result["resident_contribution"] == "0.00"

    def test_bad_record_reported(self):
        result = contribution("res-001", funding=[{"resident_id": "res-001"}])
        assert result["resident_contribution"] is None
        assert "error" in result


class TestOtherTools:

    def test_next_run_date(self):
        result = asyncio.run(server.next_run_date(
            frequency="monthly", base_date="2024-01-31", day_of_month=31, day_of_week=None,
        ))
        assert result == {"frequency": "MONTHLY", "base_date": "2024-01-31", "next_run": "2024-02-29"}

    def test_next_run_date_error(self):
        result = asyncio.run(server.next_run_date(
            frequency="WEEKLY", base_date="2024-01-01", day_of_month=None, day_of_week=None,
        ))
        assert result["next_run"] is None
        assert result["code"] == "VALIDATION_ERROR"

    def test_check_funding_overlap(self):
        new_record = dict(FUNDING[0], start_date="2025-05-01")
        result = asyncio.run(server.check_funding(existing=FUNDING, new_record=new_record))
        assert result["ok"] is False
        assert result["code"] == "FUNDING_PERIOD_OVERLAP"

    def test_check_funding_clean(self):
        new_record = dict(FUNDING[0], funding_source_id="nhs-chc")
        assert asyncio.run(server.check_funding(existing=FUNDING, new_record=new_record)) == {"ok": True}

    def test_payslip_emergency_and_default_pension(self):
        result = asyncio.run(server.payslip(
            gross_pay=3000,
            tax_code=None,
            ni_category="A",
            tax_year=2025,
            region=None,
            pension_percentage=None,
            pension_enrolled=True,
            student_loan_plan=None,
        ))
        assert result["tax_year"] == 2025
        assert result["income_tax"] == "600.00"
        assert result["net_pay"] == "2093.89"

    def test_adjust_tax_code(self):
        assert asyncio.run(server.adjust_tax_code(tax_code="1257L", adjustment=-100)) == {"tax_code": "1157L"}
