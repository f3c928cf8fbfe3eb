"""Tests for settings and tax-year rules loading."""

import json
from datetime import date, datetime
from decimal import Decimal

import pytest
import yaml
from pydantic import ValidationError as PydanticValidationError

from carecalc.sdk import (
    get_available_tax_years,
    get_config_dir,
    get_default_region,
    get_rules_dir,
    get_setting,
    load_payroll_rules,
    set_setting,
    tax_year_for_date,
)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the config directory at a temp dir."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("CARE_CALC_CONFIG_PATH", str(config_dir))
    return config_dir


def write_rules(rules_dir, year, **overrides):
    """Write a minimal rules file for a year."""
    data = {
        "tax_year": year,
        "personal_allowance": 10000,
        "regions": {
            "england": {
                "tax_bands": [
                    {"name": "basic", "threshold": 10000, "width": 30000, "rate": 0.25},
                    {"name": "higher", "threshold": 40000, "rate": 0.50},
                ],
                "special_codes": {"BR": "basic"},
            },
        },
        "national_insurance": {
            "primary_threshold": 200,
            "upper_earnings_limit": 900,
            "primary_rate": 0.1,
            "upper_rate": 0.02,
        },
    }
    data.update(overrides)
    rules_dir.mkdir(parents=True, exist_ok=True)
    (rules_dir / f"{year}.yaml").write_text(yaml.safe_dump(data))


class TestTaxYear:

    @pytest.mark.parametrize("value,expected", [
        (date(2025, 4, 5), 2024),
        (date(2025, 4, 6), 2025),
        (date(2026, 1, 15), 2025),
        ("2025-12-31", 2025),
        (datetime(2024, 4, 6, 9, 0), 2024),
    ])
    def test_tax_year_for_date(self, value, expected):
        assert tax_year_for_date(value) == expected


class TestSettings:

    def test_config_dir_from_env(self, isolated_config):
        assert get_config_dir() == isolated_config

    def test_set_and_get(self, isolated_config):
        set_setting("region", "scotland")
        assert get_setting("region") == "scotland"
        assert json.loads((isolated_config / "settings.json").read_text()) == {"region": "scotland"}

    def test_default_region(self, isolated_config):
        assert get_default_region() == "england"
        set_setting("region", "wales")
        assert get_default_region() == "wales"


class TestLoadPayrollRules:

    def test_packaged_years(self, isolated_config):
        years = get_available_tax_years()
        assert 2024 in years and 2025 in years
        assert years == sorted(years, reverse=True)

    def test_packaged_2025(self, isolated_config):
        rules = load_payroll_rules(2025)
        assert rules.tax_year == 2025
        assert rules.personal_allowance == Decimal("12570")
        assert set(rules.regions) == {"england", "wales", "scotland"}
        assert rules.national_insurance.primary_threshold == Decimal("242")
        assert rules.emergency_rate == Decimal("0.20")

    def test_year_as_string(self, isolated_config):
        assert load_payroll_rules("2024").tax_year == 2024

    def test_falls_back_to_latest_earlier_year(self, isolated_config, caplog):
        with caplog.at_level("INFO", logger="carecalc.sdk.config"):
            rules = load_payroll_rules(2099)
        assert rules.tax_year == max(get_available_tax_years())
        assert "No payroll rules for 2099" in caplog.text

    def test_no_earlier_year(self, isolated_config):
        with pytest.raises(FileNotFoundError):
            load_payroll_rules(1990)

    def test_custom_rules_dir(self, isolated_config, tmp_path):
        rules_dir = tmp_path / "rules"
        write_rules(rules_dir, 2030)
        set_setting("rules_dir", str(rules_dir))

        assert get_rules_dir() == rules_dir
        assert get_available_tax_years() == [2030]
        rules = load_payroll_rules(2031)
        assert rules.tax_year == 2030
        assert rules.personal_allowance == Decimal("10000")

    def test_unknown_top_level_keys_ignored(self, isolated_config, tmp_path):
        rules_dir = tmp_path / "rules"
        write_rules(rules_dir, 2030, notes="published March 2030")
        set_setting("rules_dir", str(rules_dir))
        assert load_payroll_rules(2030).tax_year == 2030

    def test_malformed_bands_rejected(self, isolated_config, tmp_path):
        rules_dir = tmp_path / "rules"
        write_rules(rules_dir, 2030, regions={
            "england": {
                "tax_bands": [
                    {"name": "higher", "threshold": 40000, "width": 10000, "rate": 0.4},
                    {"name": "basic", "threshold": 10000, "rate": 0.2},
                ],
            },
        })
        set_setting("rules_dir", str(rules_dir))
        with pytest.raises(PydanticValidationError):
            load_payroll_rules(2030)

    def test_england_required(self, isolated_config, tmp_path):
        rules_dir = tmp_path / "rules"
        write_rules(rules_dir, 2030, regions={
            "scotland": {"tax_bands": [{"name": "basic", "threshold": 0, "rate": 0.2}]},
        })
        set_setting("rules_dir", str(rules_dir))
        with pytest.raises(PydanticValidationError):
            load_payroll_rules(2030)
