"""Configuration management for Care Calc.

Configuration lives in two places:

1. settings.json - Machine-specific settings
   - rules_dir: directory holding custom payroll rules (optional)
   - region: default income tax region (england, wales, scotland)

2. payroll_rules/{year}.yaml - Tax-year rules tables
   - personal allowance, tax bands per region, NI thresholds
   - student loan plans, emergency rate
   Shipped with the package; a custom rules_dir takes precedence.

Config directory resolution:
1. CARE_CALC_CONFIG_PATH environment variable (if set)
2. ~/.config/care-calc/ (XDG_CONFIG_HOME fallback)
"""

import json
import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .payroll.schemas import PayrollRules

logger = logging.getLogger(__name__)

APP_NAME = "care-calc"
SETTINGS_FILENAME = "settings.json"
DEFAULT_REGION = "england"

# UK tax years start on 6 April
TAX_YEAR_START_MONTH = 4
TAX_YEAR_START_DAY = 6


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. CARE_CALC_CONFIG_PATH environment variable
    2. ~/.config/care-calc/ (XDG_CONFIG_HOME)

    Returns:
        Path to the configuration directory
    """
    env_path = os.environ.get("CARE_CALC_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    settings = load_settings()
    return settings.get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json.

    Returns:
        Path to the saved settings file
    """
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def get_default_region() -> str:
    """Get the configured default tax region (falls back to england)."""
    return get_setting("region") or DEFAULT_REGION


# =============================================================================
# Payroll rules
# =============================================================================

def _get_builtin_rules_dir() -> Path:
    """Get the payroll rules directory shipped with the package."""
    return Path(__file__).parent.parent / "payroll_rules"  # sdk -> carecalc


def get_rules_dir() -> Path:
    """Get the payroll rules directory.

    A ``rules_dir`` in settings.json takes precedence over the packaged rules.
    """
    custom_dir = get_setting("rules_dir")
    if custom_dir:
        return Path(custom_dir).expanduser()
    return _get_builtin_rules_dir()


def get_available_tax_years() -> list[int]:
    """Get sorted list of available rule years (descending)."""
    rules_dir = get_rules_dir()
    years = [int(p.stem) for p in rules_dir.glob("*.yaml") if p.stem.isdigit()]
    return sorted(years, reverse=True)


def tax_year_for_date(value: Union[date, datetime, str]) -> int:
    """Return the UK tax year a date falls in.

    Tax year 2025 runs from 6 April 2025 to 5 April 2026.

    Example: 2025-04-05 -> 2024, 2025-04-06 -> 2025
    """
    if isinstance(value, str):
        value = datetime.strptime(value, "%Y-%m-%d").date()
    elif isinstance(value, datetime):
        value = value.date()

    if (value.month, value.day) >= (TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY):
        return value.year
    return value.year - 1


def load_payroll_rules(tax_year: Optional[Union[int, str]] = None) -> PayrollRules:
    """Load payroll rules for a tax year, falling back to the nearest prior year.

    Rules change every April; when a year has not been published yet the
    latest earlier table is used.

    Args:
        tax_year: Tax year (e.g. 2025 for 2025/26). Defaults to the current one.

    Returns:
        Validated PayrollRules

    Raises:
        FileNotFoundError: If no rules file exists for the year or any earlier year
        pydantic.ValidationError: If the rules file is malformed
    """
    if tax_year is None:
        tax_year = tax_year_for_date(date.today())
    target_year = int(tax_year)

    rules_dir = get_rules_dir()
    candidate_years = [y for y in get_available_tax_years() if y <= target_year]
    if not candidate_years:
        raise FileNotFoundError(
            f"Payroll rules not found for tax year {target_year} or earlier in {rules_dir}"
        )

    chosen_year = candidate_years[0]
    if chosen_year != target_year:
        logger.info(f"No payroll rules for {target_year}; using {chosen_year} rules")

    rules_file = rules_dir / f"{chosen_year}.yaml"
    with open(rules_file, "r") as f:
        data = yaml.safe_load(f) or {}

    logger.debug(f"Loaded payroll rules from {rules_file}")
    return PayrollRules.model_validate(data)
