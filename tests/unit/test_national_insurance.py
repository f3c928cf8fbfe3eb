"""Unit tests for Class 1 employee National Insurance."""

from decimal import Decimal

import pytest

from carecalc.sdk import NIRates, ValidationError
from carecalc.sdk.payroll import NI_CATEGORY_RATES, calculate_national_insurance, get_category_rate

RATES_2025 = {
    "primary_threshold": 242,
    "upper_earnings_limit": 967,
    "primary_rate": 0.08,
    "upper_rate": 0.02,
}


class TestCategoryRates:

    def test_known_categories(self):
        assert set(NI_CATEGORY_RATES) == {"A", "B", "C", "H", "J", "M", "Z"}
        assert get_category_rate("A") == Decimal("1.0")
        assert get_category_rate("c") == Decimal("0")

    @pytest.mark.parametrize("category", ["X", "", None, "AA"])
    def test_unknown_category(self, category):
        with pytest.raises(ValidationError) as exc_info:
            get_category_rate(category)
        assert exc_info.value.field == "ni_category"


class TestCalculateNationalInsurance:

    def test_standard_category(self):
        # weekly 692.31 - 242 = 450.31 @ 8% = 36.02/wk -> x 52/12
        assert calculate_national_insurance(3000, "A", RATES_2025) == Decimal("156.11")

    def test_reduced_categories(self):
        assert calculate_national_insurance(3000, "B", RATES_2025) == Decimal("132.69")
        assert calculate_national_insurance(3000, "M", RATES_2025) == Decimal("140.50")

    def test_pension_age_pays_nothing(self):
        assert calculate_national_insurance(3000, "C", RATES_2025) == Decimal("0.00")

    def test_below_primary_threshold(self):
        assert calculate_national_insurance(1000, "A", RATES_2025) == Decimal("0.00")

    def test_above_upper_earnings_limit(self):
        # 725/wk @ 8% on the main band, 2% on everything above 967/wk
        assert calculate_national_insurance(5000, "A", RATES_2025) == Decimal("267.53")

    def test_category_case_insensitive(self):
        assert calculate_national_insurance(3000, "a", RATES_2025) == Decimal("156.11")

    def test_accepts_model(self):
        rates = NIRates.model_validate(RATES_2025)
        assert calculate_national_insurance(3000, "A", rates) == Decimal("156.11")

    def test_repeatable(self):
        first = calculate_national_insurance("2750.25", "J", RATES_2025)
        second = calculate_national_insurance("2750.25", "J", RATES_2025)
        assert first == second

    def test_invalid_category(self):
        with pytest.raises(ValidationError):
            calculate_national_insurance(3000, "X", RATES_2025)

    def test_invalid_rates(self):
        bad = dict(RATES_2025, upper_earnings_limit=100)
        with pytest.raises(ValidationError):
            calculate_national_insurance(3000, "A", bad)

    def test_negative_gross(self):
        with pytest.raises(ValidationError):
            calculate_national_insurance(-100, "A", RATES_2025)
