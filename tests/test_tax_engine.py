"""
Factory Payroll System - Income Tax Engine Tests
"""

from decimal import Decimal

import pytest

from app.core.exceptions import ValidationError
from app.payrolls.tax import (
    NEW_REGIME,
    OLD_REGIME,
    calculate_tax,
    compare_regimes,
    estimate_monthly_income_tax,
)


class TestOldRegime:

    def test_six_lakh_without_deductions(self):
        """0-2.5L nil, 2.5L-5L at 5%, 5L-6L at 10%, plus 4% cess."""
        breakdown = calculate_tax(Decimal("600000"), {}, OLD_REGIME)

        assert breakdown.base_tax == Decimal("22500.00")
        assert breakdown.surcharge == Decimal("0.00")
        assert breakdown.cess == Decimal("900.00")
        assert breakdown.total_tax == Decimal("23400.00")
        assert breakdown.monthly_tax == Decimal("1950.00")
        assert breakdown.effective_rate == Decimal("3.90")

    def test_slab_lines_stop_at_income(self):
        slabs = calculate_tax(600000, None, OLD_REGIME).slabs

        assert [line.tax_amount for line in slabs] == [Decimal("0.00"), Decimal("12500.00"), Decimal("10000.00")]
        assert slabs[-1].taxable_amount == Decimal("100000.00")
        assert slabs[-1].end == Decimal("750000")

    def test_deduction_limits(self):
        breakdown = calculate_tax(Decimal("900000"), {
            "section80C": 200000,
            "section80D": 10000,
        }, OLD_REGIME)
        lines = {line.name: line for line in breakdown.deductions}

        assert lines["section80C"].allowed == Decimal("150000")
        assert lines["section80D"].allowed == Decimal("10000")
        assert breakdown.total_deductions == Decimal("160000.00")
        assert breakdown.taxable_income == Decimal("740000.00")

    def test_total_deductions_capped(self):
        breakdown = calculate_tax(Decimal("2000000"), {
            "section80C": 150000,
            "housingLoanInterest": 300000,
            "educationLoanInterest": 400000,
        }, OLD_REGIME)

        assert breakdown.total_deductions == Decimal("500000.00")
        assert breakdown.taxable_income == Decimal("1500000.00")

    @pytest.mark.parametrize("income,rate", [
        (Decimal("4000000"), Decimal("0")),
        (Decimal("6000000"), Decimal("0.05")),
        (Decimal("8000000"), Decimal("0.10")),
        (Decimal("12000000"), Decimal("0.15")),
    ])
    def test_surcharge_tiers(self, income, rate):
        breakdown = calculate_tax(income, {}, OLD_REGIME)

        assert breakdown.surcharge_rate == rate
        expected_cess = ((breakdown.base_tax + breakdown.surcharge) * Decimal("0.04")).quantize(Decimal("0.01"))
        assert breakdown.cess == expected_cess


class TestNewRegime:

    def test_ignores_deductions(self):
        breakdown = calculate_tax(Decimal("600000"), {"section80C": 150000}, NEW_REGIME)

        assert breakdown.total_deductions == Decimal("0.00")
        assert breakdown.base_tax == Decimal("15000.00")
        assert breakdown.total_tax == Decimal("15600.00")

    def test_no_surcharge(self):
        breakdown = calculate_tax(Decimal("12000000"), {}, NEW_REGIME)
        assert breakdown.surcharge == Decimal("0.00")


class TestEdgeCases:

    def test_invalid_regime(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_tax(600000, {}, "flat")

        assert exc_info.value.status_code == 400
        assert "taxRegime" in str(exc_info.value.error_data)

    def test_zero_income(self):
        breakdown = calculate_tax(0, {}, OLD_REGIME)

        assert breakdown.total_tax == Decimal("0.00")
        assert breakdown.effective_rate == Decimal("0.00")
        assert breakdown.slabs == []

    def test_to_dict_shape(self):
        result = calculate_tax(600000, {}, OLD_REGIME).to_dict()

        assert result["regime"]["name"] == OLD_REGIME
        assert result["tax"]["total"] == Decimal("23400.00")
        assert result["tax"]["surcharge"]["applicable"] is False
        assert result["deductions"]["section80C"]["max_limit"] == Decimal("150000")
        assert result["tax_breakdown"][0]["bracket_start"] == Decimal("0")


class TestRegimeHelpers:

    def test_compare_regimes(self):
        comparison = compare_regimes(Decimal("600000"))

        assert comparison["old"].total_tax == Decimal("23400.00")
        assert comparison["new"].total_tax == Decimal("15600.00")
        assert comparison["recommended"] == NEW_REGIME
        assert comparison["savings"] == Decimal("7800.00")

    def test_monthly_estimate(self):
        assert estimate_monthly_income_tax(Decimal("15300")) == Decimal("0.00")
        assert estimate_monthly_income_tax(Decimal("50000")) == Decimal("1875.00")
