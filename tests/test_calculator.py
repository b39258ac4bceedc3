"""
Factory Payroll System - Salary Calculator Tests
"""

from decimal import Decimal

import pytest

from app.payrolls.calculator import (
    CarriedComponents,
    HealthInsurancePolicy,
    SalaryCalculator,
    compute_totals,
    money,
    whole,
)
from app.payrolls.reconciliation import AttendanceSummary, OvertimeTotals

BASE = Decimal("15300")


def full_month(days=30):
    return AttendanceSummary.perfect(days)


class TestProration:

    def test_full_attendance_pays_full_basic(self):
        breakdown = SalaryCalculator().compute(BASE, full_month(), 4, 2025)

        assert breakdown.prorated_factor == 1
        assert breakdown.basic_salary == Decimal("15300.00")
        assert breakdown.original_salary == Decimal("15300.00")

    def test_factor_never_below_floor(self):
        summary = AttendanceSummary.from_counts(0, 30, 0, 0, 30)
        breakdown = SalaryCalculator().compute(BASE, summary, 4, 2025)

        assert breakdown.prorated_factor == Decimal("0.1")
        assert breakdown.basic_salary == Decimal("1530.00")

    def test_late_days_are_paid(self):
        summary = AttendanceSummary.from_counts(20, 2, 1, 7, 30)
        breakdown = SalaryCalculator().compute(BASE, summary, 4, 2025)

        assert breakdown.prorated_factor == Decimal("0.7")
        assert breakdown.basic_salary == Decimal("10710.00")

    def test_current_month_divides_by_elapsed_days(self):
        summary = AttendanceSummary.from_counts(10, 0, 0, 4, 15)
        current = SalaryCalculator().compute(BASE, summary, 6, 2025, is_current_month=True)
        past = SalaryCalculator().compute(BASE, summary, 6, 2025, is_current_month=False)

        assert current.basic_salary == Decimal("10200.00")
        assert past.basic_salary == Decimal("5100.00")


class TestComponents:

    def test_allowances_follow_prorated_basic(self):
        allowances = SalaryCalculator().compute(BASE, full_month(), 4, 2025).allowances

        assert allowances["house_rent"] == Decimal("6120.00")
        assert allowances["medical"] == Decimal("1530.00")
        assert allowances["travel"] == Decimal("765.00")
        assert allowances["food"] == Decimal("765.00")
        assert allowances["special"] == Decimal("0.00")

    def test_attendance_deductions(self):
        summary = AttendanceSummary.from_counts(20, 2, 1, 7, 30)
        breakdown = SalaryCalculator().compute(BASE, summary, 4, 2025)

        # daily rate = 15300 / 30 = 510
        assert breakdown.deductions["absent_deduction"] == Decimal("200.00")
        assert breakdown.deductions["late_deduction"] == Decimal("127.50")
        assert breakdown.leave_deduction == Decimal("1785.00")

    def test_fixed_deductions_prorate_to_whole_units(self):
        summary = AttendanceSummary.from_counts(20, 2, 1, 7, 30)
        deductions = SalaryCalculator().compute(BASE, summary, 4, 2025).deductions

        assert deductions["professional_tax"] == Decimal("11.00")
        assert deductions["provident_fund"] == Decimal("34.00")
        assert deductions["health_insurance"] == Decimal("14.00")

    @pytest.mark.parametrize("policy,expected", [
        (HealthInsurancePolicy.FIXED_PRORATED, Decimal("20.00")),
        (HealthInsurancePolicy.CAPPED_PERCENTAGE, Decimal("765.00")),
    ])
    def test_health_insurance_policies(self, policy, expected):
        breakdown = SalaryCalculator(policy).compute(BASE, full_month(), 4, 2025)
        assert breakdown.deductions["health_insurance"] == expected

    def test_capped_health_insurance(self):
        breakdown = SalaryCalculator(HealthInsurancePolicy.CAPPED_PERCENTAGE).compute(
            Decimal("50000"), full_month(), 4, 2025
        )
        assert breakdown.deductions["health_insurance"] == Decimal("1000.00")

    def test_overtime_amount(self):
        breakdown = SalaryCalculator().compute(
            BASE, full_month(), 4, 2025, overtime=OvertimeTotals(hours=Decimal("10"), rate=Decimal("1.5"))
        )
        # 10 h x 1.5 x 15300 / 176
        assert breakdown.overtime_amount == Decimal("1303.98")
        assert breakdown.overtime_hours == Decimal("10.00")

    def test_carried_components_kept(self):
        carried = CarriedComponents(
            special_allowance=Decimal("500"),
            income_tax=Decimal("200"),
            loan_repayment=Decimal("300"),
            bonus=Decimal("1000"),
        )
        breakdown = SalaryCalculator().compute(BASE, full_month(), 4, 2025, carried=carried)

        assert breakdown.allowances["special"] == Decimal("500.00")
        assert breakdown.deductions["income_tax"] == Decimal("200.00")
        assert breakdown.deductions["loan_repayment"] == Decimal("300.00")
        assert breakdown.bonus == Decimal("1000.00")


class TestTotals:

    def test_full_month_totals(self):
        breakdown = SalaryCalculator().compute(BASE, full_month(), 4, 2025)

        assert breakdown.gross_salary == Decimal("24480.00")
        assert breakdown.total_deductions == Decimal("83.00")
        assert breakdown.net_salary == Decimal("24397.00")

    @pytest.mark.parametrize("summary", [
        AttendanceSummary.from_counts(20, 2, 1, 7, 30),
        AttendanceSummary.from_counts(0, 0, 0, 30, 30),
        AttendanceSummary.from_counts(13, 5, 9, 3, 30),
    ])
    def test_net_is_gross_minus_deductions(self, summary):
        breakdown = SalaryCalculator(HealthInsurancePolicy.CAPPED_PERCENTAGE).compute(
            Decimal("23456.78"), summary, 4, 2025,
            overtime=OvertimeTotals(hours=Decimal("7.5"), rate=Decimal("2")),
            carried=CarriedComponents(other_allowance=Decimal("99.99"), other_deduction=Decimal("12.34")),
        )
        assert breakdown.net_salary == breakdown.gross_salary - breakdown.total_deductions

        recomputed = compute_totals(
            breakdown.basic_salary,
            breakdown.allowances,
            breakdown.deductions,
            breakdown.leave_deduction,
            breakdown.overtime_amount,
            breakdown.bonus,
        )
        assert recomputed.gross_salary == breakdown.gross_salary
        assert recomputed.net_salary == breakdown.net_salary

    def test_compute_totals_accepts_floats(self):
        totals = compute_totals(1000.005, {"a": 10.1}, {"b": 0.2}, 5, 0, None)

        assert totals.gross_salary == Decimal("1010.11")
        assert totals.total_deductions == Decimal("5.20")
        assert totals.net_salary == Decimal("1004.91")


class TestRounding:

    def test_money_rounds_half_up(self):
        assert money("2.345") == Decimal("2.35")
        assert money(None) == Decimal("0.00")

    def test_whole_rounds_to_units(self):
        assert whole(Decimal("10.5")) == Decimal("11.00")
        assert whole(Decimal("33.6")) == Decimal("34.00")
