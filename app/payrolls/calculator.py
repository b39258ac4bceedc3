"""
Salary calculator.

Pure arithmetic over Decimal: a base salary plus an attendance summary in,
a complete salary breakdown out. Every currency value is rounded half-up to
two places before it is summed, so stored totals always add up exactly.
"""

import enum
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Mapping, Optional

from app.payrolls.periods import PayrollPeriod
from app.payrolls.reconciliation import AttendanceSummary, OvertimeTotals

CENT = Decimal("0.01")
ZERO = Decimal("0")

MIN_PRORATION_FACTOR = Decimal("0.1")

HOUSE_RENT_SHARE = Decimal("0.40")
MEDICAL_SHARE = Decimal("0.10")
TRAVEL_SHARE = Decimal("0.05")
FOOD_SHARE = Decimal("0.05")

PROFESSIONAL_TAX_BASE = Decimal("15")
PROVIDENT_FUND_BASE = Decimal("48")
HEALTH_INSURANCE_BASE = Decimal("20")
HEALTH_INSURANCE_SHARE = Decimal("0.05")
HEALTH_INSURANCE_CAP = Decimal("1000")

ABSENT_DAY_DEDUCTION = Decimal("100")
LATE_DAY_RATE_SHARE = Decimal("0.25")
LEAVE_DAY_RATE_SHARE = Decimal("0.5")

# Nominal month used to derive an hourly rate for overtime: 22 days of 8 hours
OVERTIME_MONTHLY_HOURS = Decimal(22 * 8)

ALLOWANCE_FIELDS = ("house_rent", "medical", "travel", "food", "special", "other")
DEDUCTION_FIELDS = (
    "professional_tax",
    "income_tax",
    "provident_fund",
    "health_insurance",
    "loan_repayment",
    "absent_deduction",
    "late_deduction",
    "other",
)


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def whole(value) -> Decimal:
    return to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP).quantize(CENT)


class HealthInsurancePolicy(str, enum.Enum):
    # round(20 x proration factor); generation, recalculation and synthetic history
    FIXED_PRORATED = "fixed_prorated"
    # 5% of prorated basic, at most 1000; attendance reconciliation and future months
    CAPPED_PERCENTAGE = "capped_percentage"


@dataclass
class CarriedComponents:
    """Manually maintained amounts a recalculation keeps from the stored payroll."""

    special_allowance: Decimal = ZERO
    other_allowance: Decimal = ZERO
    income_tax: Decimal = ZERO
    loan_repayment: Decimal = ZERO
    other_deduction: Decimal = ZERO
    bonus: Decimal = ZERO

    @classmethod
    def from_payroll(cls, payroll) -> "CarriedComponents":
        return cls(
            special_allowance=to_decimal(payroll.allowance_special),
            other_allowance=to_decimal(payroll.allowance_other),
            income_tax=to_decimal(payroll.deduction_income_tax),
            loan_repayment=to_decimal(payroll.deduction_loan_repayment),
            other_deduction=to_decimal(payroll.deduction_other),
            bonus=to_decimal(payroll.bonus),
        )


@dataclass
class PayrollTotals:
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal


@dataclass
class SalaryBreakdown:
    original_salary: Decimal
    prorated_factor: Decimal
    basic_salary: Decimal
    allowances: Dict[str, Decimal] = field(default_factory=dict)
    deductions: Dict[str, Decimal] = field(default_factory=dict)
    leave_deduction: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    overtime_rate: Decimal = ZERO
    overtime_amount: Decimal = ZERO
    bonus: Decimal = ZERO
    gross_salary: Decimal = ZERO
    total_deductions: Decimal = ZERO
    net_salary: Decimal = ZERO


def compute_totals(
    basic_salary,
    allowances: Mapping[str, object],
    deductions: Mapping[str, object],
    leave_deduction,
    overtime_amount,
    bonus,
) -> PayrollTotals:
    """gross = basic + allowances + overtime + bonus; total = deductions + leave; net = gross - total."""
    gross = money(basic_salary) + sum((money(v) for v in allowances.values()), ZERO) \
        + money(overtime_amount) + money(bonus)
    total = sum((money(v) for v in deductions.values()), ZERO) + money(leave_deduction)
    return PayrollTotals(gross_salary=gross, total_deductions=total, net_salary=gross - total)


class SalaryCalculator:
    def __init__(self, health_insurance_policy: HealthInsurancePolicy = HealthInsurancePolicy.FIXED_PRORATED):
        self.health_insurance_policy = health_insurance_policy

    @staticmethod
    def proration_factor(summary: AttendanceSummary, period: PayrollPeriod, is_current_month: bool) -> Decimal:
        if is_current_month and summary.total_working_days > 0:
            denominator = summary.total_working_days
        else:
            denominator = period.days_in_month
        return max(Decimal(summary.paid_days) / Decimal(denominator), MIN_PRORATION_FACTOR)

    def _health_insurance(self, basic_salary: Decimal, factor: Decimal) -> Decimal:
        if self.health_insurance_policy == HealthInsurancePolicy.CAPPED_PERCENTAGE:
            return money(min(basic_salary * HEALTH_INSURANCE_SHARE, HEALTH_INSURANCE_CAP))
        return whole(HEALTH_INSURANCE_BASE * factor)

    def compute(
        self,
        base_salary,
        summary: AttendanceSummary,
        month: int,
        year: int,
        is_current_month: bool = False,
        overtime: Optional[OvertimeTotals] = None,
        carried: Optional[CarriedComponents] = None,
    ) -> SalaryBreakdown:
        period = PayrollPeriod.of(month, year)
        overtime = overtime or OvertimeTotals()
        carried = carried or CarriedComponents()

        original_salary = to_decimal(base_salary)
        factor = self.proration_factor(summary, period, is_current_month)
        basic = original_salary * factor

        allowances = {
            "house_rent": money(basic * HOUSE_RENT_SHARE),
            "medical": money(basic * MEDICAL_SHARE),
            "travel": money(basic * TRAVEL_SHARE),
            "food": money(basic * FOOD_SHARE),
            "special": money(carried.special_allowance),
            "other": money(carried.other_allowance),
        }

        daily_rate = original_salary / Decimal(period.days_in_month)
        deductions = {
            "professional_tax": whole(PROFESSIONAL_TAX_BASE * factor),
            "income_tax": money(carried.income_tax),
            "provident_fund": whole(PROVIDENT_FUND_BASE * factor),
            "health_insurance": self._health_insurance(basic, factor),
            "loan_repayment": money(carried.loan_repayment),
            "absent_deduction": money(summary.absent * ABSENT_DAY_DEDUCTION),
            "late_deduction": money(summary.late * daily_rate * LATE_DAY_RATE_SHARE),
            "other": money(carried.other_deduction),
        }
        leave_deduction = money(summary.on_leave * daily_rate * LEAVE_DAY_RATE_SHARE)

        overtime_amount = money(overtime.hours * overtime.rate * basic / OVERTIME_MONTHLY_HOURS)
        bonus = money(carried.bonus)

        totals = compute_totals(basic, allowances, deductions, leave_deduction, overtime_amount, bonus)

        return SalaryBreakdown(
            original_salary=money(original_salary),
            prorated_factor=factor,
            basic_salary=money(basic),
            allowances=allowances,
            deductions=deductions,
            leave_deduction=leave_deduction,
            overtime_hours=money(overtime.hours),
            overtime_rate=money(overtime.rate),
            overtime_amount=overtime_amount,
            bonus=bonus,
            gross_salary=totals.gross_salary,
            total_deductions=totals.total_deductions,
            net_salary=totals.net_salary,
        )
