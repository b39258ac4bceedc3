"""
Factory Payroll System - Attendance Reconciliation Tests
"""

from datetime import date
from decimal import Decimal

from app.core.clock import FixedClock
from app.payrolls.periods import PayrollPeriod, joined_by
from app.payrolls.reconciliation import (
    AttendanceReconciler,
    ReconciliationKind,
    latest_per_day,
    synthetic_summary,
    tally_overtime,
)
from tests.conftest import TODAY, FakeAttendanceReader, employee_stub, record


def reconciler_with(records=None, today=TODAY):
    return AttendanceReconciler(FakeAttendanceReader(records), FixedClock(today))


class TestPayrollPeriod:

    def test_days_and_bounds(self):
        period = PayrollPeriod.of(2, 2024)
        assert period.days_in_month == 29
        assert period.first_day == "2024-02-01"
        assert period.last_day == "2024-02-29"

    def test_position_relative_to_today(self):
        assert PayrollPeriod.of(7, 2025).is_future(TODAY)
        assert PayrollPeriod.of(6, 2025).is_current(TODAY)
        assert PayrollPeriod.of(5, 2025).is_past(TODAY)

    def test_previous_wraps_year(self):
        assert PayrollPeriod.of(1, 2025).previous() == PayrollPeriod.of(12, 2024)

    def test_joined_by(self):
        assert joined_by(date(2025, 3, 20), PayrollPeriod.of(3, 2025))
        assert not joined_by(date(2025, 3, 20), PayrollPeriod.of(2, 2025))
        assert joined_by(None, PayrollPeriod.of(1, 2020))


class TestPolicyOrder:

    def test_pre_joining_period_is_not_applicable(self):
        result = reconciler_with().reconcile(employee_stub(date(2025, 7, 10)), 6, 2025)

        assert result.kind == ReconciliationKind.PRE_JOINING
        assert not result.is_applicable
        assert result.summary is None

    def test_pre_joining_wins_over_future(self):
        result = reconciler_with().reconcile(employee_stub(date(2026, 8, 1)), 5, 2026)
        assert result.kind == ReconciliationKind.PRE_JOINING

    def test_future_month_assumes_perfect_attendance(self):
        result = reconciler_with().reconcile(employee_stub(), 8, 2025)

        assert result.kind == ReconciliationKind.FUTURE
        assert result.summary.present == 31
        assert result.summary.working_days == 31
        assert result.summary.total_working_days == 31
        assert result.summary.absent == result.summary.late == result.summary.on_leave == 0


class TestPastMonth:

    def test_unrecorded_days_count_as_leave(self):
        records = (
            [record(f"2025-04-{d:02d}", "Present") for d in range(1, 21)]
            + [record("2025-04-21", "Absent"), record("2025-04-22", "Absent")]
            + [record("2025-04-23", "Late")]
        )
        result = reconciler_with(records).reconcile(employee_stub(), 4, 2025)
        summary = result.summary

        assert result.kind == ReconciliationKind.ACTUAL
        assert (summary.present, summary.absent, summary.late, summary.on_leave) == (20, 2, 1, 7)
        assert summary.working_days == 30
        assert summary.total_working_days == 30
        assert len(result.record_ids) == 23

    def test_no_records_gives_synthetic_summary(self):
        result = reconciler_with().reconcile(employee_stub(), 5, 2025)

        assert result.kind == ReconciliationKind.SYNTHETIC
        assert result.is_synthetic
        assert result.summary.working_days == 31
        assert result.record_ids == []

    def test_falls_back_to_date_range_when_untagged(self):
        records = [record(f"2025-04-{d:02d}", "Present", tagged=False) for d in range(1, 31)]
        result = reconciler_with(records).reconcile(employee_stub(), 4, 2025)

        assert result.summary.present == 30
        assert result.summary.on_leave == 0

    def test_tagged_records_outside_month_are_ignored(self):
        stray = record("2025-05-02", "Present")
        stray.payroll_month = 4
        records = [record(f"2025-04-{d:02d}", "Present") for d in range(1, 31)] + [stray]

        summary = reconciler_with(records).reconcile(employee_stub(), 4, 2025).summary
        assert summary.present == 30
        assert summary.working_days <= summary.total_working_days

    def test_latest_record_per_day_wins(self):
        records = [
            record("2025-04-01", "Absent", record_id="first"),
            record("2025-04-01", "Present", record_id="second"),
        ]
        result = reconciler_with(records).reconcile(employee_stub(), 4, 2025)

        assert result.summary.present == 1
        assert result.summary.absent == 0
        assert result.record_ids == ["second"]


class TestCurrentMonth:

    def test_elapsed_days_only(self):
        records = [record(f"2025-06-{d:02d}", "Present") for d in range(1, 11)]
        summary = reconciler_with(records).reconcile(employee_stub(), 6, 2025).summary

        # Days 11-14 are missing; the 15th is still in progress
        assert summary.present == 10
        assert summary.on_leave == 4
        assert summary.working_days == 14
        assert summary.total_working_days == 15

    def test_records_after_today_are_dropped(self):
        records = [record("2025-06-02", "Present"), record("2025-06-20", "Present")]
        result = reconciler_with(records).reconcile(employee_stub(), 6, 2025)

        assert result.summary.present == 1
        assert result.record_ids == ["rec-2025-06-02-Present"]

    def test_no_records_is_not_synthetic(self):
        result = reconciler_with().reconcile(employee_stub(), 6, 2025)

        assert result.kind == ReconciliationKind.ACTUAL
        assert result.summary.on_leave == 14


class TestGenerationReconciliation:

    def test_unaccounted_days_are_absent(self):
        records = [record(f"2025-04-{d:02d}", "Present") for d in range(1, 21)]
        summary = reconciler_with(records).reconcile_for_generation(employee_stub(), 4, 2025).summary

        assert summary.present == 20
        assert summary.absent == 10
        assert summary.on_leave == 0
        assert summary.working_days == 30
        assert summary.total_working_days == 30

    def test_pre_joining(self):
        result = reconciler_with().reconcile_for_generation(employee_stub(date(2025, 5, 1)), 4, 2025)
        assert not result.is_applicable


class TestHelpers:

    def test_synthetic_split(self):
        summary = synthetic_summary(30)
        assert (summary.present, summary.absent, summary.late, summary.on_leave) == (24, 3, 1, 2)
        assert summary.working_days == 30

    def test_overtime_hours_and_mean_rate(self):
        totals = tally_overtime([
            record("2025-04-01", overtime_hours=2.0, overtime_rate=2.0),
            record("2025-04-02", overtime_hours=3.0),
            record("2025-04-03"),
        ])
        assert totals.hours == Decimal("5.0")
        assert totals.rate == Decimal("1.75")

    def test_overtime_defaults(self):
        totals = tally_overtime([])
        assert totals.hours == 0
        assert totals.rate == Decimal("1.5")

    def test_latest_per_day_sorted(self):
        kept = latest_per_day([record("2025-04-03"), record("2025-04-01")])
        assert [r.date for r in kept] == ["2025-04-01", "2025-04-03"]
