"""
Attendance reconciliation.

Turns an employee's raw daily attendance records for a month into the
summary the salary calculator works from. Policies are evaluated in order:

1. pre-joining: the period precedes the employee's joining month, no payroll applies
2. future: nothing has been recorded yet, perfect attendance is assumed
3. current or past month: records are tallied and unrecorded elapsed days are
   counted as leave; a past month with no records at all gets a synthetic
   summary flagged as auto-generated
"""

import enum
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

from app.attendance.models import AttendanceStatus
from app.core.clock import Clock
from app.core.config import settings
from app.payrolls.periods import PayrollPeriod, joined_by

logger = logging.getLogger(__name__)

SYNTHETIC_PRESENT_SHARE = Decimal("0.80")
SYNTHETIC_ABSENT_SHARE = Decimal("0.10")
SYNTHETIC_LATE_SHARE = Decimal("0.05")


class ReconciliationKind(str, enum.Enum):
    PRE_JOINING = "pre_joining"
    FUTURE = "future"
    ACTUAL = "actual"
    SYNTHETIC = "synthetic"


@dataclass
class AttendanceSummary:
    present: int = 0
    absent: int = 0
    late: int = 0
    on_leave: int = 0
    working_days: int = 0
    total_working_days: int = 0

    @property
    def paid_days(self) -> int:
        # Late days are paid, just flagged
        return self.present + self.late

    @classmethod
    def perfect(cls, days: int) -> "AttendanceSummary":
        return cls(present=days, working_days=days, total_working_days=days)

    @classmethod
    def from_counts(cls, present: int, absent: int, late: int, on_leave: int, total_working_days: int) -> "AttendanceSummary":
        return cls(
            present=present,
            absent=absent,
            late=late,
            on_leave=on_leave,
            working_days=present + absent + late + on_leave,
            total_working_days=total_working_days,
        )

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "on_leave": self.on_leave,
            "working_days": self.working_days,
            "total_working_days": self.total_working_days,
        }


@dataclass
class OvertimeTotals:
    hours: Decimal = Decimal("0")
    rate: Decimal = Decimal("1.5")


@dataclass
class ReconciliationResult:
    kind: ReconciliationKind
    period: PayrollPeriod
    summary: Optional[AttendanceSummary] = None
    overtime: OvertimeTotals = field(default_factory=OvertimeTotals)
    record_ids: List = field(default_factory=list)

    @property
    def is_applicable(self) -> bool:
        return self.kind != ReconciliationKind.PRE_JOINING

    @property
    def is_synthetic(self) -> bool:
        return self.kind == ReconciliationKind.SYNTHETIC


def _default_overtime_rate() -> Decimal:
    return Decimal(str(settings.default_overtime_rate))


def latest_per_day(records: Iterable) -> list:
    """Keep one record per calendar date; later records replace earlier ones."""
    by_date = {}
    for record in records:
        by_date[record.date] = record
    return [by_date[day] for day in sorted(by_date)]


def tally_overtime(records: Iterable) -> OvertimeTotals:
    """Sum overtime hours; the rate is the plain mean over records that have overtime."""
    default_rate = _default_overtime_rate()
    hours = Decimal("0")
    rates = []
    for record in records:
        record_hours = Decimal(str(record.overtime_hours or 0))
        if record_hours > 0:
            hours += record_hours
            rates.append(Decimal(str(record.overtime_rate)) if record.overtime_rate else default_rate)

    rate = sum(rates, Decimal("0")) / len(rates) if rates else default_rate
    return OvertimeTotals(hours=hours, rate=rate)


def synthetic_summary(days_in_month: int) -> AttendanceSummary:
    """Placeholder attendance for a past month with no records: 80/10/5, remainder as leave."""
    days = Decimal(days_in_month)
    present = int(days * SYNTHETIC_PRESENT_SHARE)
    absent = int(days * SYNTHETIC_ABSENT_SHARE)
    late = int(days * SYNTHETIC_LATE_SHARE)
    on_leave = days_in_month - present - absent - late
    return AttendanceSummary.from_counts(present, absent, late, on_leave, days_in_month)


def _count_statuses(records: Iterable) -> dict:
    counts = {status: 0 for status in AttendanceStatus}
    for record in records:
        counts[AttendanceStatus(record.status)] += 1
    return counts


class AttendanceReconciler:
    """Derives attendance summaries through the attendance reader interface."""

    def __init__(self, attendance_reader, clock: Clock):
        self.attendance_reader = attendance_reader
        self.clock = clock

    def _fetch_records(self, employee_id, period: PayrollPeriod) -> list:
        records = self.attendance_reader.find_for_payroll_period(employee_id, period.month, period.year)
        if records:
            logger.debug(f"Found {len(records)} tagged attendance records for {employee_id} in {period}")
            return records

        records = self.attendance_reader.find_in_date_range(employee_id, period.first_day, period.last_day)
        logger.debug(f"Found {len(records)} attendance records by date range for {employee_id} in {period}")
        return records

    def reconcile(self, employee, month: int, year: int) -> ReconciliationResult:
        period = PayrollPeriod.of(month, year)
        today = self.clock.today()

        if not joined_by(employee.joining_date, period):
            logger.info(f"Employee {employee.id} joined {employee.joining_date}, no payroll for {period}")
            return ReconciliationResult(kind=ReconciliationKind.PRE_JOINING, period=period)

        if period.is_future(today):
            return ReconciliationResult(
                kind=ReconciliationKind.FUTURE,
                period=period,
                summary=AttendanceSummary.perfect(period.days_in_month),
                overtime=OvertimeTotals(rate=_default_overtime_rate()),
            )

        is_current = period.is_current(today)
        records = self._fetch_records(employee.id, period)

        in_month = [r for r in records if period.first_day <= r.date <= period.last_day]
        if len(in_month) != len(records):
            logger.warning(
                f"Ignoring {len(records) - len(in_month)} records tagged to {period} but dated outside it "
                f"for employee {employee.id}"
            )
        records = in_month

        if is_current:
            # Data-entry guard: nothing dated after today counts
            cutoff = today.isoformat()
            records = [r for r in records if r.date <= cutoff]

        records = latest_per_day(records)

        if not records and not is_current:
            logger.info(f"No attendance for past month {period}, employee {employee.id}: using synthetic summary")
            return ReconciliationResult(
                kind=ReconciliationKind.SYNTHETIC,
                period=period,
                summary=synthetic_summary(period.days_in_month),
                overtime=OvertimeTotals(rate=_default_overtime_rate()),
            )

        counts = _count_statuses(records)
        recorded_days = {r.date for r in records}
        # Today is still in progress in the current month
        elapsed_days = today.day - 1 if is_current else period.days_in_month
        missing_days = sum(1 for day in range(1, elapsed_days + 1) if period.day(day) not in recorded_days)

        total_working_days = min(period.days_in_month, today.day) if is_current else period.days_in_month
        summary = AttendanceSummary.from_counts(
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            on_leave=counts[AttendanceStatus.ON_LEAVE] + missing_days,
            total_working_days=total_working_days,
        )

        logger.info(
            f"Reconciled {period} for employee {employee.id}: {summary.to_dict()} "
            f"({missing_days} unrecorded days counted as leave)"
        )
        return ReconciliationResult(
            kind=ReconciliationKind.ACTUAL,
            period=period,
            summary=summary,
            overtime=tally_overtime(records),
            record_ids=[r.id for r in records],
        )

    def reconcile_for_generation(self, employee, month: int, year: int) -> ReconciliationResult:
        """First-time generation: every day of the month without a record is booked as absent."""
        period = PayrollPeriod.of(month, year)

        if not joined_by(employee.joining_date, period):
            return ReconciliationResult(kind=ReconciliationKind.PRE_JOINING, period=period)

        records = latest_per_day(
            self.attendance_reader.find_in_date_range(employee.id, period.first_day, period.last_day)
        )
        counts = _count_statuses(records)
        unaccounted = max(0, period.days_in_month - len(records))

        summary = AttendanceSummary.from_counts(
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT] + unaccounted,
            late=counts[AttendanceStatus.LATE],
            on_leave=counts[AttendanceStatus.ON_LEAVE],
            total_working_days=period.days_in_month,
        )
        return ReconciliationResult(
            kind=ReconciliationKind.ACTUAL,
            period=period,
            summary=summary,
            overtime=tally_overtime(records),
            record_ids=[r.id for r in records],
        )
