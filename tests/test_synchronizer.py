"""
Factory Payroll System - Payroll Synchronizer Tests

Runs against a real SQLite session with the clock pinned to 15 June 2025.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from app.attendance.models import AttendanceRecord, AttendanceStatus
from app.core.config import settings
from app.core.exceptions import ResourceNotFoundError
from app.payrolls.models import PaymentStatus, Payroll
from app.payrolls.reconciliation import ReconciliationKind, ReconciliationResult
from app.payrolls.periods import PayrollPeriod
from app.payrolls.synchronizer import PayrollSynchronizer, SyncState, resolve_sync_state, sync_many
from tests.conftest import add_attendance, add_month_of_attendance, create_employee

APRIL_STATUSES = (
    [AttendanceStatus.PRESENT] * 20
    + [AttendanceStatus.ABSENT] * 2
    + [AttendanceStatus.LATE]
)


@pytest.fixture
def synchronizer(db, clock):
    return PayrollSynchronizer(db, clock)


def payroll_count(db):
    return db.query(Payroll).count()


class TestSyncStates:

    def test_state_resolution_order(self):
        period = PayrollPeriod.of(8, 2025)
        future = ReconciliationResult(kind=ReconciliationKind.FUTURE, period=period)
        edited = Payroll(manually_edited=True, payment_status=PaymentStatus.PAID)
        paid = Payroll(manually_edited=False, payment_status=PaymentStatus.PAID)

        assert resolve_sync_state(ReconciliationResult(ReconciliationKind.PRE_JOINING, period), edited) \
            == SyncState.NOT_APPLICABLE
        assert resolve_sync_state(future, edited) == SyncState.MANUALLY_EDITED
        assert resolve_sync_state(future, paid) == SyncState.FUTURE
        assert resolve_sync_state(ReconciliationResult(ReconciliationKind.ACTUAL, period), paid) == SyncState.PAID
        assert resolve_sync_state(ReconciliationResult(ReconciliationKind.ACTUAL, period), None) == SyncState.DEFAULT


class TestSync:

    def test_pre_joining_creates_nothing(self, db, synchronizer):
        employee = create_employee(db, joining_date=date(2025, 7, 1))

        assert synchronizer.sync(employee.id, 6, 2025) is None
        assert synchronizer.sync(employee.id, 5, 2025) is None
        assert payroll_count(db) == 0

    def test_joining_month_is_applicable(self, db, synchronizer):
        employee = create_employee(db, joining_date=date(2025, 7, 20))
        assert synchronizer.sync(employee.id, 7, 2025) is not None

    def test_future_month_is_full_pay(self, db, synchronizer):
        employee = create_employee(db)
        payroll = synchronizer.sync(employee.id, 8, 2025)

        assert payroll.present_days == 31
        assert payroll.basic_salary == payroll.original_salary == Decimal("15300.00")
        assert payroll.payment_status == PaymentStatus.PENDING
        assert payroll.payment_method == "Bank Transfer"

    def test_reconciled_month(self, db, synchronizer):
        employee = create_employee(db)
        add_month_of_attendance(db, employee, 2025, 4, APRIL_STATUSES)

        payroll = synchronizer.sync(employee.id, 4, 2025)

        assert payroll.attendance_summary == {
            "present": 20, "absent": 2, "late": 1, "on_leave": 7, "working_days": 30, "total_working_days": 30,
        }
        assert payroll.basic_salary == Decimal("10710.00")
        assert payroll.is_auto_generated is False
        assert payroll.employee_details["department"] == "Assembly"
        assert payroll.net_salary == payroll.gross_salary - payroll.total_deductions

    def test_links_attendance_to_payroll(self, db, synchronizer):
        employee = create_employee(db)
        add_month_of_attendance(db, employee, 2025, 4, APRIL_STATUSES)

        payroll = synchronizer.sync(employee.id, 4, 2025)
        linked = db.query(AttendanceRecord).filter(AttendanceRecord.payroll_id == payroll.id).count()

        assert linked == 23

    def test_synthetic_history_is_flagged(self, db, synchronizer):
        employee = create_employee(db)
        payroll = synchronizer.sync(employee.id, 3, 2025)

        assert payroll.is_auto_generated is True
        assert payroll.working_days == 31

    def test_idempotent(self, db, synchronizer):
        employee = create_employee(db)
        add_month_of_attendance(db, employee, 2025, 4, APRIL_STATUSES)

        first = synchronizer.sync(employee.id, 4, 2025)
        snapshot = (first.gross_salary, first.net_salary, dict(first.attendance_summary))
        second = synchronizer.sync(employee.id, 4, 2025)

        assert (second.gross_salary, second.net_salary, second.attendance_summary) == snapshot
        assert payroll_count(db) == 1

    def test_attendance_change_flows_through(self, db, synchronizer):
        employee = create_employee(db)
        add_month_of_attendance(db, employee, 2025, 4, APRIL_STATUSES)
        before = synchronizer.sync(employee.id, 4, 2025).net_salary

        add_attendance(db, employee, "2025-04-24", AttendanceStatus.PRESENT)
        after = synchronizer.sync(employee.id, 4, 2025)

        assert after.present_days == 21
        assert after.net_salary > before

    def test_manual_edit_lock(self, db, synchronizer):
        employee = create_employee(db)
        add_month_of_attendance(db, employee, 2025, 4, APRIL_STATUSES)
        payroll = synchronizer.sync(employee.id, 4, 2025)

        payroll.manually_edited = True
        payroll.net_salary = Decimal("9999.00")
        db.commit()
        locked = (payroll.gross_salary, payroll.net_salary, payroll.allowances, payroll.deductions)

        add_attendance(db, employee, "2025-04-24", AttendanceStatus.PRESENT)
        payroll = synchronizer.sync(employee.id, 4, 2025)

        assert (payroll.gross_salary, payroll.net_salary, payroll.allowances, payroll.deductions) == locked
        assert payroll.present_days == 21
        assert payroll.manually_edited is True

    def test_paid_payroll_keeps_payment_fields(self, db, synchronizer):
        employee = create_employee(db)
        add_month_of_attendance(db, employee, 2025, 4, APRIL_STATUSES)
        payroll = synchronizer.sync(employee.id, 4, 2025)

        payroll.payment_status = PaymentStatus.PAID
        payroll.payment_date = date(2025, 5, 2)
        payroll.remarks = "April wages"
        db.commit()

        payroll = synchronizer.sync(employee.id, 4, 2025)

        assert payroll.payment_status == PaymentStatus.PAID
        assert payroll.payment_date == date(2025, 5, 2)
        assert payroll.remarks == "April wages"

    def test_carried_components_survive_sync(self, db, synchronizer):
        employee = create_employee(db)
        add_month_of_attendance(db, employee, 2025, 4, APRIL_STATUSES)
        payroll = synchronizer.sync(employee.id, 4, 2025)

        payroll.bonus = Decimal("750.00")
        payroll.deduction_loan_repayment = Decimal("300.00")
        db.commit()

        payroll = synchronizer.sync(employee.id, 4, 2025)

        assert payroll.bonus == Decimal("750.00")
        assert payroll.deduction_loan_repayment == Decimal("300.00")
        assert payroll.net_salary == payroll.gross_salary - payroll.total_deductions

    def test_default_base_salary(self, db, synchronizer):
        employee = create_employee(db, base_salary=None)
        payroll = synchronizer.sync(employee.id, 8, 2025)

        assert payroll.original_salary == Decimal("15300.00")

    def test_unknown_employee(self, synchronizer):
        with pytest.raises(ResourceNotFoundError):
            synchronizer.sync(uuid4(), 4, 2025)


class TestSyncMany:

    def test_failures_are_collected(self, db, session_factory, clock):
        employee = create_employee(db)
        missing = uuid4()

        results = sync_many(session_factory, clock, [employee.id, missing], 4, 2025)

        assert [result.success for result in results] == [True, False]
        assert results[1].status_code == 404
        assert payroll_count(db) == 1

    def test_pre_joining_is_not_a_failure(self, db, session_factory, clock):
        employee = create_employee(db, joining_date=date(2025, 9, 1))

        results = sync_many(session_factory, clock, [employee.id], 4, 2025)

        assert results[0].success
        assert results[0].value is None

    def test_parallel_workers_use_separate_sessions(self, db, session_factory, clock, monkeypatch):
        monkeypatch.setattr(settings, "payroll_batch_workers", 3)
        employees = [create_employee(db, email=f"line{n}@factory.test") for n in range(3)]
        for employee in employees:
            add_month_of_attendance(db, employee, 2025, 5, [AttendanceStatus.PRESENT] * 20)

        results = sync_many(session_factory, clock, [e.id for e in employees], 5, 2025)

        assert all(result.success for result in results)
        db.expire_all()
        stored = db.query(Payroll).filter(Payroll.month == 5, Payroll.year == 2025).all()
        assert sorted(p.employee_id for p in stored) == sorted(e.id for e in employees)
