"""
Payroll synchronizer.

Keeps the stored payroll for (employee, month, year) consistent with the
employee's current attendance. Which fields a sync may touch is decided once,
by ``resolve_sync_state``:

- NOT_APPLICABLE: the employee had not joined yet; nothing is created or touched
- MANUALLY_EDITED: snapshot and attendance summary refresh, money stays as edited
- FUTURE: full pay over perfect attendance
- PAID: breakdown recomputed, payment fields untouched
- DEFAULT: full recompute from reconciled attendance

Payment fields are only ever written here with their defaults on creation.
"""

import enum
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.attendance.service import AttendanceService
from app.core.batch import BatchItemResult, gather
from app.core.clock import Clock
from app.core.config import settings
from app.core.database import session_scope
from app.core.exceptions import ResourceNotFoundError
from app.core.logging_config import PayrollOperationLogger
from app.core.service_base import BaseService
from app.employees.service import EmployeeService
from app.payrolls.calculator import (
    CarriedComponents,
    HealthInsurancePolicy,
    SalaryBreakdown,
    SalaryCalculator,
    to_decimal,
)
from app.payrolls.models import ALLOWANCE_COLUMNS, DEDUCTION_COLUMNS, PaymentStatus, Payroll
from app.payrolls.periods import PayrollPeriod
from app.payrolls.reconciliation import (
    AttendanceReconciler,
    AttendanceSummary,
    ReconciliationKind,
    ReconciliationResult,
)

logger = logging.getLogger(__name__)


class SyncState(str, enum.Enum):
    NOT_APPLICABLE = "not_applicable"
    MANUALLY_EDITED = "manually_edited"
    FUTURE = "future"
    PAID = "paid"
    DEFAULT = "default"


def resolve_sync_state(reconciliation: ReconciliationResult, payroll: Optional[Payroll]) -> SyncState:
    if not reconciliation.is_applicable:
        return SyncState.NOT_APPLICABLE
    if payroll is not None and payroll.manually_edited:
        return SyncState.MANUALLY_EDITED
    if reconciliation.kind == ReconciliationKind.FUTURE:
        return SyncState.FUTURE
    if payroll is not None and payroll.is_paid:
        return SyncState.PAID
    return SyncState.DEFAULT


def employee_base_salary(employee):
    if employee.base_salary is None:
        return to_decimal(settings.default_base_salary)
    return to_decimal(employee.base_salary)


def employee_snapshot(employee) -> dict:
    """Value copy of the employee stored on the payroll; never a live link."""
    return {
        "name": employee.name,
        "employee_id": employee.employee_code,
        "email": employee.email,
        "department": employee.department,
        "position": employee.position,
        "joining_date": employee.joining_date.isoformat() if employee.joining_date else None,
        "bank_details": {
            "bank_name": employee.bank_name or "",
            "account_number": employee.account_number or "",
            "account_holder_name": employee.account_holder_name or employee.name or "",
            "ifsc_code": employee.ifsc_code or "",
        },
    }


def apply_attendance_summary(payroll: Payroll, summary: AttendanceSummary) -> None:
    payroll.present_days = summary.present
    payroll.absent_days = summary.absent
    payroll.late_days = summary.late
    payroll.leave_days = summary.on_leave
    payroll.working_days = summary.working_days
    payroll.total_working_days = summary.total_working_days


def summary_from_payroll(payroll: Payroll) -> AttendanceSummary:
    return AttendanceSummary(
        present=payroll.present_days or 0,
        absent=payroll.absent_days or 0,
        late=payroll.late_days or 0,
        on_leave=payroll.leave_days or 0,
        working_days=payroll.working_days or 0,
        total_working_days=payroll.total_working_days or 0,
    )


def apply_breakdown(payroll: Payroll, breakdown: SalaryBreakdown) -> None:
    payroll.original_salary = breakdown.original_salary
    payroll.basic_salary = breakdown.basic_salary
    for name, column in ALLOWANCE_COLUMNS.items():
        setattr(payroll, column, breakdown.allowances[name])
    for name, column in DEDUCTION_COLUMNS.items():
        setattr(payroll, column, breakdown.deductions[name])
    payroll.leave_deduction = breakdown.leave_deduction
    payroll.overtime_hours = breakdown.overtime_hours
    payroll.overtime_rate = breakdown.overtime_rate
    payroll.overtime_amount = breakdown.overtime_amount
    payroll.bonus = breakdown.bonus
    payroll.gross_salary = breakdown.gross_salary
    payroll.total_deductions = breakdown.total_deductions
    payroll.net_salary = breakdown.net_salary


def new_payroll(employee, month: int, year: int, created_by=None) -> Payroll:
    return Payroll(
        employee_id=employee.id,
        month=month,
        year=year,
        payment_status=PaymentStatus.PENDING,
        payment_method=settings.default_payment_method,
        manually_edited=False,
        is_auto_generated=False,
        created_by=created_by,
    )


class PayrollSynchronizer(BaseService):
    def __init__(self, db: Session, clock: Clock):
        super().__init__(db)
        self.clock = clock
        self.employee_reader = EmployeeService(db)
        self.attendance_reader = AttendanceService(db)
        self.reconciler = AttendanceReconciler(self.attendance_reader, clock)

    def find_payroll(self, employee_id, month: int, year: int) -> Optional[Payroll]:
        return self.db.query(Payroll).filter(
            Payroll.employee_id == employee_id,
            Payroll.month == month,
            Payroll.year == year
        ).first()

    def sync(self, employee_id, month: int, year: int, commit: bool = True) -> Optional[Payroll]:
        employee = self.employee_reader.get_employee(employee_id)
        if not employee:
            raise ResourceNotFoundError("Employee", str(employee_id))
        return self.sync_employee(employee, month, year, commit=commit)

    def sync_employee(self, employee, month: int, year: int, commit: bool = True) -> Optional[Payroll]:
        period = PayrollPeriod.of(month, year)

        with PayrollOperationLogger("sync", f"employee {employee.id} {period}", logger) as op:
            reconciliation = self.reconciler.reconcile(employee, month, year)
            payroll = self.find_payroll(employee.id, month, year)
            state = resolve_sync_state(reconciliation, payroll)
            op.add_detail("state", state.value)

            if state == SyncState.NOT_APPLICABLE:
                return None

            if payroll is None:
                payroll = new_payroll(employee, month, year)
                self.db.add(payroll)
                carried = CarriedComponents()
                op.add_detail("created", True)
            else:
                carried = CarriedComponents.from_payroll(payroll)

            payroll.employee_details = employee_snapshot(employee)
            apply_attendance_summary(payroll, reconciliation.summary)

            if state != SyncState.MANUALLY_EDITED:
                policy = (
                    HealthInsurancePolicy.FIXED_PRORATED
                    if reconciliation.is_synthetic
                    else HealthInsurancePolicy.CAPPED_PERCENTAGE
                )
                breakdown = SalaryCalculator(policy).compute(
                    employee_base_salary(employee),
                    reconciliation.summary,
                    month,
                    year,
                    is_current_month=period.is_current(self.clock.today()),
                    overtime=reconciliation.overtime,
                    carried=carried,
                )
                apply_breakdown(payroll, breakdown)
                payroll.is_auto_generated = reconciliation.is_synthetic
                payroll.manually_edited = False
                op.add_detail("net_salary", breakdown.net_salary)

            payroll.last_calculated = self.clock.now()

            self.db.flush()
            if reconciliation.record_ids:
                self.attendance_reader.link_to_payroll(reconciliation.record_ids, payroll.id)

            if commit:
                self.safe_commit("Error saving synchronized payroll")
                self.db.refresh(payroll)

        return payroll


def sync_many(
    session_factory,
    clock: Clock,
    employee_ids: Iterable,
    month: int,
    year: int,
) -> List[BatchItemResult]:
    """Sync a period for many employees concurrently, one session per employee."""

    def sync_one(employee_id):
        with session_scope(session_factory) as db:
            payroll = PayrollSynchronizer(db, clock).sync(employee_id, month, year)
            return payroll.id if payroll is not None else None

    results = gather(sync_one, employee_ids)
    for result in results:
        if not result.success:
            logger.error(f"Payroll sync failed for employee {result.key} ({month}/{year}): {result.error}")
    return results
