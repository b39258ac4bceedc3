import csv
import io
import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.auth.models import User
from app.core.batch import BatchItemResult, gather
from app.core.cache import PayrollCacheService, get_payroll_cache
from app.core.clock import Clock, system_clock
from app.core.database import SessionLocal, session_scope
from app.core.exceptions import (
    InsufficientPermissionsError,
    PayrollNotApplicableError,
    PayrollStateConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from app.core.logging_config import PayrollOperationLogger
from app.core.service_base import BaseService
from app.core.validators import (
    validate_choice,
    validate_date_range,
    validate_date_string,
    validate_financial_year,
    validate_month_year,
    validate_uuid,
)
from app.employees.models import Employee
from app.employees.service import EmployeeService
from app.payrolls import tax as tax_engine
from app.payrolls.analytics import PayrollSnapshot, aggregate
from app.payrolls.calculator import (
    CarriedComponents,
    HealthInsurancePolicy,
    SalaryCalculator,
    compute_totals,
    money,
    to_decimal,
)
from app.payrolls.models import (
    ALLOWANCE_COLUMNS,
    BONUS_COLUMNS,
    DEDUCTION_COLUMNS,
    BonusType,
    PaymentStatus,
    Payroll,
)
from app.payrolls.periods import PayrollPeriod, joined_by
from app.payrolls.reconciliation import AttendanceReconciler, OvertimeTotals
from app.payrolls.schemas import (
    BatchPaymentStatusUpdate,
    BonusRequest,
    BulkBonusRequest,
    BulkGenerateRequest,
    GeneratePayrollRequest,
    PaymentStatusUpdate,
    PayrollResponse,
    PayrollUpdate,
    TaxCalculationRequest,
)
from app.payrolls.synchronizer import (
    PayrollSynchronizer,
    apply_attendance_summary,
    apply_breakdown,
    employee_base_salary,
    employee_snapshot,
    new_payroll,
    summary_from_payroll,
    sync_many,
)

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("summary", "detailed", "excel")

CSV_HEADER = [
    "Employee ID", "Employee Name", "Department", "Position", "Month", "Year",
    "Present", "Absent", "Late", "On Leave", "Original Salary", "Basic Salary",
    "Allowances", "Overtime", "Bonus", "Gross Salary", "Total Deductions",
    "Net Salary", "Payment Status", "Payment Date",
]


def serialize_payroll(payroll: Payroll) -> dict:
    return PayrollResponse.model_validate(payroll).model_dump()


def recompute_totals(payroll: Payroll) -> None:
    totals = compute_totals(
        payroll.basic_salary,
        payroll.allowances,
        payroll.deductions,
        payroll.leave_deduction,
        payroll.overtime_amount,
        payroll.bonus,
    )
    payroll.gross_salary = totals.gross_salary
    payroll.total_deductions = totals.total_deductions
    payroll.net_salary = totals.net_salary


def recompute_bonus(payroll: Payroll) -> None:
    payroll.bonus = sum((money(getattr(payroll, column)) for column in BONUS_COLUMNS.values()), to_decimal(0))
    recompute_totals(payroll)


class PayrollService(BaseService):
    """Payroll operations behind the /payrolls routes.

    Reads sync the stored payrolls with attendance before returning them;
    bulk operations fan out through ``gather`` with one session per item.
    """

    def __init__(
        self,
        db: Session,
        clock: Clock = None,
        session_factory=None,
        cache: PayrollCacheService = None,
    ):
        super().__init__(db)
        self.clock = clock or system_clock
        self.session_factory = session_factory or SessionLocal
        self.cache = cache or get_payroll_cache()
        self.employee_service = EmployeeService(db)
        self.synchronizer = PayrollSynchronizer(db, self.clock)

    def _worker(self, db: Session) -> "PayrollService":
        return PayrollService(db, self.clock, self.session_factory, self.cache)

    def _current_period(self, month=None, year=None) -> PayrollPeriod:
        today = self.clock.today()
        month, year = validate_month_year(
            today.month if month is None else month,
            today.year if year is None else year,
        )
        return PayrollPeriod.of(month, year)

    def _employee_for_user(self, user: User) -> Optional[Employee]:
        return self.employee_service.get_employee_by_email(user.email)

    def _ensure_can_access(self, payroll: Payroll, user: User) -> None:
        if user.is_staff:
            return
        employee = self._employee_for_user(user)
        if employee is None or employee.id != payroll.employee_id:
            raise InsufficientPermissionsError("You can only access your own payroll records")

    def _period_payrolls(self, period: PayrollPeriod):
        return self.db.query(Payroll).filter(Payroll.month == period.month, Payroll.year == period.year)

    def get_payroll_or_404(self, payroll_id) -> Payroll:
        return self.get_or_404(Payroll, payroll_id, "Payroll")

    # Reads

    def list_payrolls(
        self,
        user: User,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_id: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> List[Payroll]:
        """Payrolls of a period, synced with attendance first; users only see their own."""
        period = self._current_period(month, year)
        if payment_status:
            validate_choice(payment_status, PaymentStatus.ALL, "payment_status")

        if user.is_staff:
            employees = [
                employee for employee in self.employee_service.get_all_employees(active_only=True)
                if joined_by(employee.joining_date, period)
            ]
            sync_many(self.session_factory, self.clock, [e.id for e in employees], period.month, period.year)
            self.db.expire_all()
            query = self._period_payrolls(period)
            if employee_id:
                query = query.filter(Payroll.employee_id == validate_uuid(employee_id, "employee_id"))
        else:
            employee = self._employee_for_user(user)
            if employee is None:
                logger.info(f"No employee record matches user {user.email}")
                return []
            self.synchronizer.sync_employee(employee, period.month, period.year)
            query = self._period_payrolls(period).filter(Payroll.employee_id == employee.id)

        if payment_status:
            query = query.filter(Payroll.payment_status == payment_status)

        return query.order_by(Payroll.created_at).all()

    def get_payroll(self, payroll_id: str, user: User) -> Payroll:
        payroll = self.get_payroll_or_404(payroll_id)
        self._ensure_can_access(payroll, user)

        self.synchronizer.sync(payroll.employee_id, payroll.month, payroll.year)
        self.db.refresh(payroll)
        return payroll

    # Generation

    def _build_generated_payroll(
        self,
        employee: Employee,
        period: PayrollPeriod,
        created_by=None,
        carried: Optional[CarriedComponents] = None,
    ) -> Payroll:
        reconciler = AttendanceReconciler(self.synchronizer.attendance_reader, self.clock)
        today = self.clock.today()

        if period.is_future(today):
            reconciliation = reconciler.reconcile(employee, period.month, period.year)
            policy = HealthInsurancePolicy.CAPPED_PERCENTAGE
        else:
            reconciliation = reconciler.reconcile_for_generation(employee, period.month, period.year)
            policy = HealthInsurancePolicy.FIXED_PRORATED

        if not reconciliation.is_applicable:
            raise PayrollNotApplicableError(str(employee.id), str(period))

        breakdown = SalaryCalculator(policy).compute(
            employee_base_salary(employee),
            reconciliation.summary,
            period.month,
            period.year,
            is_current_month=period.is_current(today),
            overtime=reconciliation.overtime,
            carried=carried,
        )

        payroll = new_payroll(employee, period.month, period.year, created_by=created_by)
        payroll.employee_details = employee_snapshot(employee)
        apply_attendance_summary(payroll, reconciliation.summary)
        apply_breakdown(payroll, breakdown)
        payroll.last_calculated = self.clock.now()

        self.db.add(payroll)
        self.db.flush()
        if reconciliation.record_ids:
            self.synchronizer.attendance_reader.link_to_payroll(reconciliation.record_ids, payroll.id)
        return payroll

    def _generate_for_employee(self, employee_id, period: PayrollPeriod, created_by=None, estimate_tax=False) -> Payroll:
        employee = self.employee_service.get_employee_or_404(employee_id)

        if self.synchronizer.find_payroll(employee.id, period.month, period.year):
            raise PayrollStateConflictError(
                f"Payroll already exists for this employee for {period}",
                error_data={"employee_id": str(employee.id)}
            )

        carried = None
        if estimate_tax:
            carried = CarriedComponents(
                income_tax=tax_engine.estimate_monthly_income_tax(employee_base_salary(employee))
            )

        with PayrollOperationLogger("generate", f"employee {employee.id} {period}", logger) as op:
            payroll = self._build_generated_payroll(employee, period, created_by, carried)
            self.safe_commit("Error generating payroll")
            self.db.refresh(payroll)
            op.add_detail("net_salary", payroll.net_salary)

        self.log_service_action("generate_payroll", "Payroll", str(payroll.id),
                                {"employee_id": str(employee.id), "period": str(period)})
        return payroll

    def generate_payroll(self, request: GeneratePayrollRequest, user: User) -> Payroll:
        month, year = validate_month_year(request.month, request.year)
        validate_uuid(request.employee_id, "employee_id")

        payroll = self._generate_for_employee(request.employee_id, PayrollPeriod.of(month, year), created_by=user.id)
        self.cache.invalidate_payroll_cache()
        return payroll

    def generate_bulk(self, request: BulkGenerateRequest, user: User) -> Dict:
        """Generate payrolls for every joined employee who lacks one for the period."""
        month, year = validate_month_year(request.month, request.year)
        period = PayrollPeriod.of(month, year)

        employees = self.employee_service.get_all_employees(active_only=True)
        if not employees:
            raise ResourceNotFoundError("Employee")

        existing = {row.employee_id for row in self._period_payrolls(period).with_entities(Payroll.employee_id)}
        candidates = [
            employee for employee in employees
            if employee.id not in existing and joined_by(employee.joining_date, period)
        ]
        if not candidates:
            raise PayrollStateConflictError(f"All employees already have payrolls for {period}")

        created_by = user.id

        def generate_one(employee_id):
            with session_scope(self.session_factory) as db:
                payroll = self._worker(db)._generate_for_employee(employee_id, period, created_by, estimate_tax=True)
                return serialize_payroll(payroll)

        results = gather(generate_one, [employee.id for employee in candidates])
        self.cache.invalidate_payroll_cache()

        processed = [result.value for result in results if result.success]
        for result in results:
            if result.success:
                result.data["payroll_id"] = str(result.value["id"])

        logger.info(f"Bulk generation for {period}: {len(processed)} created, "
                    f"{len(results) - len(processed)} failed, {len(existing)} skipped")
        return {
            "results": [result.to_dict("employee_id") for result in results],
            "processed": len(processed),
            "skipped": len(existing),
            "failed": len(results) - len(processed),
            "payrolls": processed,
        }

    # Payment status

    def _apply_payment(
        self,
        payroll: Payroll,
        payment_status: str,
        payment_method: Optional[str] = None,
        payment_date: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> None:
        previous_status = payroll.payment_status
        payroll.payment_status = payment_status
        if payment_method:
            payroll.payment_method = payment_method
        if remarks:
            payroll.remarks = remarks

        if payment_date:
            payroll.payment_date = validate_date_string(payment_date, "payment_date")
        elif payment_status == PaymentStatus.PAID and (previous_status != PaymentStatus.PAID or not payroll.payment_date):
            payroll.payment_date = self.clock.today()

        if payment_status != PaymentStatus.PAID and payment_date == "":
            payroll.payment_date = None

    def update_payment_status(self, payroll_id: str, update: PaymentStatusUpdate) -> Payroll:
        validate_choice(update.payment_status, PaymentStatus.ALL, "payment_status")
        payroll = self.get_payroll_or_404(payroll_id)

        self.synchronizer.sync(payroll.employee_id, payroll.month, payroll.year)
        self.db.refresh(payroll)

        self._apply_payment(payroll, update.payment_status, update.payment_method, update.payment_date, update.remarks)
        self.safe_commit("Error updating payment status")
        self.db.refresh(payroll)
        self.cache.invalidate_payroll_cache()

        self.log_service_action("update_payment_status", "Payroll", str(payroll.id),
                                {"payment_status": payroll.payment_status})
        return payroll

    def batch_update_payment_status(self, update: BatchPaymentStatusUpdate) -> List[BatchItemResult]:
        validate_choice(update.payment_status, PaymentStatus.ALL, "payment_status")

        def update_one(payroll_id):
            with session_scope(self.session_factory) as db:
                worker = self._worker(db)
                payroll = worker.get_payroll_or_404(payroll_id)
                worker._apply_payment(payroll, update.payment_status, update.payment_method,
                                      update.payment_date, update.remarks)
                worker.safe_commit("Error updating payment status")
                return str(payroll.id)

        results = gather(update_one, update.payroll_ids)
        self.cache.invalidate_payroll_cache()
        return results

    # Edits

    def update_payroll(self, payroll_id: str, update: PayrollUpdate, user: User) -> Payroll:
        """Manual edit; the payroll is locked against automatic recalculation afterwards."""
        payroll = self.get_payroll_or_404(payroll_id)
        self._ensure_can_access(payroll, user)

        if update.payment_status is not None:
            validate_choice(update.payment_status, PaymentStatus.ALL, "payment_status")
            if not user.is_staff and update.payment_status != payroll.payment_status:
                raise InsufficientPermissionsError("You cannot change payment status")

        if update.basic_salary is not None:
            payroll.basic_salary = money(update.basic_salary)

        if update.allowances is not None:
            for name, value in update.allowances.model_dump(exclude_none=True).items():
                setattr(payroll, ALLOWANCE_COLUMNS[name], money(value))

        if update.deductions is not None:
            for name, value in update.deductions.model_dump(exclude_none=True).items():
                setattr(payroll, DEDUCTION_COLUMNS[name], money(value))

        if update.overtime is not None:
            overtime = update.overtime
            if overtime.hours is not None:
                payroll.overtime_hours = money(overtime.hours)
            if overtime.rate is not None:
                payroll.overtime_rate = money(overtime.rate)
            if overtime.amount is not None:
                payroll.overtime_amount = money(overtime.amount)
            else:
                payroll.overtime_amount = money(to_decimal(payroll.overtime_hours) * to_decimal(payroll.overtime_rate))

        if update.bonus is not None:
            payroll.bonus = money(update.bonus)
        if update.leave_deduction is not None:
            payroll.leave_deduction = money(update.leave_deduction)

        if update.payment_status is not None:
            payroll.payment_status = update.payment_status
        if update.payment_method:
            payroll.payment_method = update.payment_method
        if update.payment_date:
            payroll.payment_date = validate_date_string(update.payment_date, "payment_date")
        if update.remarks is not None:
            payroll.remarks = update.remarks
        if payroll.payment_status != PaymentStatus.PAID and update.payment_date == "":
            payroll.payment_date = None

        payroll.manually_edited = True
        recompute_totals(payroll)

        self.safe_commit("Error updating payroll")
        self.db.refresh(payroll)
        self.cache.invalidate_payroll_cache()

        self.log_service_action("update_payroll", "Payroll", str(payroll.id), {"user_id": str(user.id)})
        return payroll

    def recalculate_payroll(self, payroll_id: str) -> Payroll:
        """Recompute money from the stored attendance summary, keeping carried components."""
        payroll = self.get_payroll_or_404(payroll_id)
        if payroll.is_paid:
            raise PayrollStateConflictError("Cannot recalculate a paid payroll", str(payroll.id))

        employee = self.employee_service.get_employee_or_404(payroll.employee_id)
        period = PayrollPeriod.of(payroll.month, payroll.year)
        original_salary = to_decimal(payroll.original_salary)
        if original_salary <= 0:
            original_salary = employee_base_salary(employee)

        with PayrollOperationLogger("recalculate", f"payroll {payroll.id}", logger) as op:
            breakdown = SalaryCalculator(HealthInsurancePolicy.FIXED_PRORATED).compute(
                original_salary,
                summary_from_payroll(payroll),
                payroll.month,
                payroll.year,
                is_current_month=period.is_current(self.clock.today()),
                overtime=OvertimeTotals(
                    hours=to_decimal(payroll.overtime_hours),
                    rate=to_decimal(payroll.overtime_rate),
                ),
                carried=CarriedComponents.from_payroll(payroll),
            )
            apply_breakdown(payroll, breakdown)
            payroll.last_calculated = self.clock.now()
            op.add_detail("net_salary", breakdown.net_salary)

            self.safe_commit("Error recalculating payroll")
            self.db.refresh(payroll)

        self.cache.invalidate_payroll_cache()
        return payroll

    def delete_payroll(self, payroll_id: str) -> None:
        payroll = self.get_payroll_or_404(payroll_id)
        if payroll.is_paid:
            raise PayrollStateConflictError("Cannot delete a payroll that has already been paid", str(payroll.id))

        self.synchronizer.attendance_reader.unlink_payroll(payroll.id)
        self.db.delete(payroll)
        self.safe_commit("Error deleting payroll")
        self.cache.invalidate_payroll_cache()

        self.log_service_action("delete_payroll", "Payroll", str(payroll_id))

    # Bonus

    def manage_bonus(self, request: BonusRequest) -> Payroll:
        payroll = self.get_payroll_or_404(request.payroll_id)

        if request.bonus_details is not None:
            for bonus_type, value in request.bonus_details.model_dump(exclude_none=True).items():
                setattr(payroll, BONUS_COLUMNS[bonus_type], money(value))
        if request.description is not None:
            payroll.bonus_description = request.description

        recompute_bonus(payroll)
        self.safe_commit("Error updating bonus")
        self.db.refresh(payroll)
        self.cache.invalidate_payroll_cache()
        return payroll

    def _add_bonus(self, employee_id, period: PayrollPeriod, bonus_type: str, amount, description: Optional[str]) -> Dict:
        employee = self.employee_service.get_employee(employee_id)
        if not employee:
            raise ResourceNotFoundError("Employee", str(employee_id))

        payroll = self.synchronizer.find_payroll(employee.id, period.month, period.year)
        if payroll is None:
            if period.is_future(self.clock.today()):
                raise PayrollStateConflictError("Cannot add bonus to future month",
                                                error_data={"employee_id": str(employee.id)})
            payroll = self.synchronizer.sync_employee(employee, period.month, period.year)
            if payroll is None:
                raise PayrollNotApplicableError(str(employee.id), str(period))

        setattr(payroll, BONUS_COLUMNS[bonus_type], money(amount))
        if description:
            payroll.bonus_description = (
                f"{payroll.bonus_description}; {description}" if payroll.bonus_description else description
            )
        recompute_bonus(payroll)
        self.safe_commit("Error updating bonus")

        return {
            "name": employee.name,
            "payroll_id": str(payroll.id),
            "bonus_amount": float(money(amount)),
            "total_bonus": float(payroll.bonus),
        }

    def bulk_bonus(self, request: BulkBonusRequest) -> List[BatchItemResult]:
        validate_choice(request.bonus_type, BonusType.ALL, "bonus_type")
        period = self._current_period(request.month, request.year)

        def bonus_one(employee_id):
            with session_scope(self.session_factory) as db:
                return self._worker(db)._add_bonus(
                    employee_id, period, request.bonus_type, request.bonus_amount, request.description
                )

        results = gather(bonus_one, request.employees)
        for result in results:
            if result.success:
                result.data.update(result.value)
        self.cache.invalidate_payroll_cache()
        return results

    # Summaries and reports

    def get_summary(self, month, year) -> Dict:
        """Counts and totals for a period; every employee is synced before counting."""
        if month is None or year is None:
            raise ValidationError("Month and year are required", field="month" if month is None else "year")
        month, year = validate_month_year(month, year)

        cache_key = self.cache.summary_key(month, year)
        cached = self.cache.get_json(cache_key)
        if cached is not None:
            return cached

        employees = self.employee_service.get_all_employees(active_only=True)
        logger.info(f"Syncing payrolls for {len(employees)} employees for {month}/{year}")
        sync_many(self.session_factory, self.clock, [e.id for e in employees], month, year)
        self.db.expire_all()

        payrolls = self._period_payrolls(PayrollPeriod.of(month, year)).all()
        status_counts = {status: 0 for status in PaymentStatus.ALL}
        for payroll in payrolls:
            status_counts[payroll.payment_status] = status_counts.get(payroll.payment_status, 0) + 1

        total_employees = len(employees)
        total_net = sum((to_decimal(p.net_salary) for p in payrolls), to_decimal(0))
        summary = {
            "total_employees": total_employees,
            "processed_count": len(payrolls),
            "pending_count": status_counts[PaymentStatus.PENDING],
            "processing_count": status_counts[PaymentStatus.PROCESSING],
            "paid_count": status_counts[PaymentStatus.PAID],
            "failed_count": status_counts[PaymentStatus.FAILED],
            "not_processed_count": max(0, total_employees - len(payrolls)),
            "total_payroll": float(money(total_net)),
            "total_net_payout": float(money(total_net)),
            "total_gross": float(money(sum((to_decimal(p.gross_salary) for p in payrolls), to_decimal(0)))),
            "total_deductions": float(money(sum((to_decimal(p.total_deductions) for p in payrolls), to_decimal(0)))),
            "month": month,
            "year": year,
            "last_calculated": self.clock.now().isoformat(),
        }

        self.cache.set_json(cache_key, summary)
        return summary

    def get_report(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        departments: Optional[str] = None,
        report_format: str = "summary",
    ) -> Dict:
        """Analytics over every stored payroll between two months, optionally per department."""
        validate_choice(report_format, REPORT_FORMATS, "format")
        today = self.clock.today()
        end = validate_date_string(end_date, "endDate") if end_date else today
        # A missing start opens the range at January of the end date's year
        start = validate_date_string(start_date, "startDate") if start_date else date(end.year, 1, 1)
        validate_date_range(start, end)
        department_filter = [d.strip() for d in departments.split(",") if d.strip()] if departments else []

        cache_key = self.cache.report_key(
            f"{report_format}:{','.join(sorted(department_filter)) or 'all'}",
            start.isoformat(),
            end.isoformat(),
        )
        cached = self.cache.get_json(cache_key)
        if cached is not None:
            return cached

        first = PayrollPeriod.from_date(start)
        last = PayrollPeriod.from_date(end)
        ordinal = Payroll.year * 12 + Payroll.month
        payrolls = self.db.query(Payroll).filter(
            ordinal >= first.year * 12 + first.month,
            ordinal <= last.year * 12 + last.month
        ).order_by(Payroll.year, Payroll.month).all()

        if department_filter:
            payrolls = [
                p for p in payrolls
                if (p.employee_details or {}).get("department") in department_filter
            ]

        logger.info(f"Generating payroll report over {len(payrolls)} payrolls from {first} to {last}")
        analytics = aggregate(PayrollSnapshot.from_payroll(p) for p in payrolls)

        if report_format == "detailed":
            rows = [serialize_payroll(p) for p in payrolls]
        else:
            rows = [
                {
                    "id": str(p.id),
                    "employee_id": str(p.employee_id),
                    "name": (p.employee_details or {}).get("name"),
                    "month": p.month,
                    "year": p.year,
                    "net_salary": float(p.net_salary),
                    "payment_status": p.payment_status,
                }
                for p in payrolls
            ]

        report = {"analytics": analytics, "payrolls": rows}
        self.cache.set_json(cache_key, report)
        return report

    # Tax

    def calculate_tax(self, request: TaxCalculationRequest) -> Dict:
        validate_uuid(request.employee_id, "employeeId")
        validate_financial_year(request.financial_year)
        tax_engine.validate_regime(request.tax_regime)

        employee = self.employee_service.get_employee_or_404(request.employee_id)
        annual_income = (
            to_decimal(request.income) if request.income is not None
            else employee_base_salary(employee) * 12
        )
        deductions = request.deductions.model_dump() if request.deductions else {}

        logger.info(f"Calculating {request.tax_regime} regime tax for employee {employee.id}")
        breakdown = tax_engine.calculate_tax(annual_income, deductions, request.tax_regime)

        result = {
            "employee": {"id": str(employee.id), "name": employee.name, "employee_id": employee.employee_code},
            "financial_year": request.financial_year,
            **breakdown.to_dict(),
        }
        if request.compare:
            comparison = tax_engine.compare_regimes(annual_income, deductions)
            result["comparison"] = {
                "old_total": comparison["old"].total_tax,
                "new_total": comparison["new"].total_tax,
                "recommended": comparison["recommended"],
                "savings": comparison["savings"],
            }
        return result

    # Export

    def export_csv(self, month, year) -> str:
        month, year = validate_month_year(month, year)
        payrolls = self._period_payrolls(PayrollPeriod.of(month, year)).order_by(Payroll.created_at).all()

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(CSV_HEADER)

        for payroll in payrolls:
            details = payroll.employee_details or {}
            writer.writerow([
                details.get("employee_id") or str(payroll.employee_id),
                details.get("name", ""),
                details.get("department") or "",
                details.get("position") or "",
                payroll.month,
                payroll.year,
                payroll.present_days,
                payroll.absent_days,
                payroll.late_days,
                payroll.leave_days,
                float(payroll.original_salary),
                float(payroll.basic_salary),
                float(sum(to_decimal(v) for v in payroll.allowances.values())),
                float(payroll.overtime_amount),
                float(payroll.bonus),
                float(payroll.gross_salary),
                float(payroll.total_deductions),
                float(payroll.net_salary),
                payroll.payment_status,
                payroll.payment_date.isoformat() if payroll.payment_date else "",
            ])

        csv_content = output.getvalue()
        output.close()
        return csv_content
