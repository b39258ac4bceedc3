import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.attendance.models import AttendanceRecord
from app.attendance.schemas import AttendanceRecordCreate, AttendanceRecordUpdate
from app.core.exceptions import ResourceNotFoundError
from app.core.service_base import BaseService
from app.core.validators import validate_date_range, validate_date_string, validate_uuid
from app.employees.service import EmployeeService

logger = logging.getLogger(__name__)


class AttendanceService(BaseService):
    """Daily attendance store.

    The payroll engine treats it as a reader: ``find_for_payroll_period``,
    ``find_in_date_range`` and ``link_to_payroll`` are the only calls it makes.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.employee_service = EmployeeService(db)

    def record_attendance(self, record_data: AttendanceRecordCreate) -> AttendanceRecord:
        """Create or replace the record for an employee's day."""
        employee = self.employee_service.get_employee(record_data.employee_id)
        if not employee:
            raise ResourceNotFoundError("Employee", record_data.employee_id)

        day = validate_date_string(record_data.date)
        record = self.db.query(AttendanceRecord).filter(
            AttendanceRecord.employee_id == employee.id,
            AttendanceRecord.date == record_data.date
        ).first()

        if record is None:
            record = AttendanceRecord(employee_id=employee.id, date=record_data.date)
            self.db.add(record)

        record.status = record_data.status
        record.overtime_hours = record_data.overtime_hours
        record.overtime_rate = record_data.overtime_rate
        record.payroll_month = record_data.payroll_month or day.month
        record.payroll_year = record_data.payroll_year or day.year

        self.safe_commit("Error recording attendance")
        self.db.refresh(record)

        self.log_service_action("record_attendance", "AttendanceRecord", str(record.id),
                                {"employee_id": str(employee.id), "date": record.date, "status": record.status.value})
        return record

    def update_record(self, record_id: str, record_data: AttendanceRecordUpdate) -> AttendanceRecord:
        record = self.get_or_404(AttendanceRecord, record_id, "AttendanceRecord")
        for field, value in record_data.model_dump(exclude_unset=True).items():
            setattr(record, field, value)

        self.safe_commit("Error updating attendance")
        self.db.refresh(record)
        return record

    def delete_record(self, record_id: str) -> None:
        record = self.get_or_404(AttendanceRecord, record_id, "AttendanceRecord")
        self.db.delete(record)
        self.safe_commit("Error deleting attendance")
        self.log_service_action("delete_attendance", "AttendanceRecord", str(record_id))

    def get_records(
        self,
        employee_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[AttendanceRecord]:
        """Get attendance records, optionally for one employee and a date range."""
        validate_date_range(
            validate_date_string(start_date, "start_date") if start_date else None,
            validate_date_string(end_date, "end_date") if end_date else None,
        )

        query = self.db.query(AttendanceRecord)
        if employee_id:
            query = query.filter(AttendanceRecord.employee_id == validate_uuid(employee_id, "employee_id"))
        if start_date:
            query = query.filter(AttendanceRecord.date >= start_date)
        if end_date:
            query = query.filter(AttendanceRecord.date <= end_date)

        query = query.order_by(AttendanceRecord.date.desc())
        return self.paginate_query(query, skip, limit).all()

    # Reader interface used by payroll reconciliation

    def find_for_payroll_period(self, employee_id, month: int, year: int) -> List[AttendanceRecord]:
        """Records explicitly tagged to a payroll period."""
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.payroll_month == month,
            AttendanceRecord.payroll_year == year
        ).order_by(AttendanceRecord.date, AttendanceRecord.created_at).all()

    def find_in_date_range(self, employee_id, start_date: str, end_date: str) -> List[AttendanceRecord]:
        """Records whose YYYY-MM-DD date falls within [start_date, end_date]."""
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.date >= start_date,
            AttendanceRecord.date <= end_date
        ).order_by(AttendanceRecord.date, AttendanceRecord.created_at).all()

    def link_to_payroll(self, record_ids: Iterable, payroll_id) -> int:
        """Point records at the payroll they were folded into. The caller commits."""
        record_ids = list(record_ids)
        if not record_ids:
            return 0
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.id.in_(record_ids)
        ).update({AttendanceRecord.payroll_id: payroll_id}, synchronize_session=False)

    def unlink_payroll(self, payroll_id) -> int:
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.payroll_id == payroll_id
        ).update({AttendanceRecord.payroll_id: None}, synchronize_session=False)
