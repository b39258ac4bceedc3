from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, Float, Integer, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base, generate_uuid


class AttendanceStatus(str, enum.Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    ON_LEAVE = "On Leave"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=generate_uuid)
    employee_id = Column(Uuid(as_uuid=True), ForeignKey("employees.id"), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    status = Column(
        Enum(AttendanceStatus, name="attendance_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    overtime_hours = Column(Float, default=0.0)
    overtime_rate = Column(Float, nullable=True)
    payroll_month = Column(Integer, nullable=True)
    payroll_year = Column(Integer, nullable=True)
    payroll_id = Column(Uuid(as_uuid=True), ForeignKey("payrolls.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    employee = relationship("Employee", back_populates="attendance_records")
