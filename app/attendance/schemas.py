from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID
from app.attendance.models import AttendanceStatus


class AttendanceRecordCreate(BaseModel):
    employee_id: str
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    status: AttendanceStatus
    overtime_hours: float = Field(0.0, ge=0)
    overtime_rate: Optional[float] = Field(None, gt=0)
    payroll_month: Optional[int] = Field(None, ge=1, le=12)
    payroll_year: Optional[int] = Field(None, ge=2020, le=2100)

    @field_validator("date")
    @classmethod
    def validate_calendar_date(cls, value: str) -> str:
        datetime.strptime(value, "%Y-%m-%d")
        return value


class AttendanceRecordUpdate(BaseModel):
    status: Optional[AttendanceStatus] = None
    overtime_hours: Optional[float] = Field(None, ge=0)
    overtime_rate: Optional[float] = Field(None, gt=0)


class AttendanceRecordResponse(BaseModel):
    id: UUID
    employee_id: UUID
    date: str
    status: AttendanceStatus
    overtime_hours: Optional[float] = 0.0
    overtime_rate: Optional[float] = None
    payroll_month: Optional[int] = None
    payroll_year: Optional[int] = None
    payroll_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
