from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.database import get_db
from app.core.dependencies import get_current_staff_user
from app.core.cache import payroll_cache
from app.auth.models import User
from app.attendance.schemas import (
    AttendanceRecordCreate,
    AttendanceRecordUpdate,
    AttendanceRecordResponse
)
from app.attendance.service import AttendanceService

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("/", response_model=AttendanceRecordResponse, status_code=status.HTTP_201_CREATED)
async def record_attendance(
    record_data: AttendanceRecordCreate,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    """Record (or replace) an employee's attendance for a day."""
    record = AttendanceService(db).record_attendance(record_data)
    # Cached summaries are derived from attendance
    payroll_cache.invalidate_payroll_cache()
    return record


@router.get("/", response_model=List[AttendanceRecordResponse])
async def get_attendance_records(
    employee_id: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    """Get attendance records for an employee and/or date range."""
    return AttendanceService(db).get_records(
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit
    )


@router.patch("/{record_id}", response_model=AttendanceRecordResponse)
async def update_attendance_record(
    record_id: str,
    record_data: AttendanceRecordUpdate,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    record = AttendanceService(db).update_record(record_id, record_data)
    payroll_cache.invalidate_payroll_cache()
    return record


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance_record(
    record_id: str,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    AttendanceService(db).delete_record(record_id)
    payroll_cache.invalidate_payroll_cache()
