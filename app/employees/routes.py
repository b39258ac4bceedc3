from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
from app.core.database import get_db
from app.core.dependencies import get_current_admin_user, get_current_staff_user
from app.auth.models import User
from app.employees.schemas import EmployeeCreate, EmployeeUpdate, EmployeeResponse
from app.employees.service import EmployeeService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.post("/", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreate,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    """Create a new employee."""
    return EmployeeService(db).create_employee(employee_data)


@router.get("/", response_model=List[EmployeeResponse])
async def get_employees(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    active_only: bool = True,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    """Get all employees with pagination."""
    return EmployeeService(db).get_all_employees(skip=skip, limit=limit, active_only=active_only)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: str,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    """Get employee by ID."""
    return EmployeeService(db).get_employee_or_404(employee_id)


@router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: str,
    employee_data: EmployeeUpdate,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    """Update employee information."""
    return EmployeeService(db).update_employee(employee_id, employee_data)


@router.delete("/{employee_id}", response_model=EmployeeResponse)
async def deactivate_employee(
    employee_id: str,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    """Deactivate an employee; payroll history is kept."""
    return EmployeeService(db).deactivate_employee(employee_id)
