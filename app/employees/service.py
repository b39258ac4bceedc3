import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.employees.models import Employee
from app.employees.schemas import EmployeeCreate, EmployeeUpdate
from app.core.service_base import BaseService
from app.core.validators import validate_phone, validate_uuid
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


class EmployeeService(BaseService):
    """Employee store; the payroll engine reads employees only through
    ``get_employee``, ``get_all_employees`` and ``get_employee_by_email``."""

    def __init__(self, db: Session):
        super().__init__(db)

    def create_employee(self, employee_data: EmployeeCreate) -> Employee:
        """Create a new employee."""
        self.check_unique_constraint(Employee, "email", employee_data.email, "Employee")
        if employee_data.employee_code:
            self.check_unique_constraint(Employee, "employee_code", employee_data.employee_code, "Employee")

        data = employee_data.model_dump()
        data["phone"] = validate_phone(data.get("phone"))

        db_employee = Employee(**data)
        self.db.add(db_employee)
        self.safe_commit("Error creating employee")
        self.db.refresh(db_employee)

        self.log_service_action("create_employee", "Employee", str(db_employee.id))
        return db_employee

    def get_employee(self, employee_id) -> Optional[Employee]:
        """Get employee by ID, None when unknown or malformed."""
        try:
            employee_uuid = validate_uuid(employee_id, "employee_id")
        except ValidationError:
            return None
        return self.db.get(Employee, employee_uuid)

    def get_employee_or_404(self, employee_id) -> Employee:
        return self.get_or_404(Employee, employee_id, "Employee")

    def get_employee_by_email(self, email: str) -> Optional[Employee]:
        """Get employee by email."""
        return self.db.query(Employee).filter(Employee.email == email).first()

    def get_all_employees(self, skip: int = 0, limit: Optional[int] = None, active_only: bool = False) -> List[Employee]:
        """Get employees ordered by name; unpaginated when no limit is given."""
        query = self.db.query(Employee).order_by(Employee.name)

        if active_only:
            query = query.filter(Employee.is_active.is_(True))

        if limit is not None:
            query = self.paginate_query(query, skip, limit)

        return query.all()

    def update_employee(self, employee_id: str, employee_data: EmployeeUpdate) -> Employee:
        employee = self.get_or_404(Employee, employee_id, "Employee")
        update_data = employee_data.model_dump(exclude_unset=True)

        if "email" in update_data and update_data["email"] != employee.email:
            self.check_unique_constraint(Employee, "email", update_data["email"], "Employee", exclude_id=employee.id)
        if update_data.get("employee_code") and update_data["employee_code"] != employee.employee_code:
            self.check_unique_constraint(Employee, "employee_code", update_data["employee_code"], "Employee", exclude_id=employee.id)
        if "phone" in update_data:
            update_data["phone"] = validate_phone(update_data["phone"])

        for field, value in update_data.items():
            setattr(employee, field, value)

        self.safe_commit("Error updating employee")
        self.db.refresh(employee)

        self.log_service_action("update_employee", "Employee", str(employee.id), {"fields": sorted(update_data)})
        return employee

    def deactivate_employee(self, employee_id: str) -> Employee:
        """Soft delete; payroll history keeps referencing the employee."""
        employee = self.get_or_404(Employee, employee_id, "Employee")
        employee.is_active = False
        self.safe_commit("Error deactivating employee")

        self.log_service_action("deactivate_employee", "Employee", str(employee.id))
        return employee
