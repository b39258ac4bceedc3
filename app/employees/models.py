from sqlalchemy import Column, String, Boolean, Date, DateTime, Numeric, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_uuid


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=generate_uuid)
    employee_code = Column(String(50), unique=True, nullable=True, index=True)  # human facing employee ID
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    department = Column(String(100))
    position = Column(String(100))
    phone = Column(String(20))
    joining_date = Column(Date, nullable=True)
    base_salary = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Bank details
    bank_name = Column(String(100))
    account_number = Column(String(50))
    account_holder_name = Column(String(255))
    ifsc_code = Column(String(20))

    # Relationships
    attendance_records = relationship("AttendanceRecord", back_populates="employee")
    payrolls = relationship("Payroll", back_populates="employee")

    @property
    def bank_details(self) -> dict:
        return {
            "bank_name": self.bank_name,
            "account_number": self.account_number,
            "account_holder_name": self.account_holder_name,
            "ifsc_code": self.ifsc_code,
        }
