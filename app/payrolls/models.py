from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, UniqueConstraint, Uuid
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_uuid


class PaymentStatus:
    PENDING = "Pending"
    PROCESSING = "Processing"
    PAID = "Paid"
    FAILED = "Failed"

    ALL = (PENDING, PROCESSING, PAID, FAILED)


class BonusType:
    PERFORMANCE = "performanceBonus"
    FESTIVAL = "festivalBonus"
    INCENTIVES = "incentives"
    COMMISSION = "commission"
    ONE_TIME = "oneTimeBonus"

    ALL = (PERFORMANCE, FESTIVAL, INCENTIVES, COMMISSION, ONE_TIME)


# bonusType value -> Payroll column holding that component
BONUS_COLUMNS = {
    BonusType.PERFORMANCE: "bonus_performance",
    BonusType.FESTIVAL: "bonus_festival",
    BonusType.INCENTIVES: "bonus_incentives",
    BonusType.COMMISSION: "bonus_commission",
    BonusType.ONE_TIME: "bonus_one_time",
}

ALLOWANCE_COLUMNS = {
    "house_rent": "allowance_house_rent",
    "medical": "allowance_medical",
    "travel": "allowance_travel",
    "food": "allowance_food",
    "special": "allowance_special",
    "other": "allowance_other",
}

DEDUCTION_COLUMNS = {
    "professional_tax": "deduction_professional_tax",
    "income_tax": "deduction_income_tax",
    "provident_fund": "deduction_provident_fund",
    "health_insurance": "deduction_health_insurance",
    "loan_repayment": "deduction_loan_repayment",
    "absent_deduction": "deduction_absent",
    "late_deduction": "deduction_late",
    "other": "deduction_other",
}


def _money():
    return Column(Numeric(12, 2), nullable=False, default=0)


class Payroll(Base):
    __tablename__ = "payrolls"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_payroll_employee_period"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=generate_uuid)
    employee_id = Column(Uuid(as_uuid=True), ForeignKey("employees.id"), nullable=False, index=True)
    month = Column(Integer, nullable=False)  # 1-12
    year = Column(Integer, nullable=False)

    # Copy of the employee taken at calculation time
    employee_details = Column(JSON, nullable=False, default=dict)

    original_salary = _money()
    basic_salary = _money()

    allowance_house_rent = _money()
    allowance_medical = _money()
    allowance_travel = _money()
    allowance_food = _money()
    allowance_special = _money()
    allowance_other = _money()

    deduction_professional_tax = _money()
    deduction_income_tax = _money()
    deduction_provident_fund = _money()
    deduction_health_insurance = _money()
    deduction_loan_repayment = _money()
    deduction_absent = _money()
    deduction_late = _money()
    deduction_other = _money()
    leave_deduction = _money()

    overtime_hours = Column(Numeric(8, 2), nullable=False, default=0)
    overtime_rate = Column(Numeric(6, 2), nullable=False, default=1.5)
    overtime_amount = _money()

    bonus = _money()
    bonus_performance = _money()
    bonus_festival = _money()
    bonus_incentives = _money()
    bonus_commission = _money()
    bonus_one_time = _money()
    bonus_description = Column(Text, nullable=True)

    present_days = Column(Integer, nullable=False, default=0)
    absent_days = Column(Integer, nullable=False, default=0)
    late_days = Column(Integer, nullable=False, default=0)
    leave_days = Column(Integer, nullable=False, default=0)
    working_days = Column(Integer, nullable=False, default=0)
    total_working_days = Column(Integer, nullable=False, default=0)

    gross_salary = _money()
    total_deductions = _money()
    net_salary = _money()

    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING)
    payment_method = Column(String(50), nullable=True)
    payment_date = Column(Date, nullable=True)
    remarks = Column(Text, nullable=True)

    manually_edited = Column(Boolean, nullable=False, default=False)
    is_auto_generated = Column(Boolean, nullable=False, default=False)
    last_calculated = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    employee = relationship("Employee", back_populates="payrolls")

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def allowances(self) -> dict:
        return {name: getattr(self, column) for name, column in ALLOWANCE_COLUMNS.items()}

    @property
    def deductions(self) -> dict:
        return {name: getattr(self, column) for name, column in DEDUCTION_COLUMNS.items()}

    @property
    def overtime(self) -> dict:
        return {"hours": self.overtime_hours, "rate": self.overtime_rate, "amount": self.overtime_amount}

    @property
    def bonus_details(self) -> dict:
        details = {bonus_type: getattr(self, column) for bonus_type, column in BONUS_COLUMNS.items()}
        details["description"] = self.bonus_description
        return details

    @property
    def attendance_summary(self) -> dict:
        return {
            "present": self.present_days,
            "absent": self.absent_days,
            "late": self.late_days,
            "on_leave": self.leave_days,
            "working_days": self.working_days,
            "total_working_days": self.total_working_days,
        }
