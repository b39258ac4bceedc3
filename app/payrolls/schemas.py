from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from uuid import UUID


class AllowancesUpdate(BaseModel):
    house_rent: Optional[float] = Field(None, ge=0)
    medical: Optional[float] = Field(None, ge=0)
    travel: Optional[float] = Field(None, ge=0)
    food: Optional[float] = Field(None, ge=0)
    special: Optional[float] = Field(None, ge=0)
    other: Optional[float] = Field(None, ge=0)


class DeductionsUpdate(BaseModel):
    professional_tax: Optional[float] = Field(None, ge=0)
    income_tax: Optional[float] = Field(None, ge=0)
    provident_fund: Optional[float] = Field(None, ge=0)
    health_insurance: Optional[float] = Field(None, ge=0)
    loan_repayment: Optional[float] = Field(None, ge=0)
    absent_deduction: Optional[float] = Field(None, ge=0)
    late_deduction: Optional[float] = Field(None, ge=0)
    other: Optional[float] = Field(None, ge=0)


class OvertimeUpdate(BaseModel):
    hours: Optional[float] = Field(None, ge=0)
    rate: Optional[float] = Field(None, ge=0)
    amount: Optional[float] = Field(None, ge=0)


class GeneratePayrollRequest(BaseModel):
    employee_id: str
    month: int
    year: int


class BulkGenerateRequest(BaseModel):
    month: int
    year: int


class PaymentStatusUpdate(BaseModel):
    payment_status: str
    payment_method: Optional[str] = None
    # "" clears the date when the status is not Paid
    payment_date: Optional[str] = None
    remarks: Optional[str] = None


class BatchPaymentStatusUpdate(PaymentStatusUpdate):
    payroll_ids: List[str] = Field(..., min_length=1)


class PayrollUpdate(BaseModel):
    basic_salary: Optional[float] = Field(None, ge=0)
    allowances: Optional[AllowancesUpdate] = None
    deductions: Optional[DeductionsUpdate] = None
    overtime: Optional[OvertimeUpdate] = None
    bonus: Optional[float] = Field(None, ge=0)
    leave_deduction: Optional[float] = Field(None, ge=0)
    payment_status: Optional[str] = None
    payment_method: Optional[str] = None
    payment_date: Optional[str] = None
    remarks: Optional[str] = None


class TaxDeductions(BaseModel):
    section80C: float = Field(0, ge=0)
    section80D: float = Field(0, ge=0)
    housingLoanInterest: float = Field(0, ge=0)
    educationLoanInterest: float = Field(0, ge=0)
    other: float = Field(0, ge=0)


class TaxCalculationRequest(BaseModel):
    employee_id: str
    financial_year: str
    income: Optional[float] = Field(None, ge=0)
    deductions: Optional[TaxDeductions] = None
    tax_regime: str = "old"
    compare: bool = False


class BonusDetailsUpdate(BaseModel):
    performanceBonus: Optional[float] = Field(None, ge=0)
    festivalBonus: Optional[float] = Field(None, ge=0)
    incentives: Optional[float] = Field(None, ge=0)
    commission: Optional[float] = Field(None, ge=0)
    oneTimeBonus: Optional[float] = Field(None, ge=0)


class BonusRequest(BaseModel):
    payroll_id: str
    bonus_details: Optional[BonusDetailsUpdate] = None
    description: Optional[str] = None


class BulkBonusRequest(BaseModel):
    employees: List[str] = Field(..., min_length=1)
    bonus_type: str
    bonus_amount: float = Field(..., gt=0)
    description: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None


class PayrollResponse(BaseModel):
    id: UUID
    employee_id: UUID
    month: int
    year: int
    employee_details: Dict[str, Any]
    original_salary: float
    basic_salary: float
    allowances: Dict[str, float]
    deductions: Dict[str, float]
    leave_deduction: float
    overtime: Dict[str, float]
    bonus: float
    bonus_details: Dict[str, Any]
    attendance_summary: Dict[str, int]
    gross_salary: float
    total_deductions: float
    net_salary: float
    payment_status: str
    payment_method: Optional[str] = None
    payment_date: Optional[date] = None
    remarks: Optional[str] = None
    manually_edited: bool
    is_auto_generated: bool
    last_calculated: Optional[datetime] = None
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
