from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import Optional
from app.core.cache import PayrollCacheService, get_payroll_cache
from app.core.clock import Clock, get_clock
from app.core.database import get_db, get_session_factory
from app.core.dependencies import get_current_admin_user, get_current_staff_user, get_current_user
from app.core.responses import batch_envelope, envelope
from app.auth.models import User
from app.payrolls.schemas import (
    BatchPaymentStatusUpdate,
    BonusRequest,
    BulkBonusRequest,
    BulkGenerateRequest,
    GeneratePayrollRequest,
    PaymentStatusUpdate,
    PayrollUpdate,
    TaxCalculationRequest
)
from app.payrolls.service import PayrollService, serialize_payroll

router = APIRouter(prefix="/payrolls", tags=["payrolls"])


def get_payroll_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session_factory=Depends(get_session_factory),
    cache: PayrollCacheService = Depends(get_payroll_cache)
) -> PayrollService:
    return PayrollService(db, clock=clock, session_factory=session_factory, cache=cache)


@router.get("/")
def list_payrolls(
    month: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    employee_id: Optional[str] = Query(None, alias="employeeId"),
    payment_status: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    service: PayrollService = Depends(get_payroll_service)
):
    """List payrolls for a period (defaults to the current month), synced with attendance."""
    payrolls = service.list_payrolls(current_user, month, year, employee_id, payment_status)
    return envelope(data=[serialize_payroll(p) for p in payrolls], count=len(payrolls))


@router.get("/summary")
def get_payroll_summary(
    month: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: PayrollService = Depends(get_payroll_service)
):
    return envelope(data=service.get_summary(month, year))


@router.get("/reports")
def get_payroll_reports(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    departments: Optional[str] = Query(None),
    report_format: str = Query("summary", alias="format"),
    current_user: User = Depends(get_current_staff_user),
    service: PayrollService = Depends(get_payroll_service)
):
    """Analytics report over a date range, optionally restricted to comma-separated departments."""
    return envelope(data=service.get_report(start_date, end_date, departments, report_format))


@router.post("/generate", status_code=status.HTTP_201_CREATED)
def generate_payroll(
    request: GeneratePayrollRequest,
    current_user: User = Depends(get_current_staff_user),
    service: PayrollService = Depends(get_payroll_service)
):
    payroll = service.generate_payroll(request, current_user)
    return envelope(
        data=serialize_payroll(payroll),
        message="Payroll generated successfully",
        status_code=status.HTTP_201_CREATED
    )


@router.post("/generate-bulk", status_code=status.HTTP_201_CREATED)
def generate_bulk_payroll(
    request: BulkGenerateRequest,
    current_user: User = Depends(get_current_admin_user),
    service: PayrollService = Depends(get_payroll_service)
):
    """Generate payrolls for every employee still missing one for the period."""
    outcome = service.generate_bulk(request, current_user)
    all_succeeded = outcome["failed"] == 0
    return envelope(
        data=outcome["payrolls"],
        message=f"Generated {outcome['processed']} payrolls successfully",
        status_code=status.HTTP_201_CREATED if all_succeeded else status.HTTP_207_MULTI_STATUS,
        success=all_succeeded,
        processed=outcome["processed"],
        skipped=outcome["skipped"],
        results=outcome["results"]
    )


@router.patch("/payment-status/batch")
def batch_update_payment_status(
    update: BatchPaymentStatusUpdate,
    current_user: User = Depends(get_current_admin_user),
    service: PayrollService = Depends(get_payroll_service)
):
    results = service.batch_update_payment_status(update)
    succeeded = sum(1 for result in results if result.success)
    return batch_envelope(
        [result.to_dict("id") for result in results],
        message=f"Updated {succeeded} out of {len(results)} payroll records"
    )


@router.post("/tax/calculate")
def calculate_tax(
    request: TaxCalculationRequest,
    current_user: User = Depends(get_current_staff_user),
    service: PayrollService = Depends(get_payroll_service)
):
    return envelope(data=service.calculate_tax(request))


@router.post("/bonus")
def manage_bonus(
    request: BonusRequest,
    current_user: User = Depends(get_current_staff_user),
    service: PayrollService = Depends(get_payroll_service)
):
    payroll = service.manage_bonus(request)
    return envelope(data=serialize_payroll(payroll), message="Bonus and incentives updated successfully")


@router.post("/bonus/bulk")
def bulk_manage_bonus(
    request: BulkBonusRequest,
    current_user: User = Depends(get_current_staff_user),
    service: PayrollService = Depends(get_payroll_service)
):
    results = service.bulk_bonus(request)
    succeeded = sum(1 for result in results if result.success)
    return batch_envelope(
        [result.to_dict("employee_id") for result in results],
        message=f"Processed bonus for {succeeded} employees ({len(results) - succeeded} failed)"
    )


@router.get("/export/csv")
def export_payrolls_csv(
    month: int = Query(...),
    year: int = Query(...),
    current_user: User = Depends(get_current_staff_user),
    service: PayrollService = Depends(get_payroll_service)
):
    """Export a period's payrolls to a CSV file."""
    csv_content = service.export_csv(month, year)
    filename = f"payrolls_{year}_{month:02d}.csv"

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.get("/{payroll_id}")
def get_payroll(
    payroll_id: str,
    current_user: User = Depends(get_current_user),
    service: PayrollService = Depends(get_payroll_service)
):
    payroll = service.get_payroll(payroll_id, current_user)
    return envelope(data=serialize_payroll(payroll))


@router.put("/{payroll_id}")
def update_payroll(
    payroll_id: str,
    update: PayrollUpdate,
    current_user: User = Depends(get_current_user),
    service: PayrollService = Depends(get_payroll_service)
):
    payroll = service.update_payroll(payroll_id, update, current_user)
    return envelope(data=serialize_payroll(payroll), message="Payroll updated successfully")


@router.patch("/{payroll_id}/payment-status")
def update_payment_status(
    payroll_id: str,
    update: PaymentStatusUpdate,
    current_user: User = Depends(get_current_staff_user),
    service: PayrollService = Depends(get_payroll_service)
):
    payroll = service.update_payment_status(payroll_id, update)
    return envelope(data=serialize_payroll(payroll), message="Payment status updated successfully")


@router.post("/{payroll_id}/recalculate")
def recalculate_payroll(
    payroll_id: str,
    current_user: User = Depends(get_current_staff_user),
    service: PayrollService = Depends(get_payroll_service)
):
    payroll = service.recalculate_payroll(payroll_id)
    return envelope(data=serialize_payroll(payroll), message="Payroll recalculated successfully")


@router.delete("/{payroll_id}")
def delete_payroll(
    payroll_id: str,
    current_user: User = Depends(get_current_admin_user),
    service: PayrollService = Depends(get_payroll_service)
):
    service.delete_payroll(payroll_id)
    return envelope(message="Payroll deleted successfully")
