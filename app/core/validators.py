"""
Validation Utilities for the Factory Payroll System
"""

import re
import uuid
from datetime import date, datetime
from typing import Iterable, Optional, Tuple

from app.core.exceptions import ValidationError

MIN_PAYROLL_YEAR = 2020
MAX_PAYROLL_YEAR = 2100


def validate_uuid(value, field_name: str = "id") -> uuid.UUID:
    """Validate UUID format and return the parsed value."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(
            detail=f"Invalid UUID format for {field_name}",
            field=field_name,
            value=value
        )


def validate_month_year(month, year) -> Tuple[int, int]:
    """Validate a payroll period, accepting numeric strings."""
    try:
        month = int(month)
    except (TypeError, ValueError):
        raise ValidationError(detail="Month must be a number between 1 and 12", field="month", value=month)
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise ValidationError(detail="Year must be a number", field="year", value=year)

    if month < 1 or month > 12:
        raise ValidationError(detail="Month must be between 1 and 12", field="month", value=month)

    if year < MIN_PAYROLL_YEAR or year > MAX_PAYROLL_YEAR:
        raise ValidationError(
            detail=f"Year must be between {MIN_PAYROLL_YEAR} and {MAX_PAYROLL_YEAR}",
            field="year",
            value=year
        )

    return month, year


def validate_choice(value: str, choices: Iterable[str], field_name: str) -> str:
    """Validate that a value is one of an allowed set."""
    choices = list(choices)
    if value not in choices:
        raise ValidationError(
            detail=f"Invalid {field_name}. Allowed values: {', '.join(choices)}",
            field=field_name,
            value=value,
            error_data={"allowed_values": choices}
        )
    return value


def validate_financial_year(value: str) -> str:
    """Financial years are written YYYY-YYYY with consecutive years."""
    match = re.fullmatch(r"(\d{4})-(\d{4})", value or "")
    if not match or int(match.group(2)) != int(match.group(1)) + 1:
        raise ValidationError(
            detail="Financial year must be in YYYY-YYYY format, e.g. 2024-2025",
            field="financialYear",
            value=value
        )
    return value


def validate_date_string(value: str, field_name: str = "date") -> date:
    """Parse a YYYY-MM-DD string."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(
            detail=f"{field_name} must be a date in YYYY-MM-DD format",
            field=field_name,
            value=value
        )


def validate_date_range(start_date: Optional[date], end_date: Optional[date]):
    """Validate an optional date range."""
    if start_date and end_date and start_date > end_date:
        raise ValidationError(
            detail="Start date must not be after end date",
            error_data={
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat()
            }
        )


def validate_phone(phone: str) -> Optional[str]:
    """Validate phone number format."""
    if not phone:
        return None

    digits_only = re.sub(r'\D', '', phone)

    if len(digits_only) < 10 or len(digits_only) > 15:
        raise ValidationError(
            detail="Phone number must be between 10 and 15 digits",
            field="phone",
            value=phone
        )

    return phone.strip()
