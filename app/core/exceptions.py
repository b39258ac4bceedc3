"""
Custom Exception Classes for the Factory Payroll System
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base exception class for API errors with enhanced error details."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        error_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.error_data = error_data or {}


# Authentication & Authorization Exceptions
class AuthenticationError(BaseAPIException):
    """Authentication failed."""

    def __init__(self, detail: str = "Authentication failed", error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="AUTH_FAILED",
            error_data=error_data,
            headers={"WWW-Authenticate": "Bearer"}
        )


class InvalidTokenError(BaseAPIException):
    """Invalid or expired token."""

    def __init__(self, detail: str = "Invalid or expired token", error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="INVALID_TOKEN",
            error_data=error_data,
            headers={"WWW-Authenticate": "Bearer"}
        )


class InsufficientPermissionsError(BaseAPIException):
    """User doesn't have required permissions."""

    def __init__(self, detail: str = "Insufficient permissions", error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="INSUFFICIENT_PERMISSIONS",
            error_data=error_data
        )


# Resource Exceptions
class ResourceNotFoundError(BaseAPIException):
    """Requested resource not found."""

    def __init__(self, resource_type: str, resource_id: str = None, error_data: Optional[Dict[str, Any]] = None):
        detail = f"{resource_type} not found"
        if resource_id:
            detail += f" (ID: {resource_id})"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="RESOURCE_NOT_FOUND",
            error_data={"resource_type": resource_type, "resource_id": resource_id, **(error_data or {})}
        )


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists."""

    def __init__(self, resource_type: str, field: str = None, value: str = None, error_data: Optional[Dict[str, Any]] = None):
        detail = f"{resource_type} already exists"
        if field and value:
            detail += f" with {field}: {value}"

        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="RESOURCE_ALREADY_EXISTS",
            error_data={"resource_type": resource_type, "field": field, "value": value, **(error_data or {})}
        )


class ResourceInactiveError(BaseAPIException):
    """Resource is inactive or disabled."""

    def __init__(self, resource_type: str, resource_id: str = None, error_data: Optional[Dict[str, Any]] = None):
        detail = f"{resource_type} is inactive"
        if resource_id:
            detail += f" (ID: {resource_id})"

        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="RESOURCE_INACTIVE",
            error_data={"resource_type": resource_type, "resource_id": resource_id, **(error_data or {})}
        )


# Validation Exceptions
class ValidationError(BaseAPIException):
    """Data validation failed."""

    def __init__(self, detail: str, field: str = None, value: Any = None, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="VALIDATION_ERROR",
            error_data={"field": field, "value": value, **(error_data or {})}
        )


# Database Exceptions
class DatabaseError(BaseAPIException):
    """Database operation failed."""

    def __init__(self, detail: str = "Database operation failed", operation: str = None, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="DATABASE_ERROR",
            error_data={"operation": operation, **(error_data or {})}
        )


# Payroll Exceptions
class PayrollStateConflictError(BaseAPIException):
    """Requested payroll change conflicts with the record's current state."""

    def __init__(self, detail: str, payroll_id: str = None, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="PAYROLL_STATE_CONFLICT",
            error_data={"payroll_id": payroll_id, **(error_data or {})}
        )


class PayrollNotApplicableError(BaseAPIException):
    """Payroll period precedes the employee's joining month."""

    def __init__(self, employee_id: str, period: str = None, error_data: Optional[Dict[str, Any]] = None):
        detail = f"Employee {employee_id} had not joined"
        if period:
            detail += f" by {period}"

        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="PAYROLL_NOT_APPLICABLE",
            error_data={"employee_id": employee_id, "period": period, **(error_data or {})}
        )
