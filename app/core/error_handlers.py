"""
Global Error Handlers for the Factory Payroll System

Every error leaves the API in the same envelope as successful responses:
{"success": false, "message": ..., "error": ...}
"""

import logging
import traceback
from typing import Dict, Any
from datetime import datetime

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError, HTTPException
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    DataError,
    OperationalError,
)

from app.core.exceptions import BaseAPIException
from app.core.config import settings

# Set up logger
logger = logging.getLogger(__name__)


def create_error_response(
    status_code: int,
    detail: str,
    error_code: str = None,
    error_data: Dict[str, Any] = None,
    error: str = None,
    request_id: str = None,
) -> JSONResponse:
    """Create standardized error response."""

    content = {
        "success": False,
        "message": detail,
        "error": error or detail,
        "timestamp": datetime.utcnow().isoformat(),
    }

    if error_code:
        content["error_code"] = error_code

    if error_data:
        content["error_data"] = error_data

    if request_id:
        content["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content)
    )


async def base_api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Handle custom API exceptions."""

    request_id = getattr(request.state, 'request_id', None)

    logger.warning(
        f"API Exception: {exc.error_code or 'UNKNOWN'} - {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "error_code": exc.error_code,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=exc.status_code,
        detail=exc.detail,
        error_code=exc.error_code,
        error_data=exc.error_data,
        request_id=request_id
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle FastAPI and Starlette HTTP exceptions."""

    request_id = getattr(request.state, 'request_id', None)

    logger.warning(
        f"HTTP Exception: {exc.status_code} - {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=exc.status_code,
        detail=str(exc.detail),
        error_code="HTTP_EXCEPTION",
        request_id=request_id
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors as 400s naming the offending fields."""

    request_id = getattr(request.state, 'request_id', None)

    validation_errors = []
    for error in exc.errors():
        validation_errors.append({
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"Validation Error: {len(validation_errors)} validation error(s)",
        extra={
            "validation_errors": validation_errors,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    fields = ", ".join(err["field"] for err in validation_errors)
    return create_error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Invalid or missing fields: {fields}",
        error_code="VALIDATION_ERROR",
        error_data={"validation_errors": validation_errors},
        request_id=request_id
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy database exceptions."""

    request_id = getattr(request.state, 'request_id', None)

    if isinstance(exc, IntegrityError):
        detail = "Data integrity constraint violated"
        error_code = "INTEGRITY_ERROR"
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, DataError):
        detail = "Invalid data provided"
        error_code = "DATA_ERROR"
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, OperationalError):
        detail = "Database operation failed"
        error_code = "DATABASE_OPERATION_ERROR"
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        detail = "Database error occurred"
        error_code = "DATABASE_ERROR"
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(
        f"Database Error: {error_code} - {detail}",
        extra={
            "exception_type": type(exc).__name__,
            "error_details": str(exc),
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=status_code,
        detail=detail,
        error_code=error_code,
        error=str(exc),
        request_id=request_id
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions."""

    request_id = getattr(request.state, 'request_id', None)

    logger.error(
        f"Unhandled Exception: {type(exc).__name__} - {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    error_data = None
    if settings.debug:
        error_data = {
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc().split('\n')
        }

    # Internal admin tool: the underlying message is surfaced to the caller
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Server error",
        error_code="INTERNAL_SERVER_ERROR",
        error=str(exc),
        error_data=error_data,
        request_id=request_id
    )


# Error handler mapping
ERROR_HANDLERS = {
    BaseAPIException: base_api_exception_handler,
    HTTPException: http_exception_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    SQLAlchemyError: sqlalchemy_exception_handler,
    Exception: generic_exception_handler,
}


def register_error_handlers(app):
    """Register all error handlers with the FastAPI app."""

    for exception_class, handler in ERROR_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)

    logger.info("Error handlers registered successfully")
