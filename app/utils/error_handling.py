"""
Error Handling Module for Labor Administration

This module provides centralized error handling with:
- Typed error codes (the error kind decides the HTTP status, never the message text)
- Custom exception hierarchy
- Service result tuples: services return (result, error) for expected failures
- Standardized error responses in the {success, message, error} envelope
- Error logging
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    DataError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging
logger = logging.getLogger("laborhr.errors")

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_RUT = "INVALID_RUT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_FILE = "INVALID_FILE"

    # Authentication/Authorization Errors (401/403)
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    TOKEN_INVALID = "TOKEN_INVALID"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"

    # Resource Errors (404)
    NOT_FOUND = "NOT_FOUND"
    WORKER_NOT_FOUND = "WORKER_NOT_FOUND"
    EMPLOYMENT_RECORD_NOT_FOUND = "EMPLOYMENT_RECORD_NOT_FOUND"
    HISTORY_ENTRY_NOT_FOUND = "HISTORY_ENTRY_NOT_FOUND"
    LEAVE_REQUEST_NOT_FOUND = "LEAVE_REQUEST_NOT_FOUND"
    BONUS_NOT_FOUND = "BONUS_NOT_FOUND"
    TRAINING_NOT_FOUND = "TRAINING_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"

    # Business Rule Errors (400)
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    WORKER_TERMINATED = "WORKER_TERMINATED"
    SALARY_DECREASE = "SALARY_DECREASE"
    ALREADY_REVIEWED = "ALREADY_REVIEWED"
    OPEN_HISTORY_ENTRY = "OPEN_HISTORY_ENTRY"
    HISTORY_ENTRY_CLOSED = "HISTORY_ENTRY_CLOSED"
    LEAVE_OVERLAP = "LEAVE_OVERLAP"
    CANNOT_DELETE = "CANNOT_DELETE"

    # Database / Internal Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """The `error` member of the response envelope."""
        error: Dict[str, Any] = {"code": self.code.value, "timestamp": self.timestamp.isoformat()}
        if self.field:
            error["field"] = self.field
        if self.details:
            error["details"] = self.details
        return error


# ============================================================================
# Service results
# ============================================================================

# Expected failures travel as data: (None, error) instead of being raised.
ServiceResult = Tuple[Optional[T], Optional[AppException]]


def unwrap(outcome: "ServiceResult[T]") -> T:
    """Return the result of a service call, raising its error if it failed."""
    result, error = outcome
    if error is not None:
        raise error
    return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Base validation exception"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            field=field,
        )


class InvalidRUTException(ValidationException):
    """Invalid Chilean national ID"""

    def __init__(self, rut: str):
        super().__init__(
            message=f"Invalid RUT: {rut}",
            field="rut",
            code=ErrorCode.INVALID_RUT,
            details={"provided_rut": rut, "expected_format": "12.345.678-5"},
        )


class InvalidDateRangeException(ValidationException):
    """Invalid date range"""

    def __init__(self, start_date: Any, end_date: Any, message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid date range: {start_date} to {end_date}. End date must be after start date.",
            field="end_date",
            code=ErrorCode.INVALID_DATE_RANGE,
            details={"start_date": str(start_date), "end_date": str(end_date)},
        )


class InvalidFileException(ValidationException):
    """Uploaded file rejected"""

    def __init__(self, message: str, field: str = "file"):
        super().__init__(message=message, field=field, code=ErrorCode.INVALID_FILE)


# ============================================================================
# Authentication/Authorization Exceptions
# ============================================================================

class AuthenticationException(AppException):
    """Base authentication exception"""

    def __init__(
        self,
        message: str = "Authentication required",
        code: ErrorCode = ErrorCode.UNAUTHORIZED,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
        )


class AuthorizationException(AppException):
    """Role not allowed for the operation"""

    def __init__(
        self,
        message: str = "Permission denied",
        required_roles: Optional[List[str]] = None,
    ):
        super().__init__(
            code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details={"required_roles": required_roles} if required_roles else None,
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class WorkerNotFoundException(NotFoundException):
    def __init__(self, worker_id: Optional[Union[str, UUID]] = None, message: Optional[str] = None):
        super().__init__("Worker", worker_id, message=message, code=ErrorCode.WORKER_NOT_FOUND)


class EmploymentRecordNotFoundException(NotFoundException):
    def __init__(self, record_id: Optional[Union[str, UUID]] = None, message: Optional[str] = None):
        super().__init__(
            "Employment record", record_id, message=message,
            code=ErrorCode.EMPLOYMENT_RECORD_NOT_FOUND,
        )


# ============================================================================
# Business Logic Exceptions
# ============================================================================

class BusinessRuleException(AppException):
    """Business rule violation exception"""

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if rule:
            _details["violated_rule"] = rule
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=_details,
        )


class DuplicateEntryException(BusinessRuleException):
    """Duplicate identity or signature"""

    def __init__(
        self,
        resource_type: str,
        field: str,
        value: Any,
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message or f"{resource_type} with {field} '{value}' already exists",
            rule="UNIQUE_" + field.upper(),
            code=ErrorCode.DUPLICATE_ENTRY,
            details={"resource_type": resource_type, "field": field, "value": str(value)},
        )


class WorkerTerminatedException(BusinessRuleException):
    """Terminated is an absorbing state"""

    def __init__(self, worker_id: Union[str, UUID], message: Optional[str] = None):
        super().__init__(
            message=message or "No changes can be made to a terminated worker",
            rule="TERMINATED_IS_FINAL",
            code=ErrorCode.WORKER_TERMINATED,
            details={"worker_id": str(worker_id)},
        )


# ============================================================================
# Database Exceptions
# ============================================================================

class DatabaseException(AppException):
    """Unexpected persistence or internal failure; never exposes internals."""

    def __init__(
        self,
        message: str = "Internal server error",
        code: ErrorCode = ErrorCode.DATABASE_ERROR,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            original_error=original_error,
        )


# ============================================================================
# Exception Handlers
# ============================================================================

# HTTPException status -> error code. Anything unlisted is reported as internal.
HTTP_STATUS_CODES = {
    400: ErrorCode.INVALID_INPUT,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    422: ErrorCode.VALIDATION_ERROR,
}


def _request_context(request: Request) -> Dict[str, str]:
    return {"path": request.url.path, "method": request.method}


def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Build an error envelope for failures that are not an AppException."""
    return error_response(
        AppException(code=code, message=message, status_code=status_code, details=details, field=field)
    )


def error_response(exc: AppException) -> JSONResponse:
    """Render an AppException as {success: false, message, error}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "error": exc.to_dict()},
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Errors returned by services and raised through unwrap()."""
    if exc.status_code >= 500:
        logger.error(
            f"{exc.code.value}: {exc.message}",
            extra=_request_context(request),
            exc_info=exc.original_error,
        )
    else:
        logger.warning(f"{exc.code.value}: {exc.message}", extra=_request_context(request))

    return error_response(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Errors raised by dependencies (authentication, roles) and routing."""
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    logger.warning(f"HTTP {exc.status_code}: {message}", extra=_request_context(request))

    return create_error_response(
        code=HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
        message=message,
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed requests are a 400 with one item per offending field."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Request validation failed on {len(errors)} field(s)", extra=_request_context(request))

    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_400_BAD_REQUEST,
        details={"errors": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Database errors that escaped a service.

    A unique violation is reported as a duplicate (400); everything else is a
    500 that never carries the driver message.
    """
    logger.error(
        f"{type(exc).__name__}: {exc}",
        extra=_request_context(request),
        exc_info=True,
    )

    if isinstance(exc, IntegrityError):
        orig = str(exc.orig).lower() if exc.orig else ""
        if "unique" in orig or "duplicate" in orig:
            return create_error_response(
                ErrorCode.DUPLICATE_ENTRY,
                "A record with this value already exists",
                status.HTTP_400_BAD_REQUEST,
            )
        return create_error_response(
            ErrorCode.DATA_INTEGRITY_ERROR,
            "Data integrity constraint violated",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, DataError):
        return create_error_response(
            ErrorCode.DATABASE_ERROR,
            "Invalid data format for database",
            status.HTTP_400_BAD_REQUEST,
        )

    return create_error_response(
        ErrorCode.DATABASE_ERROR,
        "A database error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.critical(
        f"Unhandled {type(exc).__name__}: {exc}",
        extra=_request_context(request),
        exc_info=True,
    )

    # Never expose internal error details
    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="Internal server error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "AppException",
    "ErrorCode",
    "ServiceResult",
    "unwrap",
    "ValidationException",
    "InvalidRUTException",
    "InvalidDateRangeException",
    "InvalidFileException",
    "AuthenticationException",
    "AuthorizationException",
    "NotFoundException",
    "WorkerNotFoundException",
    "EmploymentRecordNotFoundException",
    "BusinessRuleException",
    "DuplicateEntryException",
    "WorkerTerminatedException",
    "DatabaseException",
    "setup_exception_handlers",
    "create_error_response",
    "error_response",
]
