"""Application error taxonomy and HTTP error classification."""

from enum import Enum

from pydantic import BaseModel

from src.core.config import Constants


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Request errors
    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_ROUTE_NOT_FOUND = "ERR_ROUTE_NOT_FOUND"

    # Task errors
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"

    # Statistics errors
    ERR_BADGE_NOT_FOUND = "ERR_BADGE_NOT_FOUND"
    ERR_VERSION_CONFLICT = "ERR_VERSION_CONFLICT"

    # Storage errors
    ERR_STORE = "ERR_STORE"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


GENERIC_ERROR_MESSAGE = "Internal server error"


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = Constants.HTTP_SERVER_ERROR
    code: str = ErrorCode.ERR_UNKNOWN
    severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(AppError):
    """Invalid client input (missing title, bad status, malformed payload)."""

    status_code = Constants.HTTP_BAD_REQUEST
    code = ErrorCode.ERR_VALIDATION
    severity = ErrorSeverity.LOW


class NotFoundError(AppError):
    """Referenced task or badge does not exist."""

    status_code = Constants.HTTP_NOT_FOUND
    code = ErrorCode.ERR_TASK_NOT_FOUND
    severity = ErrorSeverity.LOW


class ConflictError(AppError):
    """The statistics record changed since the caller last read it."""

    status_code = Constants.HTTP_CONFLICT
    code = ErrorCode.ERR_VERSION_CONFLICT
    severity = ErrorSeverity.MEDIUM


class StoreError(AppError):
    """Persistence or connectivity failure in the record store."""

    status_code = Constants.HTTP_SERVER_ERROR
    code = ErrorCode.ERR_STORE
    severity = ErrorSeverity.HIGH


class ErrorResponse(BaseModel):
    """Structured error payload returned to HTTP clients."""

    code: str
    message: str
    status_code: int
    severity: ErrorSeverity


def classify_error(exception: Exception) -> ErrorResponse:
    """Classify an exception into the response the HTTP boundary should send.

    Store failures and unexpected exceptions never leak their message to the
    client; the caller is expected to log the original exception.

    Args:
        exception: The exception raised while handling a request

    Returns:
        ErrorResponse with code, client-facing message, status and severity
    """
    if isinstance(exception, StoreError):
        return ErrorResponse(
            code=exception.code,
            message=GENERIC_ERROR_MESSAGE,
            status_code=exception.status_code,
            severity=exception.severity,
        )

    if isinstance(exception, AppError):
        return ErrorResponse(
            code=exception.code,
            message=exception.message,
            status_code=exception.status_code,
            severity=exception.severity,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message=GENERIC_ERROR_MESSAGE,
        status_code=Constants.HTTP_SERVER_ERROR,
        severity=ErrorSeverity.CRITICAL,
    )
