"""Error taxonomy and classification for task and notification operations."""

from enum import Enum, StrEnum

from pydantic import BaseModel

from src.core.config import Constants


class TaskValidationError(ValueError):
    """Missing or invalid input (e.g. missing title, past due date)."""


class NotFoundError(KeyError):
    """Requested task or notification does not exist for this caller."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Not found"


class ForbiddenError(PermissionError):
    """Actor is not allowed to perform the requested operation."""


class PersistenceError(RuntimeError):
    """A storage operation failed."""


class DeliveryWarning(StrEnum):
    """Non-failure outcomes of a notification dispatch."""

    NO_RECIPIENT = "no_recipient"
    RECIPIENT_OFFLINE = "recipient_offline"
    PUSH_FAILED = "push_failed"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_FORBIDDEN = "ERR_FORBIDDEN"
    ERR_UNAUTHENTICATED = "ERR_UNAUTHENTICATED"
    ERR_PERSISTENCE = "ERR_PERSISTENCE"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity
    status_code: int


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised while handling a request

    Returns:
        ErrorResponse with code, message, suggestion, severity and HTTP status
    """
    if isinstance(exception, TaskValidationError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=str(exception),
            suggestion="Check the request fields and try again.",
            severity=ErrorSeverity.LOW,
            status_code=Constants.HTTP_BAD_REQUEST,
        )

    if isinstance(exception, NotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_FOUND,
            message=str(exception),
            suggestion="Refresh your list and try again.",
            severity=ErrorSeverity.LOW,
            status_code=Constants.HTTP_NOT_FOUND,
        )

    if isinstance(exception, ForbiddenError):
        return ErrorResponse(
            code=ErrorCode.ERR_FORBIDDEN,
            message=str(exception),
            suggestion="Only the task creator or assignee can do this.",
            severity=ErrorSeverity.MEDIUM,
            status_code=Constants.HTTP_FORBIDDEN,
        )

    if isinstance(exception, PersistenceError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERSISTENCE,
            message="A storage error occurred.",
            suggestion="Please try again later.",
            severity=ErrorSeverity.HIGH,
            status_code=Constants.HTTP_SERVER_ERROR,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
        status_code=Constants.HTTP_SERVER_ERROR,
    )
