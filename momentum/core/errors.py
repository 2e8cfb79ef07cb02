"""Error taxonomy and classification for the momentum core."""

from enum import Enum

from pydantic import BaseModel


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Input errors
    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_INVALID_STATE_TRANSITION = "ERR_INVALID_STATE_TRANSITION"

    # Lookup errors
    ERR_NOT_FOUND = "ERR_NOT_FOUND"

    # Storage errors
    ERR_PERSISTENCE = "ERR_PERSISTENCE"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class MomentumError(Exception):
    """Base class for errors raised by the momentum core.

    Carries a stable error code alongside the message so collaborators can
    decide how to surface the failure without parsing text.
    """

    code: str = ErrorCode.ERR_UNKNOWN

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MomentumError):
    """Malformed input: missing required fields or out-of-range values."""

    code = ErrorCode.ERR_VALIDATION


class InvalidStateTransitionError(ValidationError):
    """A lifecycle operation is not allowed from the record's current status."""

    code = ErrorCode.ERR_INVALID_STATE_TRANSITION


class NotFoundError(MomentumError):
    """Referenced record does not exist or is not owned by the caller."""

    code = ErrorCode.ERR_NOT_FOUND

    def __init__(self, message: str, *, collection: str | None = None, record_id: str | None = None) -> None:
        super().__init__(message)
        self.collection = collection
        self.record_id = record_id


class PersistenceError(MomentumError):
    """Underlying store failure (connectivity, constraint violation, bad query)."""

    code = ErrorCode.ERR_PERSISTENCE


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Validation and not-found errors keep their own message since it is meant
    for the user. Persistence and unknown errors get a generic message.

    Args:
        exception: The exception raised by a core operation

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, InvalidStateTransitionError):
        return ErrorResponse(
            code=exception.code,
            message=exception.message,
            suggestion="Refresh your task list; this task may already be completed or skipped.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, ValidationError):
        return ErrorResponse(
            code=exception.code,
            message=exception.message,
            suggestion="Check the highlighted fields and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, NotFoundError):
        return ErrorResponse(
            code=exception.code,
            message=exception.message,
            suggestion="It may have been deleted. Refresh and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, PersistenceError):
        return ErrorResponse(
            code=exception.code,
            message="We couldn't save or load your data.",
            suggestion="Please check your connection and try again.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
