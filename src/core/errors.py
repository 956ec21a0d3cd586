"""Error taxonomy and user-facing error classification."""

from enum import Enum

from pydantic import BaseModel


class FocusboardError(Exception):
    """Base class for all focusboard errors."""


class TaskValidationError(FocusboardError):
    """A required task field is missing or invalid; raised before any store call."""


class TaskNotFoundError(FocusboardError):
    """An operation referenced a task ID that is not in the local mirror."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class StoreError(FocusboardError):
    """The external task store rejected or failed a create/update/delete/subscribe call."""


class TimerStateError(FocusboardError):
    """A timer stop was requested without a matching running session."""

    def __init__(self, task_id: str, running_task_id: str | None = None) -> None:
        self.task_id = task_id
        self.running_task_id = running_task_id
        super().__init__(f"No active timer for task: {task_id}")


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_STORE_UNAVAILABLE = "ERR_STORE_UNAVAILABLE"
    ERR_NO_ACTIVE_TIMER = "ERR_NO_ACTIVE_TIMER"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised during execution

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, TaskValidationError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=str(exception),
            suggestion="A task needs a title and a deadline.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, TaskNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_NOT_FOUND,
            message="I couldn't find that task.",
            suggestion="It may have been deleted. Refresh the task list and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, TimerStateError):
        return ErrorResponse(
            code=ErrorCode.ERR_NO_ACTIVE_TIMER,
            message="There is no running timer for this task.",
            suggestion="Start a timer on the task first.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, StoreError | ConnectionError | TimeoutError):
        return ErrorResponse(
            code=ErrorCode.ERR_STORE_UNAVAILABLE,
            message="The task store could not complete the request.",
            suggestion="Please try again. Your other tasks were not affected.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later.",
        severity=ErrorSeverity.MEDIUM,
    )
