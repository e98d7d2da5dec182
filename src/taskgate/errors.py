# src/taskgate/errors.py

"""Exception types raised by taskgate."""

from __future__ import annotations


class TaskgateError(Exception):
    """Base exception for taskgate errors."""

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        original_error: BaseException | None = None,
    ) -> None:
        """
        Args:
            message: Error message
            retryable: Whether resubmitting the same work may succeed
            original_error: Exception that caused this error
        """
        super().__init__(message)
        self.retryable = retryable
        self.original_error = original_error


class ConfigurationError(TaskgateError):
    """Invalid constructor argument or settings value."""


class InvalidTransitionError(TaskgateError):
    """A task record was asked to move to a state it cannot reach."""


class TaskError(TaskgateError):
    """Failure produced by a single task's operation."""

    def __init__(self, sequence: int, original_error: BaseException) -> None:
        message = f"Task #{sequence} failed: {original_error!r}"
        super().__init__(message, retryable=False, original_error=original_error)
        self.sequence = sequence


class TaskTimeoutError(TaskgateError):
    """An awaited operation did not settle in time."""

    def __init__(self, timeout: float, original_error: BaseException | None = None) -> None:
        message = f"Operation timed out after {timeout} seconds"
        super().__init__(message, retryable=True, original_error=original_error)
        self.timeout = timeout


class RetryExhaustedError(TaskgateError):
    """All retry attempts of an operation failed."""

    def __init__(self, attempts: int, original_error: BaseException) -> None:
        message = f"Failed after {attempts} attempts: {original_error}"
        super().__init__(message, retryable=False, original_error=original_error)
        self.attempts = attempts
