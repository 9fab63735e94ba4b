"""Exception hierarchy for testpilot.

Only structural misconfiguration escapes the orchestrator. Process faults are
raised by the execution layer and converted into result data before they reach
the caller.
"""

from typing import Any

from testpilot.models.enums import ErrorCategory


class TestpilotError(Exception):
    """Base class for all testpilot errors.

    Parameters
    ----------
    message : str
        Human readable error message
    details : dict[str, Any] | None, optional
        Extra structured context for logging and reports
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TestpilotError):
    """Raised when the suite configuration is structurally invalid."""


class FileOperationError(TestpilotError):
    """Raised when reading or writing a config or report file fails."""


class SuiteExecutionError(TestpilotError):
    """A process-level fault while executing one suite attempt.

    Parameters
    ----------
    message : str
        Error message
    category : ErrorCategory, optional
        Category the synthetic test error should carry
    details : dict[str, Any] | None, optional
        Extra structured context
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.category = category


class MissingTestFileError(SuiteExecutionError):
    """The suite target does not exist, so no process was spawned."""


class ProcessSpawnError(SuiteExecutionError):
    """The runner process could not be started."""


class ProcessTimeoutError(SuiteExecutionError):
    """The watchdog killed the runner process."""

    def __init__(self, timeout_ms: int, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            f"Timeout after {timeout_ms}ms",
            category=ErrorCategory.TIMEOUT,
            details=details,
        )
        self.timeout_ms = timeout_ms
