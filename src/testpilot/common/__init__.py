"""Shared building blocks for the testpilot core."""

from testpilot.common.errors import (
    ConfigurationError,
    FileOperationError,
    MissingTestFileError,
    ProcessSpawnError,
    ProcessTimeoutError,
    SuiteExecutionError,
    TestpilotError,
)

__all__ = [
    "ConfigurationError",
    "FileOperationError",
    "MissingTestFileError",
    "ProcessSpawnError",
    "ProcessTimeoutError",
    "SuiteExecutionError",
    "TestpilotError",
]
