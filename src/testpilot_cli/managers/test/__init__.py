"""Test-related managers for the testpilot CLI."""

from testpilot_cli.managers.test.test_orchestrator import (
    TestOrchestrator,
    validate_config,
)

__all__ = [
    "TestOrchestrator",
    "validate_config",
]
