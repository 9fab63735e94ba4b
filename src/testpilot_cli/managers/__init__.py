"""Manager classes for the testpilot CLI.

Managers own services and coordinate them for CLI commands and for
programmatic use.
"""


# Use lazy imports to avoid circular dependencies
def __getattr__(name):
    """Lazy import managers to avoid circular dependencies."""
    if name == "TestOrchestrator":
        from .test import TestOrchestrator

        return TestOrchestrator
    if name == "BaseOrchestrator":
        from .base import BaseOrchestrator

        return BaseOrchestrator
    msg = f"module 'testpilot_cli.managers' has no attribute '{name}'"
    raise AttributeError(msg)


__all__ = [
    "BaseOrchestrator",
    "TestOrchestrator",
]
