"""Test orchestration and failure analysis engine."""

__version__ = "0.4.0"
