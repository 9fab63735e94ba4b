"""Root pytest configuration and shared fixtures for the testpilot test suite."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from testpilot.models.config import SuiteConfig  # noqa: E402
from testpilot.models.enums import (  # noqa: E402
    ErrorCategory,
    Severity,
    SuiteCategory,
    TestStatus,
)
from testpilot.models.results import (  # noqa: E402
    SuiteMetrics,
    TestCaseResult,
    TestError,
    TestSuiteResult,
)

FIXED_TIME = datetime(2024, 1, 15, 12, 0, 0)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """Keep tests away from the real home directory and log files."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("TESTPILOT_NO_FILE_LOGGING", "1")
    monkeypatch.setenv("TESTPILOT_LOG_DIR", str(home / "log"))
    monkeypatch.delenv("TESTPILOT_CONFIG", raising=False)
    monkeypatch.delenv("TESTPILOT_LOG_LEVEL", raising=False)
    return home


@pytest.fixture
def make_case():
    """Build a TestCaseResult with sensible defaults."""

    def _make(
        name: str = "test_example",
        status: TestStatus = TestStatus.PASSED,
        duration: float = 10,
        message: str | None = None,
        full_name: str | None = None,
        category: ErrorCategory = ErrorCategory.ASSERTION,
    ) -> TestCaseResult:
        error = None
        if status == TestStatus.FAILED:
            error = TestError(
                message=message or "assert 1 == 2",
                category=category,
                severity=Severity.MEDIUM,
            )
        return TestCaseResult(
            name=name,
            full_name=full_name or f"tests/test_mod.py::{name}",
            status=status,
            duration=duration,
            error=error,
        )

    return _make


@pytest.fixture
def make_suite():
    """Build a TestSuiteResult from test cases."""

    def _make(
        name: str = "unit",
        tests: tuple[TestCaseResult, ...] = (),
        status: TestStatus | None = None,
        category: SuiteCategory = SuiteCategory.UNIT,
        critical: bool = False,
        errors: tuple[TestError, ...] = (),
        duration: float = 100,
        metrics: SuiteMetrics | None = None,
    ) -> TestSuiteResult:
        if status is None:
            failed = any(t.status == TestStatus.FAILED for t in tests) or errors
            status = TestStatus.FAILED if failed else TestStatus.PASSED
        return TestSuiteResult(
            name=name,
            category=category,
            status=status,
            duration=duration,
            start_time=FIXED_TIME,
            end_time=FIXED_TIME,
            tests=tuple(tests),
            errors=tuple(errors),
            metrics=metrics or SuiteMetrics(),
            critical=critical,
        )

    return _make


@pytest.fixture
def make_suite_config():
    """Build a SuiteConfig."""

    def _make(name: str = "unit", file_path: str = "tests/unit", **kwargs) -> SuiteConfig:
        return SuiteConfig(name=name, file_path=file_path, **kwargs)

    return _make


@pytest.fixture
def make_result():
    """Build a TestExecutionResult around suite results."""
    from testpilot.models.config import OrchestratorConfig
    from testpilot.models.metrics import TestMetrics
    from testpilot.models.results import TestExecutionResult
    from testpilot_cli.services.test.test_reporting_service import calculate_summary

    def _make(suites=(), duration: float = 100, **kwargs) -> TestExecutionResult:
        values = {
            "summary": calculate_summary(list(suites)),
            "suite_results": tuple(suites),
            "metrics": TestMetrics(),
            "environment": None,
            "timestamp": FIXED_TIME,
            "duration": duration,
            "config": OrchestratorConfig(),
        }
        values.update(kwargs)
        return TestExecutionResult(**values)

    return _make
