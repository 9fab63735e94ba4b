"""Unit tests for error classification and severity rules."""

import pytest

from testpilot.analysis.classification import (
    CLASSIFICATION_RULES,
    DEFAULT_SEVERITY,
    classify_error,
    determine_severity,
)
from testpilot.models.analysis import ErrorContext
from testpilot.models.enums import ErrorCategory, Severity, SuiteCategory


class TestClassifyError:
    """Test classify_error."""

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("mock was called with unexpected arguments", ErrorCategory.MOCK),
            ("Test timed out after 5000 ms", ErrorCategory.TIMEOUT),
            ("Timeout of 2000ms exceeded", ErrorCategory.TIMEOUT),
            ("Network error while loading", ErrorCategory.NETWORK),
            ("fetch failed", ErrorCategory.NETWORK),
            ("ConnectionRefusedError: [Errno 111]", ErrorCategory.NETWORK),
            ("assert 1 == 2", ErrorCategory.ASSERTION),
            ("Expected 3 but got 4", ErrorCategory.ASSERTION),
            ("Missing configuration value DATABASE_URL", ErrorCategory.CONFIGURATION),
            ("env var not set", ErrorCategory.CONFIGURATION),
            ("memory usage too high", ErrorCategory.PERFORMANCE),
            ("service unavailable", ErrorCategory.INTEGRATION),
            ("ModuleNotFoundError: No module named 'yaml'", ErrorCategory.DEPENDENCY),
            ("something odd happened", ErrorCategory.UNKNOWN),
        ],
    )
    def test_categories(self, message, expected):
        """Test messages map to the expected category."""
        assert classify_error(message) == expected

    def test_case_insensitive(self):
        """Test classification ignores case."""
        assert classify_error("NETWORK ERROR") == ErrorCategory.NETWORK

    def test_stack_is_considered(self):
        """Test keywords in the stack contribute to the category."""
        assert (
            classify_error("boom", stack="ImportError: cannot import name 'x'")
            == ErrorCategory.DEPENDENCY
        )

    def test_timeout_wins_over_network(self):
        """Test the ordered rules resolve shared keywords."""
        assert classify_error("request timeout exceeded") == ErrorCategory.TIMEOUT

    def test_env_inside_word_does_not_match(self):
        """Test virtualenv paths do not read as configuration errors."""
        assert classify_error("boom", stack="/home/u/.venv/lib/x.py") != (
            ErrorCategory.CONFIGURATION
        )

    def test_result_always_in_closed_set(self):
        """Test every rule yields a known category."""
        for rule in CLASSIFICATION_RULES:
            assert rule.category in ErrorCategory

    def test_every_category_has_default_severity(self):
        """Test the severity table covers every category."""
        assert set(DEFAULT_SEVERITY) == set(ErrorCategory)


class TestDetermineSeverity:
    """Test determine_severity."""

    @pytest.fixture
    def context(self):
        """Create a plain unit test context."""
        return ErrorContext(
            test_name="test_a",
            suite_name="unit",
            test_category=SuiteCategory.UNIT,
        )

    def test_configuration_always_critical(self, context):
        """Test configuration errors are critical regardless of context."""
        assert (
            determine_severity(ErrorCategory.CONFIGURATION, context) == Severity.CRITICAL
        )

    def test_retries_raise_to_high(self):
        """Test an error that needed several retries is at least high."""
        context = ErrorContext(test_name="t", suite_name="s", retry_count=2)

        assert determine_severity(ErrorCategory.ASSERTION, context) == Severity.HIGH

    def test_single_retry_keeps_default(self):
        """Test one retry does not change the severity."""
        context = ErrorContext(test_name="t", suite_name="s", retry_count=1)

        assert determine_severity(ErrorCategory.ASSERTION, context) == Severity.MEDIUM

    def test_critical_integration_suite(self):
        """Test failures in critical integration suites are critical."""
        context = ErrorContext(
            test_name="t",
            suite_name="payments",
            test_category=SuiteCategory.INTEGRATION,
            critical=True,
        )

        assert determine_severity(ErrorCategory.NETWORK, context) == Severity.CRITICAL

    def test_integration_suite_named_critical(self):
        """Test a suite name mentioning critical counts as critical."""
        context = ErrorContext(
            test_name="t",
            suite_name="critical-integration",
            test_category=SuiteCategory.INTEGRATION,
        )

        assert determine_severity(ErrorCategory.ASSERTION, context) == Severity.CRITICAL

    @pytest.mark.parametrize(
        ("category", "expected"),
        [
            (ErrorCategory.DEPENDENCY, Severity.HIGH),
            (ErrorCategory.INTEGRATION, Severity.HIGH),
            (ErrorCategory.TIMEOUT, Severity.MEDIUM),
            (ErrorCategory.PERFORMANCE, Severity.LOW),
            (ErrorCategory.UNKNOWN, Severity.LOW),
        ],
    )
    def test_defaults(self, context, category, expected):
        """Test category defaults apply without special context."""
        assert determine_severity(category, context) == expected
