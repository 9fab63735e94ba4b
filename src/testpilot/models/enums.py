"""Closed value sets used across the engine."""

from enum import Enum


class SuiteCategory(str, Enum):
    """Kind of test suite, drives execution hints."""

    INTEGRATION = "integration"
    PERFORMANCE = "performance"
    UNIT = "unit"
    FUNCTIONAL = "functional"


class TestStatus(str, Enum):
    """Outcome of a single test case or suite."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    TIMEOUT = "timeout"


class OverallStatus(str, Enum):
    """Outcome of a whole orchestration run."""

    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


class ErrorCategory(str, Enum):
    """Root-cause family of a failure."""

    ASSERTION = "assertion_failure"
    TIMEOUT = "timeout"
    NETWORK = "network_error"
    CONFIGURATION = "configuration_error"
    PERFORMANCE = "performance_degradation"
    INTEGRATION = "integration_failure"
    MOCK = "mock_failure"
    DEPENDENCY = "dependency_error"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """Severity attached to errors, alerts and groups."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANK[self]

    @classmethod
    def highest(cls, *severities: "Severity") -> "Severity":
        """Return the most severe of the given values (LOW if none)."""
        if not severities:
            return cls.LOW
        return max(severities, key=lambda s: s.rank)


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class Trend(str, Enum):
    """Direction of a performance or reliability trend."""

    IMPROVING = "improving"
    STABLE = "stable"
    DEGRADING = "degrading"


class SlowCategory(str, Enum):
    """Bucket for a slow test."""

    SLOW = "slow"
    VERY_SLOW = "very_slow"
    CRITICAL = "critical"


class AlertType(str, Enum):
    """Kind of performance alert."""

    SLOW_TEST = "slow_test"
    DEGRADATION = "degradation"
    MEMORY_LEAK = "memory_leak"
    TIMEOUT_RISK = "timeout_risk"
    HIGH_CPU = "high_cpu"


class SuggestionBucket(str, Enum):
    """Where a suggestion is presented."""

    IMMEDIATE = "immediate"
    INVESTIGATION = "investigation"
    PREVENTION = "prevention"


class Effort(str, Enum):
    """Effort needed to apply a suggestion."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DetailLevel(str, Enum):
    """How much per-test detail a rendered report carries."""

    SUMMARY = "summary"
    DETAILED = "detailed"
    VERBOSE = "verbose"


class ReportFormat(str, Enum):
    """Rendered report format."""

    SUMMARY = "summary"
    JSON = "json"
    MARKDOWN = "markdown"


class RunnerKind(str, Enum):
    """How suite commands are built."""

    PYTEST = "pytest"
    COMMAND = "command"
