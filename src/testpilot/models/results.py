"""Result records produced during an orchestration run."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from testpilot.models.config import OrchestratorConfig
from testpilot.models.enums import (
    ErrorCategory,
    OverallStatus,
    Severity,
    SuiteCategory,
    TestStatus,
)
from testpilot.models.metrics import TestMetrics

if TYPE_CHECKING:
    from testpilot.models.analysis import (
        ErrorAnalysis,
        ErrorGroupSummary,
        SuggestionBundle,
    )
    from testpilot.models.performance import PerformanceAlert


@dataclass(frozen=True)
class TestError:
    """A failure attached to a test case or a suite.

    ``category`` is always a concrete :class:`ErrorCategory`, falling back to
    ``UNKNOWN``.
    """

    message: str
    category: ErrorCategory = ErrorCategory.UNKNOWN
    severity: Severity = Severity.MEDIUM
    stack: str | None = None
    expected: str | None = None
    actual: str | None = None
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True)
class TestCaseResult:
    """Outcome of one execution of one test case."""

    name: str
    full_name: str
    status: TestStatus
    duration: float
    error: TestError | None = None
    retry_count: int = 0

    @property
    def failed(self) -> bool:
        """Whether the case counts as a failure."""
        return self.status in (TestStatus.FAILED, TestStatus.TIMEOUT)


@dataclass(frozen=True)
class SuiteMetrics:
    """Resource usage of one suite.

    When ``estimated`` is true the network and cache figures come from name and
    duration heuristics, not from measurement.
    """

    memory_used: int = 0
    cpu_used: float = 0
    network_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    estimated: bool = True


@dataclass(frozen=True)
class TestSuiteResult:
    """Aggregated outcome of one suite, owned by the orchestrator."""

    name: str
    category: SuiteCategory
    status: TestStatus
    duration: float
    start_time: datetime
    end_time: datetime
    tests: tuple[TestCaseResult, ...] = ()
    errors: tuple[TestError, ...] = ()
    metrics: SuiteMetrics = field(default_factory=SuiteMetrics)
    retry_count: int = 0
    critical: bool = False

    @property
    def passed_count(self) -> int:
        return sum(1 for t in self.tests if t.status == TestStatus.PASSED)

    @property
    def failed_count(self) -> int:
        return sum(1 for t in self.tests if t.failed)

    @property
    def skipped_count(self) -> int:
        return sum(1 for t in self.tests if t.status == TestStatus.SKIPPED)

    @property
    def failed_tests(self) -> list[TestCaseResult]:
        return [t for t in self.tests if t.failed]


@dataclass(frozen=True)
class TestSummary:
    """Counts and overall status for a run."""

    total_suites: int
    passed_suites: int
    failed_suites: int
    skipped_suites: int
    total_tests: int
    passed_tests: int
    failed_tests: int
    skipped_tests: int
    critical_failures: int
    pass_rate: float
    overall_status: OverallStatus


@dataclass(frozen=True)
class EnvironmentInfo:
    """Where the run happened."""

    python_version: str
    python_implementation: str
    platform: str
    architecture: str
    runner_version: str
    hostname: str
    cpu_count: int
    total_memory: int
    available_memory: int
    disk_free: int
    ci_provider: str | None = None
    git_branch: str | None = None
    git_commit: str | None = None


@dataclass(frozen=True)
class BenchmarkResult:
    """One benchmark measurement for a performance suite."""

    suite: str
    benchmark: str
    value: float
    target: float
    unit: str
    passed: bool


@dataclass(frozen=True)
class BenchmarkAlert:
    """A benchmark that missed its target."""

    suite: str
    benchmark: str
    severity: Severity
    message: str
    value: float
    target: float
    recommendation: str


@dataclass(frozen=True)
class FunctionalValidationResult:
    """Pass rate of the functional cases one rule matched."""

    suite: str
    rule: str
    total: int
    passed: int
    pass_rate: float
    threshold: float
    met: bool


@dataclass(frozen=True)
class FunctionalAlert:
    """A functional rule whose pass rate fell below its threshold."""

    suite: str
    rule: str
    severity: Severity
    message: str
    pass_rate: float
    threshold: float
    suggestion: str


@dataclass(frozen=True)
class FailureAnalysis:
    """Analysis and advice for one failing test case."""

    suite: str
    test_name: str
    full_name: str
    analysis: "ErrorAnalysis"
    suggestions: "SuggestionBundle | None" = None


@dataclass(frozen=True)
class TestExecutionResult:
    """Terminal artifact of one orchestration run."""

    summary: TestSummary
    suite_results: tuple[TestSuiteResult, ...]
    metrics: TestMetrics
    environment: EnvironmentInfo | None
    timestamp: datetime
    duration: float
    config: OrchestratorConfig
    performance_alerts: tuple["PerformanceAlert", ...] = ()
    failure_analyses: tuple[FailureAnalysis, ...] = ()
    error_summary: "ErrorGroupSummary | None" = None
    benchmark_results: tuple[BenchmarkResult, ...] = ()
    benchmark_alerts: tuple[BenchmarkAlert, ...] = ()
    functional_results: tuple[FunctionalValidationResult, ...] = ()
    functional_alerts: tuple[FunctionalAlert, ...] = ()
