"""Derived performance analysis records. Never persisted."""

from dataclasses import dataclass

from testpilot.models.enums import AlertType, Severity, SlowCategory, Trend
from testpilot.models.metrics import TrendMetrics


@dataclass(frozen=True)
class SlowTestAnalysis:
    """A test over the slow threshold."""

    test_name: str
    suite_name: str
    duration: float
    category: SlowCategory
    percentile: int


@dataclass(frozen=True)
class PerformanceComparison:
    """Current duration of a test against its last recorded one."""

    test_name: str
    current_duration: float
    previous_duration: float
    change_percentage: float
    trend: Trend
    is_significant: bool


@dataclass(frozen=True)
class PerformanceAlert:
    """A performance problem worth surfacing."""

    type: AlertType
    severity: Severity
    test_name: str
    message: str
    value: float
    threshold: float
    recommendation: str


@dataclass(frozen=True)
class PerformanceSummary:
    """Counts for a performance report.

    ``slow_tests`` only counts the ``slow`` bucket.
    """

    total_tests: int
    slow_tests: int
    critical_tests: int
    average_duration: float
    total_duration: float


@dataclass(frozen=True)
class PerformanceReport:
    """Everything the performance analyzer knows about a run."""

    summary: PerformanceSummary
    slow_tests: tuple[SlowTestAnalysis, ...]
    degradations: tuple[PerformanceComparison, ...]
    alerts: tuple[PerformanceAlert, ...]
    trends: TrendMetrics
    recommendations: tuple[str, ...]
