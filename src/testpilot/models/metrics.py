"""Resource and timing metric records."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from testpilot.models.enums import Trend

if TYPE_CHECKING:
    from testpilot.models.results import TestCaseResult


@dataclass(frozen=True)
class ResourceSnapshot:
    """Point-in-time resource usage of the current process.

    Parameters
    ----------
    timestamp : float
        Wall clock time, seconds since the epoch
    perf_counter : float
        Monotonic clock reading in milliseconds
    rss : int
        Resident set size in bytes
    vms : int
        Virtual memory size in bytes
    cpu_user : float
        User CPU time in milliseconds
    cpu_system : float
        System CPU time in milliseconds
    """

    timestamp: float
    perf_counter: float
    rss: int
    vms: int
    cpu_user: float
    cpu_system: float


@dataclass(frozen=True)
class TestExecutionMetrics:
    """Delta between the start and end snapshots of one test."""

    test_id: str
    duration: float
    memory_delta: int
    cpu_user: float
    cpu_system: float
    start: ResourceSnapshot
    end: ResourceSnapshot


@dataclass(frozen=True)
class TestStatistics:
    """Statistics over every recorded execution of one test."""

    test_id: str
    executions: int
    average_duration: float
    min_duration: float
    max_duration: float
    average_memory_delta: float
    trend: Trend


@dataclass(frozen=True)
class MemoryUsage:
    """Memory usage across the recorded executions, in bytes."""

    peak: int = 0
    average: float = 0
    initial: int = 0
    final: int = 0


@dataclass(frozen=True)
class CpuUsage:
    """CPU time across the recorded executions, in milliseconds."""

    user: float = 0
    system: float = 0

    @property
    def total(self) -> float:
        return self.user + self.system


@dataclass(frozen=True)
class MemoryLeak:
    """Memory growth between two consecutive test executions."""

    test_id: str
    previous_test_id: str
    growth: int
    before: int
    after: int


@dataclass(frozen=True)
class PerformanceMetrics:
    """Timing statistics over every test case of a run.

    Setup and teardown times are estimated as fixed shares of the suite time.
    """

    average_test_duration: float = 0
    median_test_duration: float = 0
    total_execution_time: float = 0
    slowest_tests: tuple["TestCaseResult", ...] = ()
    fastest_tests: tuple["TestCaseResult", ...] = ()
    estimated_setup_time: float = 0
    estimated_teardown_time: float = 0


@dataclass(frozen=True)
class ResourceMetrics:
    """Resource usage over a run."""

    memory_usage: MemoryUsage = field(default_factory=MemoryUsage)
    cpu_usage: CpuUsage = field(default_factory=CpuUsage)
    network_requests: int = 0
    cache_hit_rate: float = 0
    possible_leaks: tuple[MemoryLeak, ...] = ()


@dataclass(frozen=True)
class HistoricalDataPoint:
    """One retained sample for a test name."""

    timestamp: float
    duration: float
    pass_rate: float
    coverage: float = 0


@dataclass(frozen=True)
class TrendMetrics:
    """Direction of performance, reliability and coverage."""

    performance_trend: Trend = Trend.STABLE
    reliability_trend: Trend = Trend.STABLE
    coverage_trend: Trend = Trend.STABLE
    historical_data: tuple[HistoricalDataPoint, ...] = ()


@dataclass(frozen=True)
class TestMetrics:
    """Performance, resource and trend metrics of a run."""

    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    resources: ResourceMetrics = field(default_factory=ResourceMetrics)
    trends: TrendMetrics = field(default_factory=TrendMetrics)
