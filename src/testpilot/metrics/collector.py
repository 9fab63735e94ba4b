"""Resource snapshots and derived metrics for tests and suites.

Network and cache figures for suites are heuristic estimates derived from test
names and durations; they are flagged with ``SuiteMetrics.estimated``.
"""

import math
import time
from typing import Any

import psutil

from testpilot.models.enums import TestStatus, Trend
from testpilot.models.metrics import (
    CpuUsage,
    MemoryLeak,
    MemoryUsage,
    PerformanceMetrics,
    ResourceMetrics,
    ResourceSnapshot,
    TestExecutionMetrics,
    TestMetrics,
    TestStatistics,
    TrendMetrics,
)
from testpilot.models.results import SuiteMetrics, TestCaseResult, TestSuiteResult
from testpilot.models.serialization import to_dict
from testpilot_logging import get_logger

logger = get_logger(__name__)

LEAK_GROWTH_BYTES = 10 * 1024 * 1024
TOP_TESTS = 10
SETUP_SHARE = 0.05
TEARDOWN_SHARE = 0.03
STATISTICS_WINDOW = 3
STATISTICS_TREND_PERCENT = 10

NETWORK_TOKENS = ("network", "fetch", "api")
BATCH_TOKENS = ("multiple", "batch")
CACHE_TOKEN = "cache"


def estimate_network_requests(test: TestCaseResult) -> int:
    """Estimated network calls of a test, from its name and duration.

    Parameters
    ----------
    test : TestCaseResult
        Test case

    Returns
    -------
    int
        Zero unless the name mentions network activity
    """
    name = test.name.lower()
    if not any(token in name for token in NETWORK_TOKENS):
        return 0
    if any(token in name for token in BATCH_TOKENS):
        return math.ceil(test.duration / 100)
    if test.duration > 1000:
        return math.ceil(test.duration / 500)
    return 1


def estimate_cache_activity(test: TestCaseResult) -> tuple[int, int]:
    """Estimated (hits, misses) of a test, from its name, status and duration."""
    if CACHE_TOKEN not in test.name.lower():
        return 0, 0
    if test.status == TestStatus.PASSED and test.duration < 100:
        return 3, 1
    if test.status == TestStatus.FAILED or test.duration > 500:
        return 1, 3
    return 2, 2


class MetricsCollector:
    """Capture resource snapshots around tests and derive metrics.

    Parameters
    ----------
    process : psutil.Process | None
        Process to sample, the current one by default
    """

    def __init__(self, process: psutil.Process | None = None) -> None:
        self._process = process or psutil.Process()
        self._active: dict[str, ResourceSnapshot] = {}
        self._history: dict[str, list[TestExecutionMetrics]] = {}

    def snapshot(self) -> ResourceSnapshot:
        """Take a resource snapshot of the sampled process."""
        memory = self._process.memory_info()
        cpu = self._process.cpu_times()
        return ResourceSnapshot(
            timestamp=time.time(),
            perf_counter=time.perf_counter() * 1000,
            rss=memory.rss,
            vms=memory.vms,
            cpu_user=cpu.user * 1000,
            cpu_system=cpu.system * 1000,
        )

    def start_test(self, test_id: str) -> None:
        """Record the starting snapshot of a test."""
        self._active[test_id] = self.snapshot()

    def end_test(self, test_id: str) -> TestExecutionMetrics | None:
        """Finish a test and store its metrics.

        Parameters
        ----------
        test_id : str
            Identifier passed to :meth:`start_test`

        Returns
        -------
        TestExecutionMetrics | None
            The deltas, or None if the test was never started
        """
        start = self._active.pop(test_id, None)
        if start is None:
            logger.warning("No start snapshot for test %s", test_id)
            return None

        end = self.snapshot()
        metrics = TestExecutionMetrics(
            test_id=test_id,
            duration=end.perf_counter - start.perf_counter,
            memory_delta=end.rss - start.rss,
            cpu_user=end.cpu_user - start.cpu_user,
            cpu_system=end.cpu_system - start.cpu_system,
            start=start,
            end=end,
        )
        self._history.setdefault(test_id, []).append(metrics)
        return metrics

    def get_test_metrics(self, test_id: str) -> list[TestExecutionMetrics]:
        """Every recorded execution of a test."""
        return list(self._history.get(test_id, ()))

    def collect_suite_metrics(self, suite: TestSuiteResult) -> SuiteMetrics:
        """Aggregate resource usage and estimated activity of a suite.

        Memory and CPU sum the latest deltas recorded under each test's
        ``full_name``; tests never passed to :meth:`start_test` add nothing.
        Network and cache figures are estimates.

        Parameters
        ----------
        suite : TestSuiteResult
            Suite to aggregate

        Returns
        -------
        SuiteMetrics
            Aggregated metrics
        """
        memory = 0
        cpu = 0.0
        network = 0
        hits = 0
        misses = 0
        for test in suite.tests:
            recorded = self._history.get(test.full_name)
            if recorded:
                latest = recorded[-1]
                memory += latest.memory_delta
                cpu += latest.cpu_user + latest.cpu_system
            network += estimate_network_requests(test)
            test_hits, test_misses = estimate_cache_activity(test)
            hits += test_hits
            misses += test_misses

        return SuiteMetrics(
            memory_used=memory,
            cpu_used=cpu,
            network_requests=network,
            cache_hits=hits,
            cache_misses=misses,
            estimated=True,
        )

    def calculate_performance_metrics(
        self,
        suites: list[TestSuiteResult],
    ) -> PerformanceMetrics:
        """Timing statistics over every test of the run.

        Setup and teardown estimates are shares of the summed suite durations,
        so they cover suites without parsed cases too.
        """
        suite_total = sum(suite.duration for suite in suites)
        tests = [test for suite in suites for test in suite.tests]
        if not tests:
            return PerformanceMetrics(
                estimated_setup_time=suite_total * SETUP_SHARE,
                estimated_teardown_time=suite_total * TEARDOWN_SHARE,
            )

        durations = sorted(test.duration for test in tests)
        total = sum(durations)
        by_duration = sorted(tests, key=lambda t: t.duration, reverse=True)
        fastest = [t for t in reversed(by_duration) if t.duration > 0]

        return PerformanceMetrics(
            average_test_duration=total / len(durations),
            median_test_duration=durations[len(durations) // 2],
            total_execution_time=total,
            slowest_tests=tuple(by_duration[:TOP_TESTS]),
            fastest_tests=tuple(fastest[:TOP_TESTS]),
            estimated_setup_time=suite_total * SETUP_SHARE,
            estimated_teardown_time=suite_total * TEARDOWN_SHARE,
        )

    def calculate_resource_metrics(
        self,
        suites: list[TestSuiteResult],
    ) -> ResourceMetrics:
        """Memory, CPU and estimated activity over the run.

        Parameters
        ----------
        suites : list[TestSuiteResult]
            Suites of the run

        Returns
        -------
        ResourceMetrics
            Memory usage, CPU time, possible leaks and activity totals
        """
        executions = [m for recorded in self._history.values() for m in recorded]
        executions.sort(key=lambda m: m.start.perf_counter)

        network = sum(suite.metrics.network_requests for suite in suites)
        hits = sum(suite.metrics.cache_hits for suite in suites)
        misses = sum(suite.metrics.cache_misses for suite in suites)
        hit_rate = hits / (hits + misses) * 100 if hits + misses else 0

        if not executions:
            return ResourceMetrics(network_requests=network, cache_hit_rate=hit_rate)

        end_rss = [m.end.rss for m in executions]
        memory = MemoryUsage(
            peak=max(max(end_rss), max(m.start.rss for m in executions)),
            average=sum(end_rss) / len(end_rss),
            initial=executions[0].start.rss,
            final=executions[-1].end.rss,
        )
        cpu = CpuUsage(
            user=sum(m.cpu_user for m in executions),
            system=sum(m.cpu_system for m in executions),
        )
        return ResourceMetrics(
            memory_usage=memory,
            cpu_usage=cpu,
            network_requests=network,
            cache_hit_rate=hit_rate,
            possible_leaks=tuple(self.detect_leaks(executions)),
        )

    @staticmethod
    def detect_leaks(executions: list[TestExecutionMetrics]) -> list[MemoryLeak]:
        """Flag consecutive executions whose resident memory grew over 10MB."""
        leaks: list[MemoryLeak] = []
        for previous, current in zip(executions, executions[1:]):
            growth = current.end.rss - previous.end.rss
            if growth > LEAK_GROWTH_BYTES:
                leaks.append(
                    MemoryLeak(
                        test_id=current.test_id,
                        previous_test_id=previous.test_id,
                        growth=growth,
                        before=previous.end.rss,
                        after=current.end.rss,
                    ),
                )
        return leaks

    def calculate_test_metrics(
        self,
        suites: list[TestSuiteResult],
        trends: TrendMetrics | None = None,
    ) -> TestMetrics:
        """Performance, resource and trend metrics of a run."""
        return TestMetrics(
            performance=self.calculate_performance_metrics(suites),
            resources=self.calculate_resource_metrics(suites),
            trends=trends or TrendMetrics(),
        )

    def get_test_statistics(self, test_id: str) -> TestStatistics | None:
        """Statistics over every recorded execution of a test.

        The trend compares the first and last of the three most recent
        durations; a change over 10% either way is reported.
        """
        recorded = self._history.get(test_id)
        if not recorded:
            return None

        durations = [m.duration for m in recorded]
        trend = Trend.STABLE
        recent = durations[-STATISTICS_WINDOW:]
        if len(recent) >= 2 and recent[0] > 0:
            change = (recent[-1] - recent[0]) / recent[0] * 100
            if change > STATISTICS_TREND_PERCENT:
                trend = Trend.DEGRADING
            elif change < -STATISTICS_TREND_PERCENT:
                trend = Trend.IMPROVING

        return TestStatistics(
            test_id=test_id,
            executions=len(recorded),
            average_duration=sum(durations) / len(durations),
            min_duration=min(durations),
            max_duration=max(durations),
            average_memory_delta=sum(m.memory_delta for m in recorded) / len(recorded),
            trend=trend,
        )

    def export_metrics(self) -> dict[str, Any]:
        """Every recorded execution plus a summary, as plain data."""
        executions = [m for recorded in self._history.values() for m in recorded]
        return {
            "tests": {
                test_id: [to_dict(m) for m in recorded]
                for test_id, recorded in self._history.items()
            },
            "summary": {
                "total_tests": len(self._history),
                "total_executions": len(executions),
                "total_duration": sum(m.duration for m in executions),
                "active_tests": sorted(self._active),
            },
        }

    def clear(self) -> None:
        """Forget every snapshot and recorded execution."""
        self._active.clear()
        self._history.clear()
