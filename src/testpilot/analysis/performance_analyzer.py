"""Slow test detection, degradation tracking and performance alerts."""

import math
import time
from dataclasses import replace
from typing import Any

from testpilot.analysis.history import HistoryStore
from testpilot.models.config import PerformanceThresholds
from testpilot.models.enums import AlertType, Severity, SlowCategory, TestStatus, Trend
from testpilot.models.metrics import HistoricalDataPoint, TestMetrics, TrendMetrics
from testpilot.models.performance import (
    PerformanceAlert,
    PerformanceComparison,
    PerformanceReport,
    PerformanceSummary,
    SlowTestAnalysis,
)
from testpilot.models.results import TestCaseResult, TestSuiteResult
from testpilot_logging import get_logger

logger = get_logger(__name__)

TIMEOUT_CEILING_MS = 30000
TIMEOUT_RISK_RATIO = 0.8
TIMEOUT_CRITICAL_RATIO = 0.95
TREND_WINDOW = 3
TREND_CHANGE_PERCENT = 10
RELIABILITY_CHANGE_POINTS = 5
AGGREGATE_HISTORY_POINTS = 20

SLOW_ALERT_SEVERITY = {
    SlowCategory.CRITICAL: Severity.CRITICAL,
    SlowCategory.VERY_SLOW: Severity.HIGH,
    SlowCategory.SLOW: Severity.MEDIUM,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0


def _iter_tests(suites: list[TestSuiteResult]):
    for suite in suites:
        for test in suite.tests:
            yield suite, test


class PerformanceAnalyzer:
    """Analyze test durations against thresholds and history.

    Parameters
    ----------
    thresholds : PerformanceThresholds | None
        Threshold overrides, defaults when omitted
    history : HistoryStore | None
        Store of past samples; a private one is created when omitted
    """

    def __init__(
        self,
        thresholds: PerformanceThresholds | None = None,
        history: HistoryStore | None = None,
    ) -> None:
        self.thresholds = thresholds or PerformanceThresholds()
        self.history = history if history is not None else HistoryStore()

    def update_thresholds(self, **changes: Any) -> PerformanceThresholds:
        """Override some thresholds and return the new set."""
        self.thresholds = replace(self.thresholds, **changes)
        return self.thresholds

    def categorize(self, duration: float) -> SlowCategory | None:
        """Slow bucket for a duration, None when under the slow threshold."""
        if duration >= self.thresholds.very_slow_test:
            return SlowCategory.CRITICAL
        if duration >= self.thresholds.slow_test * 2:
            return SlowCategory.VERY_SLOW
        if duration >= self.thresholds.slow_test:
            return SlowCategory.SLOW
        return None

    @staticmethod
    def percentile(value: float, sorted_values: list[float]) -> int:
        """Percentile rank of a value in an ascending list.

        Uses the first index whose value is at least ``value``, so ties yield
        the lower percentile.
        """
        for index, candidate in enumerate(sorted_values):
            if candidate >= value:
                return _round_half_up(index / len(sorted_values) * 100)
        return 100

    def identify_slow_tests(
        self,
        suites: list[TestSuiteResult],
    ) -> list[SlowTestAnalysis]:
        """Tests over the slow threshold, slowest first.

        Parameters
        ----------
        suites : list[TestSuiteResult]
            Suites of the run

        Returns
        -------
        list[SlowTestAnalysis]
            Slow tests sorted by descending duration
        """
        durations = sorted(test.duration for _, test in _iter_tests(suites))
        slow: list[SlowTestAnalysis] = []
        for suite, test in _iter_tests(suites):
            category = self.categorize(test.duration)
            if category is None:
                continue
            slow.append(
                SlowTestAnalysis(
                    test_name=test.full_name,
                    suite_name=suite.name,
                    duration=test.duration,
                    category=category,
                    percentile=self.percentile(test.duration, durations),
                ),
            )
        slow.sort(key=lambda s: s.duration, reverse=True)
        return slow

    def detect_degradation(
        self,
        suites: list[TestSuiteResult],
    ) -> list[PerformanceComparison]:
        """Compare each test against its most recent historical sample.

        Parameters
        ----------
        suites : list[TestSuiteResult]
            Suites of the run

        Returns
        -------
        list[PerformanceComparison]
            Comparisons sorted by descending absolute change
        """
        threshold = self.thresholds.degradation
        comparisons: list[PerformanceComparison] = []
        for _, test in _iter_tests(suites):
            previous = self.history.latest(test.full_name)
            if previous is None or previous.duration <= 0:
                continue
            change = (test.duration - previous.duration) / previous.duration * 100
            if change > threshold:
                trend = Trend.DEGRADING
            elif change < -threshold:
                trend = Trend.IMPROVING
            else:
                trend = Trend.STABLE
            comparisons.append(
                PerformanceComparison(
                    test_name=test.full_name,
                    current_duration=test.duration,
                    previous_duration=previous.duration,
                    change_percentage=change,
                    trend=trend,
                    is_significant=abs(change) >= threshold,
                ),
            )
        comparisons.sort(key=lambda c: abs(c.change_percentage), reverse=True)
        return comparisons

    def generate_alerts(
        self,
        suites: list[TestSuiteResult],
        metrics: TestMetrics | None = None,
    ) -> list[PerformanceAlert]:
        """Slow test, degradation, timeout risk, memory and CPU alerts.

        Parameters
        ----------
        suites : list[TestSuiteResult]
            Suites of the run
        metrics : TestMetrics | None
            Run metrics, used for the memory growth and CPU alerts

        Returns
        -------
        list[PerformanceAlert]
            Alerts sorted by descending severity
        """
        alerts: list[PerformanceAlert] = []

        for slow in self.identify_slow_tests(suites):
            threshold = (
                self.thresholds.very_slow_test
                if slow.category == SlowCategory.CRITICAL
                else self.thresholds.slow_test
            )
            alerts.append(
                PerformanceAlert(
                    type=AlertType.SLOW_TEST,
                    severity=SLOW_ALERT_SEVERITY[slow.category],
                    test_name=slow.test_name,
                    message=(
                        f"{slow.test_name} took {slow.duration:.0f}ms "
                        f"({slow.category.value}, p{slow.percentile})"
                    ),
                    value=slow.duration,
                    threshold=threshold,
                    recommendation="Profile the test and move expensive setup "
                    "into shared fixtures",
                ),
            )

        for comparison in self.detect_degradation(suites):
            if comparison.trend != Trend.DEGRADING or not comparison.is_significant:
                continue
            severity = (
                Severity.CRITICAL
                if comparison.change_percentage
                >= self.thresholds.significant_degradation
                else Severity.HIGH
            )
            alerts.append(
                PerformanceAlert(
                    type=AlertType.DEGRADATION,
                    severity=severity,
                    test_name=comparison.test_name,
                    message=(
                        f"{comparison.test_name} slowed down by "
                        f"{comparison.change_percentage:.1f}% "
                        f"({comparison.previous_duration:.0f}ms -> "
                        f"{comparison.current_duration:.0f}ms)"
                    ),
                    value=comparison.change_percentage,
                    threshold=self.thresholds.degradation,
                    recommendation="Review changes since the previous run",
                ),
            )

        for _, test in _iter_tests(suites):
            alert = self._timeout_risk_alert(test)
            if alert is not None:
                alerts.append(alert)

        if metrics is not None:
            alert = self._memory_alert(metrics)
            if alert is not None:
                alerts.append(alert)
            alert = self._cpu_alert(metrics, suites)
            if alert is not None:
                alerts.append(alert)

        alerts.sort(key=lambda a: a.severity.rank, reverse=True)
        return alerts

    @staticmethod
    def _timeout_risk_alert(test: TestCaseResult) -> PerformanceAlert | None:
        ratio = test.duration / TIMEOUT_CEILING_MS
        if ratio < TIMEOUT_RISK_RATIO:
            return None
        severity = Severity.CRITICAL if ratio >= TIMEOUT_CRITICAL_RATIO else Severity.HIGH
        return PerformanceAlert(
            type=AlertType.TIMEOUT_RISK,
            severity=severity,
            test_name=test.full_name,
            message=(
                f"{test.full_name} used {ratio * 100:.0f}% of the "
                f"{TIMEOUT_CEILING_MS}ms timeout"
            ),
            value=test.duration,
            threshold=TIMEOUT_CEILING_MS * TIMEOUT_RISK_RATIO,
            recommendation="Speed up the test before it starts timing out",
        )

    def _memory_alert(self, metrics: TestMetrics) -> PerformanceAlert | None:
        usage = metrics.resources.memory_usage
        growth_mb = (usage.final - usage.initial) / (1024 * 1024)
        if growth_mb < self.thresholds.memory_leak:
            return None
        return PerformanceAlert(
            type=AlertType.MEMORY_LEAK,
            severity=Severity.HIGH,
            test_name="*",
            message=f"Memory grew by {growth_mb:.1f}MB during the run",
            value=growth_mb,
            threshold=self.thresholds.memory_leak,
            recommendation="Look for caches or fixtures that are never released",
        )

    def _cpu_alert(
        self,
        metrics: TestMetrics,
        suites: list[TestSuiteResult],
    ) -> PerformanceAlert | None:
        # CPU time over suite wall time; parallel workers can push it past 100
        wall_ms = sum(suite.duration for suite in suites)
        if wall_ms <= 0:
            return None
        percent = metrics.resources.cpu_usage.total / wall_ms * 100
        if percent < self.thresholds.cpu_usage:
            return None
        return PerformanceAlert(
            type=AlertType.HIGH_CPU,
            severity=Severity.MEDIUM,
            test_name="*",
            message=f"Runner processes used {percent:.0f}% CPU over the run",
            value=percent,
            threshold=self.thresholds.cpu_usage,
            recommendation="Check for busy loops or lower the worker count",
        )

    def add_history(self, suites: list[TestSuiteResult]) -> None:
        """Record every test of the run in the history store."""
        now = time.time()
        for _, test in _iter_tests(suites):
            self.history.add(
                test.full_name,
                HistoricalDataPoint(
                    timestamp=now,
                    duration=test.duration,
                    pass_rate=100 if test.status == TestStatus.PASSED else 0,
                    coverage=0,
                ),
            )
        logger.debug("Recorded history for %d tests", len(self.history))

    def calculate_trend(self, test_name: str | None = None) -> TrendMetrics:
        """Trend of one test, or of every recorded sample.

        Parameters
        ----------
        test_name : str | None
            Test to look at, all tests when None

        Returns
        -------
        TrendMetrics
            Performance, reliability and coverage trend
        """
        if test_name is not None:
            points = self.history.get(test_name)
            historical = points
        else:
            points = self.history.all_points()
            historical = points[-AGGREGATE_HISTORY_POINTS:]

        return TrendMetrics(
            performance_trend=self._duration_trend([p.duration for p in points]),
            reliability_trend=self._rate_trend([p.pass_rate for p in points]),
            coverage_trend=self._rate_trend([p.coverage for p in points]),
            historical_data=tuple(historical),
        )

    @staticmethod
    def _windows(values: list[float]) -> tuple[float, float] | None:
        if len(values) < TREND_WINDOW:
            return None
        recent = values[-TREND_WINDOW:]
        older = values[-2 * TREND_WINDOW : -TREND_WINDOW]
        if not older:
            return None
        return _average(recent), _average(older)

    def _duration_trend(self, durations: list[float]) -> Trend:
        windows = self._windows(durations)
        if windows is None:
            return Trend.STABLE
        recent, older = windows
        if older <= 0:
            return Trend.STABLE
        change = (recent - older) / older * 100
        if change > TREND_CHANGE_PERCENT:
            return Trend.DEGRADING
        if change < -TREND_CHANGE_PERCENT:
            return Trend.IMPROVING
        return Trend.STABLE

    def _rate_trend(self, rates: list[float]) -> Trend:
        windows = self._windows(rates)
        if windows is None:
            return Trend.STABLE
        recent, older = windows
        if recent - older > RELIABILITY_CHANGE_POINTS:
            return Trend.IMPROVING
        if recent - older < -RELIABILITY_CHANGE_POINTS:
            return Trend.DEGRADING
        return Trend.STABLE

    def generate_report(
        self,
        suites: list[TestSuiteResult],
        metrics: TestMetrics | None = None,
    ) -> PerformanceReport:
        """Bundle every performance finding for a run.

        Parameters
        ----------
        suites : list[TestSuiteResult]
            Suites of the run
        metrics : TestMetrics | None
            Run metrics

        Returns
        -------
        PerformanceReport
            Summary, findings and recommendations
        """
        durations = [test.duration for _, test in _iter_tests(suites)]
        slow_tests = self.identify_slow_tests(suites)
        degradations = self.detect_degradation(suites)
        alerts = self.generate_alerts(suites, metrics)
        trends = self.calculate_trend()

        summary = PerformanceSummary(
            total_tests=len(durations),
            slow_tests=sum(1 for s in slow_tests if s.category == SlowCategory.SLOW),
            critical_tests=sum(
                1 for s in slow_tests if s.category == SlowCategory.CRITICAL
            ),
            average_duration=_average(durations),
            total_duration=sum(durations),
        )

        recommendations: list[str] = []
        if slow_tests:
            recommendations.append(
                f"Optimize {len(slow_tests)} slow test(s), starting with "
                f"{slow_tests[0].test_name}",
            )
        degrading = [d for d in degradations if d.trend == Trend.DEGRADING]
        if degrading:
            recommendations.append(
                f"Investigate {len(degrading)} test(s) with degrading performance",
            )
        if any(a.severity == Severity.CRITICAL for a in alerts):
            recommendations.append("Resolve critical performance alerts first")
        if trends.performance_trend == Trend.DEGRADING:
            recommendations.append("Overall test duration is trending upwards")
        if not recommendations:
            recommendations.append("Performance is within thresholds")

        return PerformanceReport(
            summary=summary,
            slow_tests=tuple(slow_tests),
            degradations=tuple(degradations),
            alerts=tuple(alerts),
            trends=trends,
            recommendations=tuple(recommendations),
        )

    def export_historical_data(self) -> dict[str, list[HistoricalDataPoint]]:
        """Copy of the history store."""
        return self.history.export()

    def clear_historical_data(self) -> None:
        """Drop all recorded history."""
        self.history.clear()
