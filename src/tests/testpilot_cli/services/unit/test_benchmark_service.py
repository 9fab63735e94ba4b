"""Unit tests for BenchmarkService."""

import pytest

from testpilot.models.config import BenchmarkTargets, FunctionalRule
from testpilot.models.enums import Severity, SuiteCategory, TestStatus
from testpilot.models.results import BenchmarkResult, SuiteMetrics
from testpilot_cli.services.test.benchmark_service import (
    CACHE_HIT_RATE,
    CONCURRENT_AVERAGE,
    NETWORK_PER_TEST,
    PEAK_MEMORY,
    BenchmarkService,
)

MB = 1024 * 1024


@pytest.fixture
def service(tmp_path):
    """Create a benchmark service with default targets."""
    return BenchmarkService(tmp_path)


def _benchmark(name, value, target, passed):
    return BenchmarkResult(
        suite="perf",
        benchmark=name,
        value=value,
        target=target,
        unit="",
        passed=passed,
    )


class TestRunBenchmarks:
    """Test benchmark measurement."""

    def test_all_benchmarks(self, service, make_case, make_suite):
        """Test every benchmark with data is measured."""
        suite = make_suite(
            name="perf",
            category=SuiteCategory.PERFORMANCE,
            tests=(
                make_case("test_concurrent_reads", duration=4000),
                make_case("test_parallel_writes", duration=8000),
                make_case("test_single", duration=100),
            ),
            metrics=SuiteMetrics(
                memory_used=150 * MB,
                cache_hits=3,
                cache_misses=1,
                network_requests=6,
            ),
        )

        results = {r.benchmark: r for r in service.run_benchmarks(suite)}

        assert results[CONCURRENT_AVERAGE].value == 6000
        assert results[CONCURRENT_AVERAGE].passed is False
        assert results[CACHE_HIT_RATE].value == 75
        assert results[CACHE_HIT_RATE].passed is False
        assert results[PEAK_MEMORY].value == 150
        assert results[PEAK_MEMORY].unit == "MB"
        assert results[NETWORK_PER_TEST].value == 2
        assert results[NETWORK_PER_TEST].passed is True

    def test_benchmarks_without_data_are_skipped(self, service, make_suite):
        """Test an empty suite measures nothing."""
        assert service.run_benchmarks(make_suite(category=SuiteCategory.PERFORMANCE)) == []

    def test_custom_targets(self, tmp_path, make_case, make_suite):
        """Test targets come from the configuration."""
        service = BenchmarkService(tmp_path, targets=BenchmarkTargets(network_requests_per_test=1))
        suite = make_suite(
            tests=(make_case("a"),),
            metrics=SuiteMetrics(network_requests=2),
        )

        [result] = service.run_benchmarks(suite)

        assert result.benchmark == NETWORK_PER_TEST
        assert result.passed is False


class TestCheckBenchmarks:
    """Test benchmark alerts."""

    @pytest.mark.parametrize(
        ("benchmark", "value", "target", "severity"),
        [
            (CONCURRENT_AVERAGE, 6000, 5000, Severity.HIGH),
            (CONCURRENT_AVERAGE, 10001, 5000, Severity.CRITICAL),
            (CACHE_HIT_RATE, 70, 80, Severity.HIGH),
            (CACHE_HIT_RATE, 30, 80, Severity.CRITICAL),
        ],
    )
    def test_severity(self, service, benchmark, value, target, severity):
        """Test misses far from the target are critical."""
        [alert] = service.check_benchmarks([_benchmark(benchmark, value, target, False)])

        assert alert.severity == severity
        assert alert.recommendation

    def test_passing_results_raise_nothing(self, service):
        """Test met targets produce no alerts."""
        assert service.check_benchmarks([_benchmark(PEAK_MEMORY, 10, 100, True)]) == []

    def test_message_direction(self, service):
        """Test the message says which side of the target the value is."""
        [alert] = service.check_benchmarks([_benchmark(CACHE_HIT_RATE, 50, 80, False)])

        assert "below the target of 80" in alert.message


class TestValidateFunctional:
    """Test functional pass rate rules."""

    def test_default_rules(self, service, make_case, make_suite):
        """Test cases are matched by keyword and skipped ones ignored."""
        suite = make_suite(
            name="func",
            category=SuiteCategory.FUNCTIONAL,
            tests=(
                make_case("test_validate_email"),
                make_case("test_validation_rejects_blank", status=TestStatus.FAILED),
                make_case("test_unicode_escaping"),
                make_case("test_export_skipped", status=TestStatus.SKIPPED),
            ),
        )

        results, alerts = service.validate_functional(suite)

        by_rule = {r.rule: r for r in results}
        assert set(by_rule) == {"input_validation", "escaping"}
        assert by_rule["input_validation"].pass_rate == 50
        assert by_rule["input_validation"].met is False
        assert by_rule["escaping"].met is True
        [alert] = alerts
        assert alert.rule == "input_validation"
        assert alert.severity == Severity.HIGH
        assert "(1/2)" in alert.message

    def test_custom_rules(self, tmp_path, make_case, make_suite):
        """Test configured rules replace the defaults."""
        rule = FunctionalRule(
            name="auth",
            keywords=("login",),
            threshold=100,
            severity=Severity.CRITICAL,
            suggestion="Fix login",
        )
        service = BenchmarkService(tmp_path, rules=(rule,))
        suite = make_suite(
            tests=(make_case("test_Login_ok"), make_case("test_login_bad", status=TestStatus.FAILED)),
        )

        results, [alert] = service.validate_functional(suite)

        assert results[0].total == 2
        assert alert.severity == Severity.CRITICAL
        assert alert.suggestion == "Fix login"
