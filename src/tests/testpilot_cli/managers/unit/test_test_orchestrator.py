"""Unit tests for TestOrchestrator."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import pytest

from testpilot.common.errors import ConfigurationError, ProcessSpawnError
from testpilot.metrics.collector import MetricsCollector
from testpilot.models.config import ExecutionConfig, OrchestratorConfig, ReportConfig
from testpilot.models.enums import (
    ErrorCategory,
    OverallStatus,
    Severity,
    SuiteCategory,
    TestStatus,
)
from testpilot_cli.managers.test.test_orchestrator import (
    TestOrchestrator,
    validate_config,
)
from testpilot_cli.services.test.suite_execution_service import (
    SuiteExecutionService,
    SuiteRun,
)

MB = 1024 * 1024


def _report(*outcomes: str) -> str:
    tests = []
    for index, outcome in enumerate(outcomes):
        call = {"duration": 0.01, "outcome": outcome}
        if outcome == "failed":
            call["crash"] = {"message": "AssertionError: assert 1 == 2"}
        tests.append(
            {
                "nodeid": f"tests/test_mod.py::test_{index}",
                "outcome": outcome,
                "call": call,
            },
        )
    return json.dumps({"tests": tests})


PASSING = SuiteRun(
    stdout="",
    stderr="",
    returncode=0,
    duration=50,
    report_text=_report("passed"),
)
FAILING = SuiteRun(
    stdout="",
    stderr="",
    returncode=1,
    duration=50,
    report_text=_report("passed", "failed"),
)


def _config(make_suite_config, *suites, **execution):
    values = {"retry_backoff_ms": 0}
    values.update(execution)
    return OrchestratorConfig(
        suites=tuple(suites) or (make_suite_config(),),
        execution=ExecutionConfig(**values),
        report=ReportConfig(include_environment_info=False),
    )


def _orchestrator(tmp_path, config, runs):
    """Build an orchestrator whose suite executions return canned runs.

    ``runs`` maps suite names to a SuiteRun, an exception, or a list of those
    consumed one per attempt.
    """
    orchestrator = TestOrchestrator(
        config,
        repo_root=tmp_path,
        command_executor=Mock(),
        show_progress=False,
    )
    pending = {
        name: list(value) if isinstance(value, list) else value
        for name, value in runs.items()
    }

    async def fake_execute(suite, attempt=1, on_start=None):
        value = pending[suite.name]
        if isinstance(value, list):
            value = value.pop(0)
        if isinstance(value, Exception):
            raise value
        return value

    service = orchestrator.get_service(SuiteExecutionService)
    service.execute = AsyncMock(side_effect=fake_execute)
    return orchestrator, service.execute


class TestValidateConfig:
    """Test validate_config."""

    def test_no_suites(self):
        """Test an empty suite list is rejected."""
        with pytest.raises(ConfigurationError, match="No test suites configured"):
            validate_config(OrchestratorConfig())

    def test_duplicate_names(self, make_suite_config):
        """Test suite names must be unique."""
        config = OrchestratorConfig(suites=(make_suite_config("a"), make_suite_config("a")))

        with pytest.raises(ConfigurationError, match="Duplicate suite name: a"):
            validate_config(config)

    def test_blank_name(self, make_suite_config):
        """Test suites need a name."""
        config = OrchestratorConfig(suites=(make_suite_config(" "),))

        with pytest.raises(ConfigurationError, match="has no name"):
            validate_config(config)

    def test_blank_file_path(self, make_suite_config):
        """Test suites need a file path."""
        config = OrchestratorConfig(suites=(make_suite_config("a", ""),))

        with pytest.raises(ConfigurationError, match="has no file path"):
            validate_config(config)

    def test_batch_size(self, make_suite_config):
        """Test the batch size must be positive."""
        config = OrchestratorConfig(
            suites=(make_suite_config(),),
            execution=ExecutionConfig(max_parallel_suites=0),
        )

        with pytest.raises(ConfigurationError, match="max_parallel_suites"):
            validate_config(config)

    def test_constructor_validates(self, tmp_path):
        """Test the orchestrator refuses an invalid configuration."""
        with pytest.raises(ConfigurationError):
            TestOrchestrator(OrchestratorConfig(), repo_root=tmp_path, command_executor=Mock())


class TestScheduling:
    """Test suite scheduling."""

    @pytest.mark.asyncio
    async def test_run_all_passing(self, tmp_path, make_suite_config):
        """Test a clean run passes and keeps its result."""
        config = _config(make_suite_config, make_suite_config("a"), make_suite_config("b"))
        orchestrator, execute = _orchestrator(tmp_path, config, {"a": PASSING, "b": PASSING})

        result = await orchestrator.run_all()

        assert result.summary.overall_status == OverallStatus.PASSED
        assert [s.name for s in result.suite_results] == ["a", "b"]
        assert result.environment is None
        assert result.failure_analyses == ()
        assert orchestrator.last_result is result
        assert execute.await_count == 2

    @pytest.mark.asyncio
    async def test_critical_suites_run_first(self, tmp_path, make_suite_config):
        """Test critical suites precede the batched ones."""
        config = _config(
            make_suite_config,
            make_suite_config("later"),
            make_suite_config("core", critical=True),
        )
        orchestrator, _ = _orchestrator(tmp_path, config, {"later": PASSING, "core": PASSING})

        result = await orchestrator.run_all()

        assert [s.name for s in result.suite_results] == ["core", "later"]

    @pytest.mark.asyncio
    async def test_critical_failure_stops_run(self, tmp_path, make_suite_config):
        """Test a failing critical suite stops the run when configured."""
        config = _config(
            make_suite_config,
            make_suite_config("core", critical=True),
            make_suite_config("core2", critical=True),
            make_suite_config("other"),
            continue_on_failure=False,
        )
        orchestrator, execute = _orchestrator(
            tmp_path,
            config,
            {"core": FAILING, "core2": PASSING, "other": PASSING},
        )

        result = await orchestrator.run_all()

        assert [s.name for s in result.suite_results] == ["core"]
        assert result.summary.overall_status == OverallStatus.FAILED
        assert execute.await_count == 1

    @pytest.mark.asyncio
    async def test_continue_on_failure(self, tmp_path, make_suite_config):
        """Test a critical failure does not stop the run by default."""
        config = _config(
            make_suite_config,
            make_suite_config("core", critical=True),
            make_suite_config("other"),
        )
        orchestrator, _ = _orchestrator(tmp_path, config, {"core": FAILING, "other": PASSING})

        result = await orchestrator.run_all()

        assert len(result.suite_results) == 2
        assert result.summary.critical_failures == 1

    @pytest.mark.asyncio
    async def test_batches_bound_concurrency(self, tmp_path, make_suite_config):
        """Test non-critical suites run at most max_parallel_suites at a time."""
        names = ["a", "b", "c", "d", "e"]
        config = _config(
            make_suite_config,
            *(make_suite_config(name) for name in names),
            max_parallel_suites=2,
        )
        orchestrator = TestOrchestrator(
            config,
            repo_root=tmp_path,
            command_executor=Mock(),
            show_progress=False,
        )
        running = 0
        peak = 0

        async def fake_execute(suite, attempt=1, on_start=None):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return PASSING

        service = orchestrator.get_service(SuiteExecutionService)
        service.execute = AsyncMock(side_effect=fake_execute)

        result = await orchestrator.run_all()

        assert peak == 2
        assert [s.name for s in result.suite_results] == names

    @pytest.mark.asyncio
    async def test_global_timeout_skips(self, tmp_path, make_suite_config):
        """Test suites past the global deadline are skipped, not run."""
        config = _config(
            make_suite_config,
            make_suite_config("core", critical=True),
            make_suite_config("other"),
            global_timeout=0,
        )
        orchestrator, execute = _orchestrator(tmp_path, config, {"core": PASSING, "other": PASSING})

        result = await orchestrator.run_all()

        assert execute.await_count == 0
        assert [s.status for s in result.suite_results] == [TestStatus.SKIPPED] * 2
        error = result.suite_results[0].errors[0]
        assert "global timeout" in error.message
        assert error.category == ErrorCategory.TIMEOUT
        assert result.summary.skipped_suites == 2
        assert result.summary.overall_status == OverallStatus.FAILED
        assert result.failure_analyses == ()

    @pytest.mark.asyncio
    async def test_global_timeout_mid_run_fails_the_run(self, tmp_path, make_suite_config):
        """Test critical suites cut off by the deadline fail the run."""
        config = _config(
            make_suite_config,
            make_suite_config("first", critical=True),
            make_suite_config("second", critical=True),
            global_timeout=1,
        )
        orchestrator = TestOrchestrator(
            config,
            repo_root=tmp_path,
            command_executor=Mock(),
            show_progress=False,
        )

        async def slow_execute(suite, attempt=1, on_start=None):
            await asyncio.sleep(0.02)
            return PASSING

        service = orchestrator.get_service(SuiteExecutionService)
        service.execute = AsyncMock(side_effect=slow_execute)

        result = await orchestrator.run_all()

        assert [(s.name, s.status) for s in result.suite_results] == [
            ("first", TestStatus.PASSED),
            ("second", TestStatus.SKIPPED),
        ]
        assert result.summary.critical_failures == 1
        assert result.summary.overall_status == OverallStatus.FAILED



class TestRunSubset:
    """Test running selected suites."""

    @pytest.mark.asyncio
    async def test_selected_suites_only(self, tmp_path, make_suite_config):
        """Test only the named suites run, unknown names are ignored."""
        config = _config(make_suite_config, make_suite_config("a"), make_suite_config("b"))
        orchestrator, execute = _orchestrator(tmp_path, config, {"a": PASSING, "b": PASSING})

        result = await orchestrator.run_subset(["b", "missing"])

        assert [s.name for s in result.suite_results] == ["b"]
        assert execute.await_count == 1

    @pytest.mark.asyncio
    async def test_no_match(self, tmp_path, make_suite_config):
        """Test a selection matching nothing is a configuration error."""
        config = _config(make_suite_config, make_suite_config("a"))
        orchestrator, _ = _orchestrator(tmp_path, config, {"a": PASSING})

        with pytest.raises(ConfigurationError, match="No configured suite matches: missing"):
            await orchestrator.run_subset(["missing"])


class TestRetries:
    """Test retry behavior."""

    @pytest.mark.asyncio
    async def test_faults_exhaust_retries(self, tmp_path, make_suite_config):
        """Test a suite that keeps faulting becomes a failed result."""
        config = _config(make_suite_config, make_suite_config("a", retries=2, critical=True))
        orchestrator, execute = _orchestrator(
            tmp_path,
            config,
            {"a": ProcessSpawnError("Failed to start runner: boom")},
        )

        result = await orchestrator.run_all()

        suite = result.suite_results[0]
        assert execute.await_count == 3
        assert suite.status == TestStatus.FAILED
        assert suite.retry_count == 2
        assert suite.tests == ()
        assert suite.errors[0].message == "Failed to start runner: boom"
        assert suite.errors[0].severity == Severity.CRITICAL
        assert result.failure_analyses[0].test_name == "a"
        assert result.summary.overall_status == OverallStatus.FAILED

    @pytest.mark.asyncio
    async def test_backoff_grows_linearly(self, tmp_path, make_suite_config):
        """Test the wait before each retry is the base backoff times the attempt."""
        config = _config(
            make_suite_config,
            make_suite_config("a", retries=3),
            retry_backoff_ms=1000,
        )
        orchestrator, execute = _orchestrator(
            tmp_path,
            config,
            {"a": ProcessSpawnError("Failed to start runner: boom")},
        )

        with patch(
            "testpilot_cli.managers.test.test_orchestrator.asyncio.sleep",
            new_callable=AsyncMock,
        ) as sleep:
            await orchestrator.run_all()

        assert execute.await_count == 4
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    async def test_fault_then_success(self, tmp_path, make_suite_config):
        """Test a fault followed by a clean attempt passes."""
        config = _config(make_suite_config, make_suite_config("a", retries=1))
        orchestrator, execute = _orchestrator(
            tmp_path,
            config,
            {"a": [ProcessSpawnError("boom"), PASSING]},
        )

        result = await orchestrator.run_all()

        assert execute.await_count == 2
        assert result.suite_results[0].status == TestStatus.PASSED
        assert result.suite_results[0].retry_count == 1

    @pytest.mark.asyncio
    async def test_failed_tests_not_retried_by_default(self, tmp_path, make_suite_config):
        """Test test failures are final unless retry_failed_tests is set."""
        config = _config(make_suite_config, make_suite_config("a", retries=2))
        orchestrator, execute = _orchestrator(tmp_path, config, {"a": FAILING})

        result = await orchestrator.run_all()

        assert execute.await_count == 1
        assert result.suite_results[0].status == TestStatus.FAILED

    @pytest.mark.asyncio
    async def test_failed_tests_retried_when_enabled(self, tmp_path, make_suite_config):
        """Test failing attempts are retried when retry_failed_tests is set."""
        config = _config(
            make_suite_config,
            make_suite_config("a", retries=2),
            retry_failed_tests=True,
        )
        orchestrator, execute = _orchestrator(tmp_path, config, {"a": [FAILING, PASSING]})

        result = await orchestrator.run_all()

        assert execute.await_count == 2
        assert result.suite_results[0].status == TestStatus.PASSED


class TestAnalysis:
    """Test post-run analysis."""

    @pytest.mark.asyncio
    async def test_failures_analyzed(self, tmp_path, make_suite_config):
        """Test failing cases get analyses, suggestions and a group summary."""
        config = _config(make_suite_config, make_suite_config("a"))
        orchestrator, _ = _orchestrator(tmp_path, config, {"a": FAILING})

        result = await orchestrator.run_all()

        assert len(result.failure_analyses) == 1
        analysis = result.failure_analyses[0]
        assert analysis.full_name == "tests/test_mod.py::test_1"
        assert analysis.analysis.category == ErrorCategory.ASSERTION
        assert analysis.suggestions is not None
        assert result.error_summary is not None
        assert result.error_summary.total_errors == 1

    @pytest.mark.asyncio
    async def test_history_grows_across_runs(self, tmp_path, make_suite_config):
        """Test each run adds to the orchestrator's performance history."""
        config = _config(make_suite_config, make_suite_config("a"))
        orchestrator, _ = _orchestrator(tmp_path, config, {"a": PASSING})

        await orchestrator.run_all()
        await orchestrator.run_all()

        assert len(orchestrator.history.get("tests/test_mod.py::test_0")) == 2

    @pytest.mark.asyncio
    async def test_functional_rules_checked(self, tmp_path, make_suite_config):
        """Test functional suites are validated against the rules."""
        config = _config(
            make_suite_config,
            make_suite_config("func", category=SuiteCategory.FUNCTIONAL),
        )
        run = SuiteRun(
            stdout="",
            stderr="",
            returncode=0,
            duration=10,
            report_text=json.dumps(
                {
                    "tests": [
                        {
                            "nodeid": "tests/test_f.py::test_validate_input",
                            "outcome": "passed",
                        },
                    ],
                },
            ),
        )
        orchestrator, _ = _orchestrator(tmp_path, config, {"func": run})

        result = await orchestrator.run_all()

        rules = {r.rule: r for r in result.functional_results}
        assert rules["input_validation"].met is True
        assert result.functional_alerts == ()


class TestSuiteResourceUsage:
    """Test how suite memory and CPU figures are filled in."""

    @pytest.mark.asyncio
    async def test_unsampled_runner_uses_suite_delta(self, tmp_path, make_suite_config):
        """Test the suite-level snapshot delta is used when the runner was not sampled."""
        config = _config(make_suite_config, make_suite_config("a"))
        orchestrator, _ = _orchestrator(tmp_path, config, {"a": PASSING})
        process = Mock()
        process.memory_info.side_effect = [
            SimpleNamespace(rss=100 * MB, vms=0),
            SimpleNamespace(rss=112 * MB, vms=0),
        ]
        process.cpu_times.side_effect = [
            SimpleNamespace(user=1.0, system=0.5),
            SimpleNamespace(user=1.2, system=0.6),
        ]
        orchestrator.metrics_collector = MetricsCollector(process=process)

        result = await orchestrator.run_all()

        metrics = result.suite_results[0].metrics
        assert metrics.memory_used == 12 * MB
        assert metrics.cpu_used == pytest.approx(300)
