"""Configuration records for an orchestration run.

All records are frozen; a loaded configuration never changes during a run.
Overrides are applied with :func:`dataclasses.replace`.
"""

import sys
from dataclasses import dataclass, field

from testpilot.models.enums import (
    DetailLevel,
    ReportFormat,
    RunnerKind,
    Severity,
    SuiteCategory,
)


@dataclass(frozen=True)
class SuiteConfig:
    """One independently schedulable test suite.

    Parameters
    ----------
    name : str
        Unique suite name
    file_path : str
        Target file or directory handed to the runner, relative to the repo root
    timeout : int
        Per-suite timeout in milliseconds
    retries : int
        Extra attempts after the first one
    parallel : bool
        Whether the suite may run its cases on several workers
    critical : bool
        Whether a failure can stop the whole run
    category : SuiteCategory
        Suite kind
    description : str
        Free text shown by ``testpilot list``
    """

    name: str
    file_path: str
    timeout: int = 30000
    retries: int = 0
    parallel: bool = False
    critical: bool = False
    category: SuiteCategory = SuiteCategory.UNIT
    description: str = ""


@dataclass(frozen=True)
class ExecutionConfig:
    """Scheduling and retry policy."""

    max_parallel_suites: int = 3
    global_timeout: int = 300000
    continue_on_failure: bool = True
    collect_coverage: bool = False
    retry_failed_tests: bool = False
    retry_backoff_ms: int = 1000
    watchdog_grace_ms: int = 10000


@dataclass(frozen=True)
class ReportConfig:
    """Report output options."""

    output_path: str | None = None
    format: ReportFormat = ReportFormat.SUMMARY
    include_stack_traces: bool = True
    include_metrics: bool = True
    detail_level: DetailLevel = DetailLevel.DETAILED
    include_environment_info: bool = True
    include_suggestions: bool = True


def _default_runner_command() -> tuple[str, ...]:
    return (sys.executable, "-m", "pytest")


@dataclass(frozen=True)
class RunnerConfig:
    """External test runner invocation.

    ``kind=pytest`` renders execution hints as pytest arguments and asks for a
    JSON report; ``kind=command`` runs ``command + [file]`` and only exports the
    hints through the environment.
    """

    kind: RunnerKind = RunnerKind.PYTEST
    command: tuple[str, ...] = field(default_factory=_default_runner_command)
    json_report: bool = True
    xdist: bool = True
    extra_args: tuple[str, ...] = ()


@dataclass(frozen=True)
class PerformanceThresholds:
    """Thresholds used by the performance analyzer.

    Durations are milliseconds, degradation values are percentages and the
    memory leak threshold is in megabytes.
    """

    slow_test: int = 1000
    very_slow_test: int = 5000
    degradation: float = 20
    significant_degradation: float = 50
    memory_leak: float = 50
    cpu_usage: float = 80


@dataclass(frozen=True)
class BenchmarkTargets:
    """Targets performance suites are checked against."""

    concurrent_average_ms: float = 5000
    cache_hit_rate: float = 80
    peak_memory_mb: float = 100
    network_requests_per_test: float = 10


@dataclass(frozen=True)
class FunctionalRule:
    """Pass-rate requirement for functional cases matching keywords.

    Parameters
    ----------
    name : str
        Rule name used in results and alerts
    keywords : tuple[str, ...]
        Lowercase tokens matched against the case name
    threshold : float
        Minimum pass rate in percent
    severity : Severity
        Alert severity when the rule fails
    suggestion : str
        Advice attached to the alert
    """

    name: str
    keywords: tuple[str, ...]
    threshold: float
    severity: Severity
    suggestion: str = ""


DEFAULT_FUNCTIONAL_RULES: tuple[FunctionalRule, ...] = (
    FunctionalRule(
        name="input_validation",
        keywords=("validate", "validation", "normaliz", "duplicate"),
        threshold=95,
        severity=Severity.HIGH,
        suggestion="Review input validation and normalization logic",
    ),
    FunctionalRule(
        name="serialization",
        keywords=("serializ", "export", "import", "generate", "encode", "decode"),
        threshold=98,
        severity=Severity.HIGH,
        suggestion="Check serialization round trips and output structure",
    ),
    FunctionalRule(
        name="escaping",
        keywords=("escap", "special", "unicode"),
        threshold=100,
        severity=Severity.CRITICAL,
        suggestion="Fix character escaping and encoding handling",
    ),
    FunctionalRule(
        name="file_io",
        keywords=("download", "upload", "file"),
        threshold=95,
        severity=Severity.MEDIUM,
        suggestion="Verify file handling and temporary path cleanup",
    ),
)


@dataclass(frozen=True)
class OrchestratorConfig:
    """Everything an orchestration run needs."""

    suites: tuple[SuiteConfig, ...] = ()
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    thresholds: PerformanceThresholds = field(default_factory=PerformanceThresholds)
    benchmarks: BenchmarkTargets = field(default_factory=BenchmarkTargets)
    functional_rules: tuple[FunctionalRule, ...] = DEFAULT_FUNCTIONAL_RULES

    @property
    def suite_names(self) -> list[str]:
        """Configured suite names in order."""
        return [suite.name for suite in self.suites]
