"""Data model for the orchestration engine."""

from testpilot.models.analysis import (
    ErrorAnalysis,
    ErrorContext,
    ErrorGroup,
    ErrorGroupReport,
    ErrorGroupSummary,
    KnowledgeBaseEntry,
    Solution,
    StackFrame,
    Suggestion,
    SuggestionBundle,
)
from testpilot.models.config import (
    DEFAULT_FUNCTIONAL_RULES,
    BenchmarkTargets,
    ExecutionConfig,
    FunctionalRule,
    OrchestratorConfig,
    PerformanceThresholds,
    ReportConfig,
    RunnerConfig,
    SuiteConfig,
)
from testpilot.models.enums import (
    AlertType,
    DetailLevel,
    Effort,
    ErrorCategory,
    OverallStatus,
    ReportFormat,
    RunnerKind,
    Severity,
    SlowCategory,
    SuggestionBucket,
    SuiteCategory,
    TestStatus,
    Trend,
)
from testpilot.models.metrics import (
    CpuUsage,
    HistoricalDataPoint,
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
from testpilot.models.performance import (
    PerformanceAlert,
    PerformanceComparison,
    PerformanceReport,
    PerformanceSummary,
    SlowTestAnalysis,
)
from testpilot.models.results import (
    BenchmarkAlert,
    BenchmarkResult,
    EnvironmentInfo,
    FailureAnalysis,
    FunctionalAlert,
    FunctionalValidationResult,
    SuiteMetrics,
    TestCaseResult,
    TestError,
    TestExecutionResult,
    TestSuiteResult,
    TestSummary,
)
from testpilot.models.serialization import to_dict

__all__ = [
    "DEFAULT_FUNCTIONAL_RULES",
    "AlertType",
    "BenchmarkAlert",
    "BenchmarkResult",
    "BenchmarkTargets",
    "CpuUsage",
    "DetailLevel",
    "Effort",
    "EnvironmentInfo",
    "ErrorAnalysis",
    "ErrorCategory",
    "ErrorContext",
    "ErrorGroup",
    "ErrorGroupReport",
    "ErrorGroupSummary",
    "ExecutionConfig",
    "FailureAnalysis",
    "FunctionalAlert",
    "FunctionalRule",
    "FunctionalValidationResult",
    "HistoricalDataPoint",
    "KnowledgeBaseEntry",
    "MemoryLeak",
    "MemoryUsage",
    "OrchestratorConfig",
    "OverallStatus",
    "PerformanceAlert",
    "PerformanceComparison",
    "PerformanceMetrics",
    "PerformanceReport",
    "PerformanceSummary",
    "PerformanceThresholds",
    "ReportConfig",
    "ReportFormat",
    "ResourceMetrics",
    "ResourceSnapshot",
    "RunnerConfig",
    "RunnerKind",
    "Severity",
    "SlowCategory",
    "SlowTestAnalysis",
    "Solution",
    "StackFrame",
    "Suggestion",
    "SuggestionBucket",
    "SuggestionBundle",
    "SuiteCategory",
    "SuiteConfig",
    "SuiteMetrics",
    "TestCaseResult",
    "TestError",
    "TestExecutionMetrics",
    "TestExecutionResult",
    "TestMetrics",
    "TestStatistics",
    "TestStatus",
    "TestSuiteResult",
    "TestSummary",
    "Trend",
    "TrendMetrics",
    "to_dict",
]
