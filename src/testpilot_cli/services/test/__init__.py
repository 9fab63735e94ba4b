"""Test execution services for the testpilot CLI."""

from .benchmark_service import BenchmarkService
from .environment_info_service import EnvironmentInfoService
from .output_parser_service import OutputParserService, extract_output_metrics
from .report_renderer import ReportRenderer
from .suite_execution_service import (
    ExecutionHints,
    SuiteExecutionService,
    SuiteRun,
    execution_hints,
)
from .test_reporting_service import TestReportingService, calculate_summary

__all__ = [
    "BenchmarkService",
    "EnvironmentInfoService",
    "ExecutionHints",
    "OutputParserService",
    "ReportRenderer",
    "SuiteExecutionService",
    "SuiteRun",
    "TestReportingService",
    "calculate_summary",
    "execution_hints",
    "extract_output_metrics",
]
