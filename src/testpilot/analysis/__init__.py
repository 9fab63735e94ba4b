"""Failure analysis and performance analysis."""

from testpilot.analysis.classification import (
    CLASSIFICATION_RULES,
    ClassificationRule,
    classify_error,
    determine_severity,
)
from testpilot.analysis.error_analyzer import ErrorAnalyzer, normalize_pattern
from testpilot.analysis.history import HistoryStore
from testpilot.analysis.performance_analyzer import PerformanceAnalyzer
from testpilot.analysis.suggestion_engine import SuggestionEngine, error_signature

__all__ = [
    "CLASSIFICATION_RULES",
    "ClassificationRule",
    "ErrorAnalyzer",
    "HistoryStore",
    "PerformanceAnalyzer",
    "SuggestionEngine",
    "classify_error",
    "determine_severity",
    "error_signature",
    "normalize_pattern",
]
