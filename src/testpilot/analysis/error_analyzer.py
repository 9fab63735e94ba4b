"""Classification, explanation and grouping of test failures."""

import re
from collections import Counter
from dataclasses import dataclass, field

from testpilot.analysis.classification import (
    CLASSIFICATION_RULES,
    ClassificationRule,
    classify_error,
    determine_severity,
)
from testpilot.models.analysis import (
    ErrorAnalysis,
    ErrorContext,
    ErrorGroup,
    ErrorGroupReport,
    ErrorGroupSummary,
    StackFrame,
)
from testpilot.models.enums import ErrorCategory, Severity, SuiteCategory
from testpilot.models.results import TestError
from testpilot_logging import get_logger

logger = get_logger(__name__)

MAX_SUGGESTIONS = 5
MAX_RELATED_TESTS = 3
MAX_POSSIBLE_CAUSES = 3
MAX_QUICK_FIXES = 2
MAX_DOCUMENTATION_LINKS = 2
MAX_PATTERN_LENGTH = 100
LONG_TEST_DURATION_MS = 30000

_FRAME_WITH_FUNCTION = re.compile(r"at\s+(.+?)\s+\((.+?):(\d+):(\d+)\)")
_FRAME_WITHOUT_FUNCTION = re.compile(r"at\s+(.+?):(\d+):(\d+)")
_PYTHON_FRAME = re.compile(r'File "(.+?)", line (\d+), in (\S+)')
_PYTEST_LOCATION = re.compile(r"^(\S+\.py):(\d+):\s+\w+")

NON_USER_CODE_MARKERS = (
    "node_modules",
    "vitest",
    "node:internal",
    "_pytest",
    "/pytest/",
    "pluggy",
    "site-packages",
    "dist-packages",
    "<frozen",
    "lib/python3",
)

CATEGORY_SUGGESTIONS: dict[ErrorCategory, tuple[str, ...]] = {
    ErrorCategory.ASSERTION: (
        "Verify the expected value matches the current behavior",
        "Check whether recent code changes altered the output under test",
    ),
    ErrorCategory.TIMEOUT: (
        "Increase the timeout or speed up the slow operation",
        "Check for unresolved awaits or blocking calls",
    ),
    ErrorCategory.NETWORK: (
        "Mock external network calls in tests",
        "Verify the endpoint URL and network availability",
    ),
    ErrorCategory.CONFIGURATION: (
        "Check configuration files and environment variables",
        "Compare the test environment with a known good setup",
    ),
    ErrorCategory.PERFORMANCE: (
        "Profile the test to find the hot path",
        "Check for memory growth across iterations",
    ),
    ErrorCategory.INTEGRATION: (
        "Verify the integrated components agree on their interface",
        "Check service startup order and readiness",
    ),
    ErrorCategory.MOCK: (
        "Verify mock setup and expected call arguments",
        "Reset mocks between tests",
    ),
    ErrorCategory.DEPENDENCY: (
        "Install or update the missing dependency",
        "Check import paths and package names",
    ),
    ErrorCategory.UNKNOWN: (
        "Run the test in isolation with verbose output",
        "Inspect the full stack trace for the origin of the failure",
    ),
}

POSSIBLE_CAUSES: dict[ErrorCategory, tuple[str, ...]] = {
    ErrorCategory.ASSERTION: (
        "Implementation changed without updating the test",
        "Test data differs from what the assertion expects",
        "Non-deterministic output such as ordering or timestamps",
    ),
    ErrorCategory.TIMEOUT: (
        "Slow external dependency",
        "Deadlock or never-resolving future",
        "Timeout too tight for the CI machine",
    ),
    ErrorCategory.NETWORK: (
        "Remote service unavailable",
        "Missing network mock",
        "Proxy or DNS issue on the test host",
    ),
    ErrorCategory.CONFIGURATION: (
        "Missing or wrong environment variable",
        "Config file not found or malformed",
        "Different defaults between local and CI environments",
    ),
    ErrorCategory.PERFORMANCE: (
        "Inefficient algorithm on larger input",
        "Resource leak accumulating across tests",
        "Contention with parallel workers",
    ),
    ErrorCategory.INTEGRATION: (
        "Dependent service not started",
        "Contract change between components",
        "Shared state leaking between tests",
    ),
    ErrorCategory.MOCK: (
        "Mock called with different arguments",
        "Mock not reset between tests",
        "Patched the wrong import path",
    ),
    ErrorCategory.DEPENDENCY: (
        "Package not installed in the test environment",
        "Version mismatch after an upgrade",
        "Circular or misspelled import",
    ),
    ErrorCategory.UNKNOWN: (
        "Unexpected exception in test code",
        "Environment specific failure",
        "Flaky external factor",
    ),
}

QUICK_FIXES: dict[ErrorCategory, tuple[str, ...]] = {
    ErrorCategory.ASSERTION: (
        "Update the expected value if the new behavior is correct",
        "Print the actual value before the assertion",
    ),
    ErrorCategory.TIMEOUT: (
        "Double the test timeout temporarily to confirm the diagnosis",
        "Mock the slow call",
    ),
    ErrorCategory.NETWORK: (
        "Replace the real call with a mock",
        "Add a retry with backoff around the request",
    ),
    ErrorCategory.CONFIGURATION: (
        "Set the missing environment variable",
        "Restore the default configuration file",
    ),
    ErrorCategory.PERFORMANCE: (
        "Reduce the input size in the test",
        "Cache repeated expensive setup in a fixture",
    ),
    ErrorCategory.INTEGRATION: (
        "Start the dependent services before the suite",
        "Isolate the test with a fake service",
    ),
    ErrorCategory.MOCK: (
        "Call reset_mock() in test setup",
        "Align the expected call arguments",
    ),
    ErrorCategory.DEPENDENCY: (
        "pip install the missing package",
        "Fix the import path",
    ),
    ErrorCategory.UNKNOWN: (
        "Re-run the test alone with -vv",
        "Add logging around the failing line",
    ),
}

DOCUMENTATION_LINKS: dict[ErrorCategory, tuple[str, ...]] = {
    ErrorCategory.ASSERTION: (
        "https://docs.pytest.org/en/stable/how-to/assert.html",
        "https://docs.python.org/3/reference/simple_stmts.html#the-assert-statement",
    ),
    ErrorCategory.TIMEOUT: (
        "https://pypi.org/project/pytest-timeout/",
        "https://docs.python.org/3/library/asyncio-task.html#timeouts",
    ),
    ErrorCategory.NETWORK: (
        "https://docs.python.org/3/library/unittest.mock.html",
        "https://docs.pytest.org/en/stable/how-to/monkeypatch.html",
    ),
    ErrorCategory.CONFIGURATION: (
        "https://docs.pytest.org/en/stable/reference/customize.html",
        "https://docs.python.org/3/library/os.html#os.environ",
    ),
    ErrorCategory.PERFORMANCE: (
        "https://docs.python.org/3/library/profile.html",
        "https://docs.python.org/3/library/tracemalloc.html",
    ),
    ErrorCategory.INTEGRATION: (
        "https://docs.pytest.org/en/stable/explanation/goodpractices.html",
        "https://docs.pytest.org/en/stable/how-to/fixtures.html",
    ),
    ErrorCategory.MOCK: (
        "https://docs.python.org/3/library/unittest.mock.html",
        "https://docs.python.org/3/library/unittest.mock.html#where-to-patch",
    ),
    ErrorCategory.DEPENDENCY: (
        "https://packaging.python.org/en/latest/tutorials/installing-packages/",
        "https://docs.python.org/3/reference/import.html",
    ),
    ErrorCategory.UNKNOWN: (
        "https://docs.pytest.org/en/stable/how-to/failures.html",
        "https://docs.pytest.org/en/stable/how-to/output.html",
    ),
}

SEVERITY_IMPACT: dict[Severity, str] = {
    Severity.CRITICAL: "Blocks the run and likely breaks core functionality",
    Severity.HIGH: "Significant failure affecting dependent features",
    Severity.MEDIUM: "Localized failure that should be fixed before release",
    Severity.LOW: "Minor issue with limited impact",
}


def normalize_pattern(message: str) -> str:
    """Reduce a message to a pattern shared by similar errors.

    Parameters
    ----------
    message : str
        Error message

    Returns
    -------
    str
        Message with digit runs and quoted literals replaced, truncated
    """
    pattern = re.sub(r"\d+", "N", message)
    pattern = re.sub(r'"[^"]*"', '"STRING"', pattern)
    pattern = re.sub(r"'[^']*'", "'STRING'", pattern)
    return pattern[:MAX_PATTERN_LENGTH]


def _dedupe(items) -> list[str]:
    return list(dict.fromkeys(items))


@dataclass
class _GroupBuilder:
    category: ErrorCategory
    pattern: str
    test_category: str
    occurrences: list[tuple[TestError, ErrorContext]] = field(default_factory=list)
    severity: Severity = Severity.LOW


class ErrorAnalyzer:
    """Explain single errors and group many of them.

    The analyzer remembers the errors it analyzed so later analyses can point
    at related failing tests; :meth:`clear_history` forgets them.

    Parameters
    ----------
    rules : tuple[ClassificationRule, ...]
        Classification rules in precedence order
    """

    def __init__(
        self,
        rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
    ) -> None:
        self._rules = rules
        self._seen: list[tuple[ErrorCategory, ErrorContext]] = []

    def classify(self, message: str, stack: str | None = None) -> ErrorCategory:
        """Classify an error message and stack."""
        return classify_error(message, stack, self._rules)

    def determine_severity(
        self,
        category: ErrorCategory,
        context: ErrorContext,
    ) -> Severity:
        """Determine severity for a category in a context."""
        return determine_severity(category, context)

    def analyze(self, error: TestError, context: ErrorContext) -> ErrorAnalysis:
        """Analyze one error.

        Parameters
        ----------
        error : TestError
            The failure
        context : ErrorContext
            Where it happened

        Returns
        -------
        ErrorAnalysis
            Category, severity, advice and parsed stack
        """
        category = self.classify(error.message, error.stack)
        severity = self.determine_severity(category, context)
        frames = self.parse_stack_trace(error.stack)
        related = self._find_related_tests(category, context)
        self._seen.append((category, context))

        logger.debug(
            "Analyzed error in %s: category=%s severity=%s",
            context.test_name,
            category.value,
            severity.value,
        )
        return ErrorAnalysis(
            category=category,
            severity=severity,
            impact=self._assess_impact(severity, context),
            suggestions=tuple(
                self._generate_suggestions(category, error, context, frames),
            ),
            related_tests=tuple(related),
            possible_causes=POSSIBLE_CAUSES[category][:MAX_POSSIBLE_CAUSES],
            quick_fixes=QUICK_FIXES[category][:MAX_QUICK_FIXES],
            documentation_links=DOCUMENTATION_LINKS[category][
                :MAX_DOCUMENTATION_LINKS
            ],
            stack_frames=tuple(frames),
        )

    def parse_stack_trace(self, stack: str | None) -> list[StackFrame]:
        """Extract frames from JavaScript style or Python style stack text.

        Parameters
        ----------
        stack : str | None
            Stack trace text

        Returns
        -------
        list[StackFrame]
            Frames in the order they appear
        """
        if not stack:
            return []

        frames: list[StackFrame] = []
        for raw_line in stack.splitlines():
            line = raw_line.strip()
            frame = self._parse_frame(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def _parse_frame(self, line: str) -> StackFrame | None:
        match = _FRAME_WITH_FUNCTION.search(line)
        if match:
            function, file, lineno, column = match.groups()
            return self._frame(function, file, int(lineno), int(column))

        if line.startswith("at "):
            match = _FRAME_WITHOUT_FUNCTION.search(line)
            if match:
                file, lineno, column = match.groups()
                return self._frame("<anonymous>", file, int(lineno), int(column))

        match = _PYTHON_FRAME.search(line)
        if match:
            file, lineno, function = match.groups()
            return self._frame(function, file, int(lineno), None)

        match = _PYTEST_LOCATION.match(line)
        if match:
            file, lineno = match.groups()
            return self._frame("<unknown>", file, int(lineno), None)
        return None

    @staticmethod
    def _frame(function: str, file: str, line: int, column: int | None) -> StackFrame:
        normalized = file.replace("\\", "/").lower()
        is_user_code = not any(marker in normalized for marker in NON_USER_CODE_MARKERS)
        return StackFrame(
            function=function,
            file=file,
            line=line,
            column=column,
            is_user_code=is_user_code,
        )

    def _generate_suggestions(
        self,
        category: ErrorCategory,
        error: TestError,
        context: ErrorContext,
        frames: list[StackFrame],
    ) -> list[str]:
        suggestions = list(CATEGORY_SUGGESTIONS[category])

        if context.retry_count > 0:
            suggestions.append(
                "Investigate race conditions or timing issues, the test needed retries",
            )
        if context.duration > LONG_TEST_DURATION_MS:
            suggestions.append(
                f"Optimize the test, it ran for {context.duration / 1000:.1f}s",
            )
        if context.test_category == SuiteCategory.INTEGRATION:
            suggestions.append("Check that dependent services are running")

        user_frame = next((f for f in frames if f.is_user_code), None)
        if user_frame is not None:
            suggestions.append(f"Check {user_frame.file}:{user_frame.line}")

        message = error.message.lower()
        if (
            "cannot read property" in message
            or "cannot read properties" in message
            or "'nonetype' object has no attribute" in message
        ):
            suggestions.append("Add a null check before accessing the attribute")
        if "expected" in message and "received" in message:
            suggestions.append("Compare the expected and received values carefully")

        return _dedupe(suggestions)[:MAX_SUGGESTIONS]

    def _find_related_tests(
        self,
        category: ErrorCategory,
        context: ErrorContext,
    ) -> list[str]:
        related = [
            seen.test_name
            for seen_category, seen in self._seen
            if seen_category == category
            and seen.suite_name == context.suite_name
            and seen.test_name != context.test_name
        ]
        return _dedupe(related)[:MAX_RELATED_TESTS]

    @staticmethod
    def _assess_impact(severity: Severity, context: ErrorContext) -> str:
        impact = SEVERITY_IMPACT[severity]
        if context.critical:
            impact += f" (critical suite {context.suite_name})"
        return impact

    def analyze_group(
        self,
        errors: list[TestError],
        contexts: list[ErrorContext],
    ) -> ErrorGroupReport:
        """Group similar errors.

        Parameters
        ----------
        errors : list[TestError]
            Errors to group
        contexts : list[ErrorContext]
            Context of each error, same length as ``errors``

        Returns
        -------
        ErrorGroupReport
            Groups sorted by descending frequency and their summary

        Raises
        ------
        ValueError
            If the two lists differ in length
        """
        if len(errors) != len(contexts):
            msg = (
                f"Got {len(errors)} errors but {len(contexts)} contexts, "
                "each error needs a context"
            )
            raise ValueError(msg)

        builders: dict[str, _GroupBuilder] = {}
        for error, context in zip(errors, contexts):
            category = self.classify(error.message, error.stack)
            pattern = normalize_pattern(error.message)
            test_category = (
                context.test_category.value if context.test_category else "unknown"
            )
            key = f"{category.value}_{pattern}_{test_category}"
            builder = builders.setdefault(
                key,
                _GroupBuilder(category, pattern, test_category),
            )
            builder.occurrences.append((error, context))
            builder.severity = Severity.highest(
                builder.severity,
                self.determine_severity(category, context),
            )

        groups = sorted(
            (
                ErrorGroup(
                    key=key,
                    category=b.category,
                    pattern=b.pattern,
                    test_category=b.test_category,
                    occurrences=tuple(b.occurrences),
                    severity=b.severity,
                )
                for key, b in builders.items()
            ),
            key=lambda g: g.frequency,
            reverse=True,
        )
        return ErrorGroupReport(groups=tuple(groups), summary=self._summarize(groups))

    @staticmethod
    def _summarize(groups: list[ErrorGroup]) -> ErrorGroupSummary:
        category_counts: Counter[ErrorCategory] = Counter()
        severity_distribution = {severity.value: 0 for severity in Severity}
        for group in groups:
            category_counts[group.category] += group.frequency
            severity_distribution[group.severity.value] += 1

        most_common = category_counts.most_common(1)[0][0] if category_counts else None

        recommendations: list[str] = []
        if severity_distribution[Severity.CRITICAL.value]:
            recommendations.append(
                f"Address the {severity_distribution[Severity.CRITICAL.value]} "
                "critical error group(s) first",
            )
        if groups and groups[0].frequency > 1:
            recommendations.append(
                f"{groups[0].frequency} failures share one {groups[0].category.value} "
                "pattern, fixing its cause may resolve all of them",
            )
        if most_common is not None:
            recommendations.append(CATEGORY_SUGGESTIONS[most_common][0])

        return ErrorGroupSummary(
            total_groups=len(groups),
            total_errors=sum(g.frequency for g in groups),
            most_common_category=most_common,
            severity_distribution=severity_distribution,
            recommendations=tuple(recommendations),
        )

    def clear_history(self) -> None:
        """Forget previously analyzed errors."""
        self._seen.clear()
