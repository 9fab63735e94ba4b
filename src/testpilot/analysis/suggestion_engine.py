"""Advisory layer producing prioritized suggestions for a failure.

Suggestions come from three sources: a knowledge base of known error
signatures, regular expression patterns over the message, and contextual rules
driven by test category, duration and retry count.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from testpilot.analysis.error_analyzer import normalize_pattern
from testpilot.models.analysis import (
    ErrorContext,
    KnowledgeBaseEntry,
    Solution,
    Suggestion,
    SuggestionBundle,
)
from testpilot.models.enums import Effort, ErrorCategory, SuggestionBucket, SuiteCategory
from testpilot.models.results import TestError
from testpilot_logging import get_logger

logger = get_logger(__name__)

MAX_SUGGESTIONS = 8
MAX_KNOWLEDGE_ENTRIES = 3
MAX_RELATED_ENTRIES = 2
MAX_QUICK_FIXES = 3
MIN_SHARED_TOKENS = 2
PATTERN_CONFIDENCE = 0.8

DIFFICULTY_EFFORT = {"easy": Effort.LOW, "medium": Effort.MEDIUM, "hard": Effort.HIGH}


@dataclass(frozen=True)
class SuggestionPattern:
    """Regular expression over the lowercased message with canned advice."""

    pattern: re.Pattern[str]
    suggestions: tuple[str, ...]
    priority: int
    effort: Effort = Effort.LOW


@dataclass(frozen=True)
class ContextualRule:
    """Advice that applies when a predicate over the context holds."""

    name: str
    condition: Callable[[ErrorContext], bool]
    suggestion: str
    confidence: float
    bucket: SuggestionBucket
    effort: Effort = Effort.MEDIUM


SUGGESTION_PATTERNS: tuple[SuggestionPattern, ...] = (
    SuggestionPattern(
        pattern=re.compile(r"cannot read propert(?:y|ies).*of (?:undefined|null)"),
        suggestions=(
            "Add a null check before accessing the property",
            "Make sure the object is initialized before use",
        ),
        priority=1,
    ),
    SuggestionPattern(
        pattern=re.compile(r"'nonetype' object has no attribute"),
        suggestions=(
            "Add a None check before accessing the attribute",
            "Trace where the value becomes None",
        ),
        priority=1,
    ),
    SuggestionPattern(
        pattern=re.compile(r"expected.*to equal.*but received"),
        suggestions=(
            "Compare the expected and received values for type differences",
            "Check whether the value is mutated before the assertion",
        ),
        priority=2,
    ),
    SuggestionPattern(
        pattern=re.compile(r"no module named"),
        suggestions=(
            "Install the missing package in the test environment",
            "Check the module path and package layout",
        ),
        priority=2,
    ),
)

CATEGORY_RULE_SUGGESTIONS: dict[ErrorCategory, tuple[str, float, SuggestionBucket]] = {
    ErrorCategory.TIMEOUT: (
        "Use explicit waits or shorter operations instead of long fixed timeouts",
        0.8,
        SuggestionBucket.PREVENTION,
    ),
    ErrorCategory.NETWORK: (
        "Mock network access so tests do not depend on remote services",
        0.7,
        SuggestionBucket.PREVENTION,
    ),
    ErrorCategory.ASSERTION: (
        "Prefer focused assertions with descriptive messages",
        0.6,
        SuggestionBucket.PREVENTION,
    ),
    ErrorCategory.MOCK: (
        "Reset and re-create mocks in each test's setup",
        0.8,
        SuggestionBucket.PREVENTION,
    ),
    ErrorCategory.CONFIGURATION: (
        "Validate configuration at test startup",
        0.9,
        SuggestionBucket.PREVENTION,
    ),
    ErrorCategory.INTEGRATION: (
        "Add contract tests between the integrated components",
        0.8,
        SuggestionBucket.PREVENTION,
    ),
    ErrorCategory.PERFORMANCE: (
        "Track test durations in CI to catch regressions early",
        0.7,
        SuggestionBucket.PREVENTION,
    ),
    ErrorCategory.DEPENDENCY: (
        "Pin dependency versions and verify the lock file in CI",
        0.9,
        SuggestionBucket.PREVENTION,
    ),
    ErrorCategory.UNKNOWN: (
        "Collect more diagnostics by re-running with verbose output",
        0.6,
        SuggestionBucket.INVESTIGATION,
    ),
}

CONTEXTUAL_RULES: tuple[ContextualRule, ...] = (
    ContextualRule(
        name="integration",
        condition=lambda ctx: ctx.test_category == SuiteCategory.INTEGRATION,
        suggestion="Check that every service the integration test needs is running",
        confidence=0.9,
        bucket=SuggestionBucket.IMMEDIATE,
    ),
    ContextualRule(
        name="performance",
        condition=lambda ctx: ctx.test_category == SuiteCategory.PERFORMANCE,
        suggestion="Profile the test and compare against the last passing run",
        confidence=0.8,
        bucket=SuggestionBucket.INVESTIGATION,
        effort=Effort.HIGH,
    ),
    ContextualRule(
        name="long_duration",
        condition=lambda ctx: ctx.duration > 30000,
        suggestion="Split the test or move slow setup into shared fixtures",
        confidence=0.7,
        bucket=SuggestionBucket.PREVENTION,
        effort=Effort.HIGH,
    ),
    ContextualRule(
        name="retried",
        condition=lambda ctx: ctx.retry_count > 0,
        suggestion="The test is flaky, look for shared state or timing assumptions",
        confidence=0.9,
        bucket=SuggestionBucket.INVESTIGATION,
    ),
    ContextualRule(
        name="integration_timeout",
        condition=lambda ctx: (
            ctx.test_category == SuiteCategory.INTEGRATION and ctx.duration > 10000
        ),
        suggestion="Replace slow external services with fakes in integration tests",
        confidence=0.8,
        bucket=SuggestionBucket.PREVENTION,
    ),
)

CATEGORY_DEBUG_STEPS: dict[ErrorCategory, tuple[str, str, str]] = {
    ErrorCategory.TIMEOUT: (
        "Measure how long each step of the test takes",
        "Look for awaits that never resolve",
        "Run with a much larger timeout to see if it ever completes",
    ),
    ErrorCategory.NETWORK: (
        "Check the request URL and payload",
        "Verify the remote service is reachable from the test host",
        "Confirm that network mocks are installed before the call",
    ),
    ErrorCategory.ASSERTION: (
        "Print the actual value next to the expected one",
        "Check the inputs that produce the value",
        "Review recent changes to the code under test",
    ),
    ErrorCategory.MOCK: (
        "Print the mock's call_args_list",
        "Verify the patch target is where the name is looked up",
        "Check that mocks are reset between tests",
    ),
    ErrorCategory.CONFIGURATION: (
        "Dump the effective configuration at test start",
        "Compare environment variables with CI",
        "Validate config files against their expected schema",
    ),
    ErrorCategory.INTEGRATION: (
        "Check the logs of each dependent service",
        "Call the failing interface manually",
        "Verify service versions match",
    ),
    ErrorCategory.PERFORMANCE: (
        "Profile the test with cProfile",
        "Track memory with tracemalloc",
        "Compare with the last known fast run",
    ),
    ErrorCategory.DEPENDENCY: (
        "List installed packages with pip list",
        "Check the import path from the failing module",
        "Recreate the virtual environment",
    ),
    ErrorCategory.UNKNOWN: (
        "Run the test in isolation",
        "Add logging around the failing line",
        "Bisect recent changes",
    ),
}

DEFAULT_KNOWLEDGE_BASE: tuple[KnowledgeBaseEntry, ...] = (
    KnowledgeBaseEntry(
        signature="test timed out after N ms",
        category=ErrorCategory.TIMEOUT,
        solutions=(
            Solution(
                description="Raise the timeout for this test",
                steps=("Set an explicit per-test timeout", "Re-run the suite"),
                difficulty="easy",
                confidence=0.9,
            ),
            Solution(
                description="Mock the slow dependency",
                steps=("Find the slow call", "Replace it with a fake in the test"),
                difficulty="medium",
                confidence=0.8,
            ),
        ),
    ),
    KnowledgeBaseEntry(
        signature="fetch failed",
        category=ErrorCategory.NETWORK,
        solutions=(
            Solution(
                description="Mock the HTTP call",
                steps=("Patch the client used by the code", "Return a canned response"),
                difficulty="easy",
                confidence=0.9,
            ),
        ),
    ),
    KnowledgeBaseEntry(
        signature="failed: timeout >N.Ns",
        category=ErrorCategory.TIMEOUT,
        solutions=(
            Solution(
                description="Raise the pytest-timeout limit for the test",
                steps=("Add @pytest.mark.timeout(...) with a larger value",),
                difficulty="easy",
                confidence=0.8,
            ),
        ),
    ),
    KnowledgeBaseEntry(
        signature="modulenotfounderror: no module named 'STRING'",
        category=ErrorCategory.DEPENDENCY,
        solutions=(
            Solution(
                description="Install the package into the test environment",
                steps=("pip install the package", "Add it to the test dependencies"),
                difficulty="easy",
                confidence=0.9,
            ),
        ),
    ),
    KnowledgeBaseEntry(
        signature="connectionrefusederror: [errno N] connection refused",
        category=ErrorCategory.NETWORK,
        solutions=(
            Solution(
                description="Start the service the test connects to",
                steps=("Check the host and port", "Start the service or use a fake"),
                difficulty="medium",
                confidence=0.8,
            ),
        ),
    ),
)


def error_signature(message: str) -> str:
    """Normalized signature used as the knowledge base key."""
    return normalize_pattern(message.lower())


def _normalize_text(text: str) -> str:
    return " ".join(text.lower().split())


class SuggestionEngine:
    """Generate immediate, investigation and prevention suggestions.

    Parameters
    ----------
    knowledge_base : tuple[KnowledgeBaseEntry, ...]
        Initial knowledge base entries
    """

    def __init__(
        self,
        knowledge_base: tuple[KnowledgeBaseEntry, ...] = DEFAULT_KNOWLEDGE_BASE,
    ) -> None:
        self._knowledge_base: dict[str, KnowledgeBaseEntry] = {
            entry.signature: entry for entry in knowledge_base
        }
        self._patterns = sorted(SUGGESTION_PATTERNS, key=lambda p: p.priority)

    def add_knowledge_entry(self, entry: KnowledgeBaseEntry) -> None:
        """Add or replace a knowledge base entry."""
        self._knowledge_base[entry.signature] = entry

    def record_occurrence(self, error: TestError) -> None:
        """Bump frequency and last-seen of the entry matching an error exactly."""
        signature = error_signature(error.message)
        entry = self._knowledge_base.get(signature)
        if entry is not None:
            self._knowledge_base[signature] = replace(
                entry,
                frequency=entry.frequency + 1,
                last_seen=datetime.now(),
            )

    def generate(
        self,
        error: TestError,
        context: ErrorContext,
        category: ErrorCategory,
    ) -> SuggestionBundle:
        """Generate suggestions for one failure.

        Parameters
        ----------
        error : TestError
            The failure
        context : ErrorContext
            Where it happened
        category : ErrorCategory
            Category from the error analyzer

        Returns
        -------
        SuggestionBundle
            Merged, deduplicated suggestions capped at eight, plus quick fixes
            and numbered debugging steps
        """
        candidates = [
            *self._pattern_suggestions(error),
            *self._contextual_suggestions(context, category),
            *self._knowledge_base_suggestions(error, category),
        ]
        merged = self._merge(candidates)
        self.record_occurrence(error)

        logger.debug(
            "Generated %d suggestions for %s (%s)",
            len(merged),
            context.test_name,
            category.value,
        )
        return SuggestionBundle(
            immediate=tuple(s for s in merged if s.bucket == SuggestionBucket.IMMEDIATE),
            investigation=tuple(
                s for s in merged if s.bucket == SuggestionBucket.INVESTIGATION
            ),
            prevention=tuple(
                s for s in merged if s.bucket == SuggestionBucket.PREVENTION
            ),
            quick_fixes=tuple(self.quick_fixes(error, context, category)),
            debugging_steps=tuple(self.debugging_steps(category)),
        )

    def find_knowledge_entries(
        self,
        error: TestError,
        category: ErrorCategory,
    ) -> list[KnowledgeBaseEntry]:
        """Look up knowledge base entries for an error.

        Exact signature match first, then entries of the same category, then
        entries sharing at least two tokens with the message.

        Parameters
        ----------
        error : TestError
            The failure
        category : ErrorCategory
            Category of the failure

        Returns
        -------
        list[KnowledgeBaseEntry]
            At most three entries, best first
        """
        signature = error_signature(error.message)
        found: dict[str, KnowledgeBaseEntry] = {}

        exact = self._knowledge_base.get(signature)
        if exact is not None:
            found[exact.signature] = exact

        for entry in self._knowledge_base.values():
            if entry.category == category and entry.signature != signature:
                found.setdefault(entry.signature, entry)

        words = error.message.lower().split()
        related = [
            entry
            for entry in self._knowledge_base.values()
            if self._shared_tokens(words, entry.signature) >= MIN_SHARED_TOKENS
        ]
        for entry in related[:MAX_RELATED_ENTRIES]:
            found.setdefault(entry.signature, entry)

        return list(found.values())[:MAX_KNOWLEDGE_ENTRIES]

    @staticmethod
    def _shared_tokens(words: list[str], signature: str) -> int:
        signature_words = signature.split()
        return sum(
            1
            for word in words
            if any(sw in word or word in sw for sw in signature_words)
        )

    def _pattern_suggestions(self, error: TestError) -> list[Suggestion]:
        message = error.message.lower()
        suggestions: list[Suggestion] = []
        for pattern in self._patterns:
            if pattern.pattern.search(message):
                suggestions.extend(
                    Suggestion(
                        text=text,
                        confidence=PATTERN_CONFIDENCE,
                        bucket=SuggestionBucket.IMMEDIATE,
                        effort=pattern.effort,
                        source="pattern",
                    )
                    for text in pattern.suggestions
                )
        return suggestions

    def _contextual_suggestions(
        self,
        context: ErrorContext,
        category: ErrorCategory,
    ) -> list[Suggestion]:
        suggestions = [
            Suggestion(
                text=rule.suggestion,
                confidence=rule.confidence,
                bucket=rule.bucket,
                effort=rule.effort,
                source="context",
            )
            for rule in CONTEXTUAL_RULES
            if rule.condition(context)
        ]
        text, confidence, bucket = CATEGORY_RULE_SUGGESTIONS[category]
        suggestions.append(
            Suggestion(text=text, confidence=confidence, bucket=bucket, source="category"),
        )
        return suggestions

    def _knowledge_base_suggestions(
        self,
        error: TestError,
        category: ErrorCategory,
    ) -> list[Suggestion]:
        return [
            Suggestion(
                text=solution.description,
                confidence=solution.confidence,
                bucket=SuggestionBucket.INVESTIGATION,
                effort=DIFFICULTY_EFFORT.get(solution.difficulty, Effort.MEDIUM),
                source="knowledge_base",
            )
            for entry in self.find_knowledge_entries(error, category)
            for solution in entry.solutions
        ]

    @staticmethod
    def _merge(candidates: list[Suggestion]) -> list[Suggestion]:
        unique: dict[str, Suggestion] = {}
        for suggestion in candidates:
            unique.setdefault(_normalize_text(suggestion.text), suggestion)
        ranked = sorted(unique.values(), key=lambda s: s.confidence, reverse=True)
        return ranked[:MAX_SUGGESTIONS]

    def quick_fixes(
        self,
        error: TestError,
        context: ErrorContext,
        category: ErrorCategory,
    ) -> list[str]:
        """Concrete one-step fixes for a category, at most three."""
        fixes: dict[ErrorCategory, list[str]] = {
            ErrorCategory.TIMEOUT: [
                f"Increase the timeout to {max(context.duration * 2, 10000):.0f}ms",
                "Mock the slow operation",
                "Add pytest-timeout to fail fast with a traceback",
            ],
            ErrorCategory.NETWORK: [
                "Patch the HTTP client with unittest.mock",
                "Add a retry with backoff around the request",
                "Point the test at a local fake server",
            ],
            ErrorCategory.ASSERTION: self._assertion_fixes(error),
            ErrorCategory.MOCK: [
                "Call reset_mock() in setup",
                "Use assert_called_with with the actual arguments",
                "Patch the name where it is looked up",
            ],
            ErrorCategory.CONFIGURATION: [
                "Set the missing environment variable",
                "Restore the default configuration file",
                "Load configuration through a fixture",
            ],
            ErrorCategory.INTEGRATION: [
                "Start dependent services before the suite",
                "Replace the dependency with a fake",
            ],
            ErrorCategory.PERFORMANCE: [
                "Reduce the input size",
                "Cache expensive setup in a session fixture",
            ],
            ErrorCategory.DEPENDENCY: [
                "pip install the missing package",
                "Fix the import path",
            ],
            ErrorCategory.UNKNOWN: [
                "Re-run the test alone with -vv",
            ],
        }
        return fixes[category][:MAX_QUICK_FIXES]

    @staticmethod
    def _assertion_fixes(error: TestError) -> list[str]:
        result: list[str] = []
        if error.expected is not None and error.actual is not None:
            result.append(
                f"Update the expected value '{error.expected}' to '{error.actual}' "
                "if the new behavior is correct",
            )
        result.extend(
            [
                "Print the actual value before asserting",
                "Use pytest.approx for floating point comparisons",
            ],
        )
        return result

    @staticmethod
    def debugging_steps(category: ErrorCategory) -> list[str]:
        """Numbered debugging steps for a category."""
        steps = [
            "Reproduce the failure by running the test alone",
            "Inspect the full logs and stack trace",
            *CATEGORY_DEBUG_STEPS[category],
            "Consult the documentation of the failing component",
            "Search existing issues for the error message",
        ]
        return [f"{number}. {step}" for number, step in enumerate(steps, start=1)]
