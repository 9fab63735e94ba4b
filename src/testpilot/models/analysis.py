"""Records used by the error analyzer and the suggestion engine."""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from testpilot.models.enums import (
    Effort,
    ErrorCategory,
    Severity,
    SuggestionBucket,
    SuiteCategory,
)

if TYPE_CHECKING:
    from testpilot.models.results import TestError


@dataclass(frozen=True)
class ErrorContext:
    """Where and how an error happened.

    Parameters
    ----------
    test_name : str
        Fully qualified test name
    suite_name : str
        Owning suite
    file_path : str
        Suite target file
    test_category : SuiteCategory | None
        Category of the owning suite
    duration : float
        Test duration in milliseconds
    retry_count : int
        Retries the suite needed
    critical : bool
        Whether the owning suite is critical
    """

    test_name: str
    suite_name: str
    file_path: str = ""
    test_category: SuiteCategory | None = None
    duration: float = 0
    retry_count: int = 0
    critical: bool = False


@dataclass(frozen=True)
class StackFrame:
    """One parsed stack frame."""

    function: str
    file: str
    line: int
    column: int | None
    is_user_code: bool


@dataclass(frozen=True)
class ErrorAnalysis:
    """Explanation of a single error."""

    category: ErrorCategory
    severity: Severity
    impact: str
    suggestions: tuple[str, ...]
    related_tests: tuple[str, ...]
    possible_causes: tuple[str, ...]
    quick_fixes: tuple[str, ...]
    documentation_links: tuple[str, ...]
    stack_frames: tuple[StackFrame, ...] = ()


@dataclass(frozen=True)
class ErrorGroup:
    """Errors sharing a category, a normalized pattern and a test category."""

    key: str
    category: ErrorCategory
    pattern: str
    test_category: str
    occurrences: tuple[tuple["TestError", ErrorContext], ...]
    severity: Severity

    @property
    def frequency(self) -> int:
        return len(self.occurrences)


@dataclass(frozen=True)
class ErrorGroupSummary:
    """Overview of a set of error groups."""

    total_groups: int
    total_errors: int
    most_common_category: ErrorCategory | None
    severity_distribution: dict[str, int]
    recommendations: tuple[str, ...]


@dataclass(frozen=True)
class ErrorGroupReport:
    """Result of grouping errors."""

    groups: tuple[ErrorGroup, ...]
    summary: ErrorGroupSummary


@dataclass(frozen=True)
class Suggestion:
    """One piece of advice with a confidence in [0, 1]."""

    text: str
    confidence: float
    bucket: SuggestionBucket
    effort: Effort = Effort.MEDIUM
    source: str = "context"


@dataclass(frozen=True)
class SuggestionBundle:
    """Suggestions split by when they should be acted on."""

    immediate: tuple[Suggestion, ...] = ()
    investigation: tuple[Suggestion, ...] = ()
    prevention: tuple[Suggestion, ...] = ()
    quick_fixes: tuple[str, ...] = ()
    debugging_steps: tuple[str, ...] = ()

    @property
    def all(self) -> list[Suggestion]:
        return [*self.immediate, *self.investigation, *self.prevention]


@dataclass(frozen=True)
class Solution:
    """A known fix for a knowledge base entry.

    ``difficulty`` is one of ``easy``, ``medium`` or ``hard``.
    """

    description: str
    steps: tuple[str, ...]
    difficulty: str
    confidence: float


@dataclass(frozen=True)
class KnowledgeBaseEntry:
    """Known error signature with its solutions."""

    signature: str
    category: ErrorCategory
    solutions: tuple[Solution, ...]
    frequency: int = 0
    last_seen: datetime | None = None
