"""Ordered error classification rules and severity policy.

Categories share keywords ("mock ... expected", "request timeout"), so the
rules are evaluated in a fixed order and the first match wins.
"""

import re
from dataclasses import dataclass

from testpilot.models.analysis import ErrorContext
from testpilot.models.enums import ErrorCategory, Severity, SuiteCategory


@dataclass(frozen=True)
class ClassificationRule:
    """A predicate over lowercased error text paired with a category.

    The rule matches when the pattern matches, any keyword is contained in the
    text, or every keyword of one of the ``all_of`` groups is contained.

    Parameters
    ----------
    name : str
        Rule name, used in debug logs
    category : ErrorCategory
        Category assigned on match
    keywords : tuple[str, ...]
        Substrings, any of which matches
    pattern : re.Pattern[str] | None
        Regular expression searched in the text
    all_of : tuple[tuple[str, ...], ...]
        Keyword groups that must all be present together
    """

    name: str
    category: ErrorCategory
    keywords: tuple[str, ...] = ()
    pattern: re.Pattern[str] | None = None
    all_of: tuple[tuple[str, ...], ...] = ()

    def matches(self, text: str) -> bool:
        if self.pattern is not None and self.pattern.search(text):
            return True
        if any(keyword in text for keyword in self.keywords):
            return True
        return any(all(keyword in text for keyword in group) for group in self.all_of)


REGISTERED_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="timeout_pattern",
        category=ErrorCategory.TIMEOUT,
        pattern=re.compile(r"timeout.*exceeded"),
        keywords=("timeout", "exceeded", "timed out"),
    ),
    ClassificationRule(
        name="network_pattern",
        category=ErrorCategory.NETWORK,
        pattern=re.compile(r"network.*error|fetch.*failed"),
        keywords=("network", "fetch", "request", "connection"),
    ),
)

KEYWORD_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="mock",
        category=ErrorCategory.MOCK,
        keywords=("jest.fn", "mock was called", "spy", "stub", "assert_called"),
        all_of=(("mock", "called"),),
    ),
    ClassificationRule(
        name="timeout",
        category=ErrorCategory.TIMEOUT,
        keywords=("timeout", "timed out", "exceeded"),
    ),
    ClassificationRule(
        name="network",
        category=ErrorCategory.NETWORK,
        keywords=("network", "fetch", "request", "connection", "cors"),
    ),
    ClassificationRule(
        name="assertion",
        category=ErrorCategory.ASSERTION,
        keywords=("expect", "assertion", "tobe", "toequal", "tomatch", "assert "),
    ),
    ClassificationRule(
        name="configuration",
        category=ErrorCategory.CONFIGURATION,
        keywords=("config", "configuration", "environment"),
        # bare "env" only as a word, ".venv" paths in tracebacks must not match
        pattern=re.compile(r"\benv\b"),
    ),
    ClassificationRule(
        name="performance",
        category=ErrorCategory.PERFORMANCE,
        keywords=("performance", "memory", "cpu", "slow"),
    ),
    ClassificationRule(
        name="integration",
        category=ErrorCategory.INTEGRATION,
        keywords=("integration", "service", "api", "endpoint"),
    ),
    ClassificationRule(
        name="dependency",
        category=ErrorCategory.DEPENDENCY,
        keywords=("dependency", "module", "import", "require"),
    ),
)

CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = REGISTERED_RULES + KEYWORD_RULES

DEFAULT_SEVERITY: dict[ErrorCategory, Severity] = {
    ErrorCategory.CONFIGURATION: Severity.CRITICAL,
    ErrorCategory.DEPENDENCY: Severity.HIGH,
    ErrorCategory.INTEGRATION: Severity.HIGH,
    ErrorCategory.ASSERTION: Severity.MEDIUM,
    ErrorCategory.MOCK: Severity.MEDIUM,
    ErrorCategory.TIMEOUT: Severity.MEDIUM,
    ErrorCategory.NETWORK: Severity.MEDIUM,
    ErrorCategory.PERFORMANCE: Severity.LOW,
    ErrorCategory.UNKNOWN: Severity.LOW,
}


def classify_error(
    message: str,
    stack: str | None = None,
    rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
) -> ErrorCategory:
    """Classify an error by its message and stack.

    Parameters
    ----------
    message : str
        Error message
    stack : str | None
        Stack trace text
    rules : tuple[ClassificationRule, ...]
        Rules in precedence order

    Returns
    -------
    ErrorCategory
        First matching category, ``UNKNOWN`` when nothing matches
    """
    text = f"{message} {stack or ''}".lower()
    for rule in rules:
        if rule.matches(text):
            return rule.category
    return ErrorCategory.UNKNOWN


def determine_severity(category: ErrorCategory, context: ErrorContext) -> Severity:
    """Determine the severity of a classified error.

    Parameters
    ----------
    category : ErrorCategory
        Classified category
    context : ErrorContext
        Where the error happened

    Returns
    -------
    Severity
        Severity for the error
    """
    if category == ErrorCategory.CONFIGURATION:
        return Severity.CRITICAL
    if context.retry_count > 1:
        return Severity.HIGH
    if context.test_category == SuiteCategory.INTEGRATION and (
        context.critical or "critical" in context.suite_name.lower()
    ):
        return Severity.CRITICAL
    return DEFAULT_SEVERITY[category]
