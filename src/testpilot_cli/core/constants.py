"""Constants and enums for the testpilot CLI."""

from enum import Enum

from testpilot.models.enums import OverallStatus


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ExitCode:
    """Exit codes for CLI operations."""

    SUCCESS = 0
    FAILURE = 1
    PARTIAL = 2
    CONFIG_ERROR = 3
    PERMISSION_ERROR = 4
    TIMEOUT = 124
    NOT_FOUND = 127

    @classmethod
    def for_status(cls, status: OverallStatus) -> int:
        """Exit code for the overall status of a run."""
        return {
            OverallStatus.PASSED: cls.SUCCESS,
            OverallStatus.FAILED: cls.FAILURE,
            OverallStatus.PARTIAL: cls.PARTIAL,
        }[status]


class Icons:
    """Unicode icons for CLI output.

    Note: General output (CliOutput methods) use colors instead of these icons.
    Icons are reserved for errors, headers and status indicators.
    """

    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "📄"
    SKIPPED = "⏭️"

    ROCKET = "🚀"
    TEST = "🧪"
    REPORT = "📊"
    LIGHTNING = "⚡"
    MAGNIFYING = "🔍"
    LOOP = "🔄"
    STOP = "🛑"
    BULB = "💡"
    CONFIG = "⚙️"
    ARROW_RIGHT = "→"
    CHECK = "✓"
    CROSS = "✗"


class EnvVars:
    """Environment variables read or exported by testpilot."""

    CONFIG = "TESTPILOT_CONFIG"
    LOG_LEVEL = "TESTPILOT_LOG_LEVEL"

    SUITE_NAME = "TESTPILOT_SUITE"
    SUITE_CATEGORY = "TESTPILOT_CATEGORY"
    SUITE_TIMEOUT = "TESTPILOT_TIMEOUT_MS"
    SUITE_WORKERS = "TESTPILOT_WORKERS"
    SUITE_ISOLATED = "TESTPILOT_ISOLATED"
    SUITE_ATTEMPT = "TESTPILOT_ATTEMPT"

    CI_ENVIRONMENT_VARS = {
        "GITHUB_ACTIONS": "github-actions",
        "GITLAB_CI": "gitlab-ci",
        "JENKINS_HOME": "jenkins",
        "CIRCLECI": "circleci",
        "TRAVIS": "travis",
        "BUILDKITE": "buildkite",
        "DRONE": "drone",
        "TEAMCITY_VERSION": "teamcity",
        "TF_BUILD": "azure-devops",
        "CI": "generic",
    }


class ProjectFiles:
    """Configuration file names looked up at the repository root."""

    CONFIG_CANDIDATES = (
        "testpilot.yaml",
        "testpilot.yml",
        ".testpilot.yaml",
        "testpilot.json",
    )
    DEFAULT_CONFIG = "testpilot.yaml"
    ROOT_MARKERS = (".git", "pyproject.toml", "testpilot.yaml", "testpilot.yml")


# Timestamp placeholder accepted in report output paths
TIMESTAMP_PLACEHOLDER = "{timestamp}"
