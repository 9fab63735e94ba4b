"""Environment helpers for logging configuration."""

import os
import sys
from pathlib import Path

LOG_LEVEL_ENV = "TESTPILOT_LOG_LEVEL"
LOG_DIR_ENV = "TESTPILOT_LOG_DIR"
NO_FILE_LOGGING_ENV = "TESTPILOT_NO_FILE_LOGGING"
CONSOLE_LOGGING_ENV = "TESTPILOT_CONSOLE_LOGGING"

_TRUTHY = {"1", "true", "yes", "on"}
VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def read_bool_env(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable.

    Parameters
    ----------
    name : str
        Variable name
    default : bool
        Value when the variable is unset

    Returns
    -------
    bool
        Parsed value
    """
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def get_log_level(default: str = "INFO") -> str:
    """Get the configured log level name.

    Parameters
    ----------
    default : str
        Level used when the environment does not name a valid one

    Returns
    -------
    str
        Upper-case level name
    """
    level = os.environ.get(LOG_LEVEL_ENV, default).strip().upper()
    if level not in VALID_LEVELS:
        return default
    return level


def get_log_dir() -> Path:
    """Directory holding log files."""
    configured = os.environ.get(LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".testpilot" / "log"


def get_log_file_path(name: str) -> Path:
    """Get the log file path for a profile, creating its directory.

    Parameters
    ----------
    name : str
        Log file stem, usually the profile name

    Returns
    -------
    Path
        Path of the log file
    """
    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"{name}.log"


def is_test_environment() -> bool:
    """Whether we are running under pytest."""
    return "PYTEST_CURRENT_TEST" in os.environ or "pytest" in sys.modules


def should_use_file_logging() -> bool:
    """Whether loggers should write to a log file."""
    if read_bool_env(NO_FILE_LOGGING_ENV):
        return False
    return not is_test_environment()


def should_log_to_console() -> bool:
    """Whether loggers should also write to stderr by default."""
    return read_bool_env(CONSOLE_LOGGING_ENV)


def format_bytes(num_bytes: float) -> str:
    """Format a byte count for humans.

    Parameters
    ----------
    num_bytes : float
        Byte count, may be negative

    Returns
    -------
    str
        Value such as ``"1.5 MB"``
    """
    value = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(value) < 1024:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"
