"""Logger configuration profiles.

Profiles:

- ``core``: engine modules, file logging to ``testpilot.log``
- ``cli``: command modules, file logging to ``cli.log``
- ``test``: pytest runs, propagates to the root logger so ``caplog`` sees records
- ``custom``: only what the caller passes in
"""

import logging
import logging.handlers
import sys
from collections.abc import Iterable

from testpilot_logging.filters import CallerFilter
from testpilot_logging.formatters import ColoredFormatter, SafeFormatter
from testpilot_logging.utils import (
    get_log_file_path,
    get_log_level,
    is_test_environment,
    should_log_to_console,
    should_use_file_logging,
)

PROFILES = ("core", "cli", "test", "custom")

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 3


def _file_handler(path: str) -> logging.Handler:
    return logging.handlers.RotatingFileHandler(
        path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColoredFormatter())
    return handler


def configure_logger(
    name: str,
    profile: str = "core",
    level: str | None = None,
    log_file: str | None = None,
    to_console: bool | None = None,
    formatter: logging.Formatter | None = None,
    filters: Iterable[logging.Filter] | None = None,
    handlers: Iterable[logging.Handler] | None = None,
) -> logging.Logger:
    """Configure a logger according to a profile.

    Existing handlers and filters on the logger are removed first, so calling
    this repeatedly is safe.

    Parameters
    ----------
    name : str
        Logger name
    profile : str
        One of ``core``, ``cli``, ``test`` or ``custom``
    level : str | None
        Level name, defaults to :func:`get_log_level` (DEBUG for ``test``)
    log_file : str | None
        Explicit log file path
    to_console : bool | None
        Also log to stderr, defaults to the ``TESTPILOT_CONSOLE_LOGGING`` env
    formatter : logging.Formatter | None
        Formatter applied to every handler created here
    filters : Iterable[logging.Filter] | None
        Extra filters for the logger
    handlers : Iterable[logging.Handler] | None
        Extra handlers, added as-is

    Returns
    -------
    logging.Logger
        The configured logger

    Raises
    ------
    ValueError
        If the profile is unknown
    """
    if profile not in PROFILES:
        msg = f"Unknown profile: {profile}"
        raise ValueError(msg)

    logger = logging.getLogger(name)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.filters.clear()

    if level is None:
        level = "DEBUG" if profile == "test" else get_log_level()
    logger.setLevel(level.upper())

    if to_console is None:
        to_console = should_log_to_console()

    created: list[logging.Handler] = []
    if profile in ("core", "cli"):
        if should_use_file_logging():
            file_name = log_file or str(get_log_file_path(profile))
            created.append(_file_handler(file_name))
        if to_console:
            created.append(_console_handler())
        logger.addFilter(CallerFilter())
        logger.propagate = is_test_environment()
    elif profile == "test":
        if to_console:
            created.append(_console_handler())
        logger.addFilter(CallerFilter())
        logger.propagate = True
    else:
        if log_file:
            created.append(_file_handler(log_file))
        if to_console:
            created.append(_console_handler())

    for handler in created:
        if formatter is not None:
            handler.setFormatter(formatter)
        elif handler.formatter is None:
            handler.setFormatter(SafeFormatter())
        logger.addHandler(handler)

    for extra_filter in filters or ():
        logger.addFilter(extra_filter)
    for extra_handler in handlers or ():
        logger.addHandler(extra_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for engine modules."""
    return configure_logger(name, profile="core")


def get_cli_logger(name: str) -> logging.Logger:
    """Get a logger for CLI modules."""
    return configure_logger(name, profile="cli")


def get_test_logger(name: str) -> logging.Logger:
    """Get a logger for test helpers."""
    return configure_logger(name, profile="test")


def set_global_level(level: str, to_console: bool | None = None) -> None:
    """Reconfigure every already-created testpilot logger.

    Used by the CLI once ``--verbose`` / ``--log-level`` are known.

    Parameters
    ----------
    level : str
        Level name
    to_console : bool | None
        Whether to mirror records to stderr
    """
    for name in list(logging.root.manager.loggerDict):
        if name.split(".")[0] == "testpilot_cli":
            configure_logger(name, profile="cli", level=level, to_console=to_console)
        elif name.split(".")[0] == "testpilot":
            configure_logger(name, profile="core", level=level, to_console=to_console)
