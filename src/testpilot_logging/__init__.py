"""Logging setup shared by the testpilot packages."""

from testpilot_logging.config import (
    configure_logger,
    get_cli_logger,
    get_logger,
    get_test_logger,
    set_global_level,
)
from testpilot_logging.filters import CallerFilter
from testpilot_logging.formatters import ColoredFormatter, JSONFormatter, SafeFormatter
from testpilot_logging.utils import format_bytes

__all__ = [
    "CallerFilter",
    "ColoredFormatter",
    "JSONFormatter",
    "SafeFormatter",
    "configure_logger",
    "format_bytes",
    "get_cli_logger",
    "get_logger",
    "get_test_logger",
    "set_global_level",
]
