"""Log formatters."""

import json
import logging
import os
import sys
from datetime import datetime, timezone

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SafeFormatter(logging.Formatter):
    """Formatter that never raises on a bad format string or arguments.

    A mismatch between ``msg`` and ``args`` falls back to printing both, so a
    broken log call cannot take down the code that made it.
    """

    def __init__(
        self,
        fmt: str | None = DEFAULT_FORMAT,
        datefmt: str | None = DEFAULT_DATE_FORMAT,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        try:
            return super().format(record)
        except (TypeError, ValueError, KeyError):
            record.msg = f"{record.msg} {record.args}"
            record.args = None
            return super().format(record)


class ColoredFormatter(SafeFormatter):
    """SafeFormatter that colors the level name on terminals.

    Parameters
    ----------
    fmt : str | None
        Format string
    datefmt : str | None
        Date format string
    use_colors : bool | None
        Force colors on or off, ``None`` detects from the terminal
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str | None = DEFAULT_FORMAT,
        datefmt: str | None = DEFAULT_DATE_FORMAT,
        use_colors: bool | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = self._should_use_colors() if use_colors is None else use_colors

    @staticmethod
    def _should_use_colors() -> bool:
        if os.environ.get("NO_COLOR"):
            return False
        return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors or record.levelname not in self.COLORS:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{self.COLORS[original]}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for machine consumption."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        caller = getattr(record, "caller", None)
        if caller:
            payload["caller"] = caller
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)
