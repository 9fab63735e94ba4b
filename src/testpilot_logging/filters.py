"""Logging filters."""

import logging


class CallerFilter(logging.Filter):
    """Attach a compact ``caller`` field (module:function:line) to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.caller = f"{record.module}:{record.funcName}:{record.lineno}"
        return True
