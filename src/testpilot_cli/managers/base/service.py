"""Base class for the services an orchestrator wires together."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import click

from testpilot_logging import get_cli_logger

if TYPE_CHECKING:
    from testpilot_cli.services.command_executor import CommandExecutor


class BaseService:
    """A unit of work bound to one repository.

    Services log through :meth:`log_debug` and friends, which prefix every
    message with the service class name.

    Parameters
    ----------
    repo_root : Path
        Repository root directory
    command_executor : CommandExecutor | None
        Executor for external commands, created on first use when omitted
    ctx : click.Context | None
        CLI context the executor reads its environment from
    """

    def __init__(
        self,
        repo_root: Path,
        command_executor: Optional["CommandExecutor"] = None,
        ctx: Optional["click.Context"] = None,
    ) -> None:
        self.repo_root = repo_root
        self._command_executor = command_executor
        self.ctx = ctx
        self._logger = get_cli_logger(self.__class__.__module__)

    @property
    def command_executor(self) -> "CommandExecutor":
        """Executor for external commands."""
        if self._command_executor is None:
            from testpilot_cli.services.command_executor import CommandExecutor

            self._command_executor = CommandExecutor(
                ctx=self.ctx or click.get_current_context(silent=True),
            )
        return self._command_executor

    def _log(self, level: int, message: str, *args: Any) -> None:
        self._logger.log(
            level,
            "[%s] " + message,
            self.__class__.__name__,
            *args,
            stacklevel=3,
        )

    def log_debug(self, message: str, *args: Any) -> None:
        """Log a debug message tagged with the service name."""
        self._log(logging.DEBUG, message, *args)

    def log_info(self, message: str, *args: Any) -> None:
        """Log an info message tagged with the service name."""
        self._log(logging.INFO, message, *args)

    def log_warning(self, message: str, *args: Any) -> None:
        """Log a warning tagged with the service name."""
        self._log(logging.WARNING, message, *args)

    def log_error(self, message: str, *args: Any) -> None:
        """Log an error tagged with the service name."""
        self._log(logging.ERROR, message, *args)
