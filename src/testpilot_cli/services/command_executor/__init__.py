"""Command executor service.

Provides unified command execution for the CLI: synchronous helper commands
(``git`` and friends) and watched, asynchronous test runner processes.
"""

import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from testpilot_cli.core.constants import EnvVars
from testpilot_logging import get_cli_logger

from .environment_service import EnvironmentService
from .execution_service import ExecutionService, ProcessResult

if TYPE_CHECKING:
    import click

logger = get_cli_logger(__name__)


class CommandExecutor:
    """Single entry point for spawning subprocesses.

    Short helper commands go through :meth:`execute`; test runner processes go
    through :meth:`run_process`, which adds the Python environment and the
    watchdog.

    Parameters
    ----------
    ctx : click.Context | None
        CLI context whose ``resolved_env`` child processes inherit
    """

    def __init__(self, ctx: "click.Context | None" = None) -> None:
        self._ctx = ctx
        self._env_service = EnvironmentService(ctx)
        self._execution = ExecutionService(ctx)

        self._ci_provider: str | None = None
        self._ci_checked = False

    @property
    def base_env(self) -> dict[str, str]:
        """Copy of the environment child processes inherit."""
        return self._env_service.base_env

    @property
    def ci_provider(self) -> str | None:
        """Name of the detected CI provider, if any."""
        if not self._ci_checked:
            env = self._env_service.base_env
            self._ci_provider = next(
                (
                    provider
                    for var, provider in EnvVars.CI_ENVIRONMENT_VARS.items()
                    if env.get(var)
                ),
                None,
            )
            self._ci_checked = True
            if self._ci_provider:
                logger.debug("CI environment detected: %s", self._ci_provider)
        return self._ci_provider

    @property
    def is_ci(self) -> bool:
        """Whether a CI provider was detected."""
        return self.ci_provider is not None

    def build_environment(
        self,
        env_overrides: dict[str, str] | None = None,
    ) -> dict[str, str] | None:
        """Build command environment with overrides.

        Returns None if no overrides (subprocess uses default environment).
        """
        return self._env_service.build_environment(env_overrides)

    def execute(
        self,
        cmd: list[str] | str,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        check: bool = True,
        timeout: float | None = None,
        capture_output: bool = True,
        **kwargs: Any,
    ) -> subprocess.CompletedProcess[str]:
        """Execute a short-lived command synchronously.

        Parameters
        ----------
        cmd : list[str] or str
            Command to execute
        cwd : Path, optional
            Working directory
        env : dict[str, str], optional
            Environment variables to add/override
        check : bool
            Whether to raise exception on failure
        timeout : float, optional
            Timeout in seconds
        capture_output : bool
            Whether to capture output
        **kwargs : Any
            Additional arguments passed to subprocess

        Returns
        -------
        subprocess.CompletedProcess[str]
            Result of command execution
        """
        if isinstance(cmd, str):
            cmd = cmd.split()
        return self._execution.execute(
            cmd,
            cwd=cwd,
            env=env,
            capture_output=capture_output,
            timeout=timeout,
            check=check,
            **kwargs,
        )

    async def run_process(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
        on_start: Callable[[int], Any] | None = None,
    ) -> ProcessResult:
        """Run a test runner process under a watchdog.

        See :meth:`ExecutionService.run_process`.
        """
        python_env = self._env_service.setup_python_environment(
            {**self._env_service.base_env, **(env or {})},
        )
        return await self._execution.run_process(
            cmd,
            cwd=cwd,
            env=python_env,
            timeout=timeout,
            on_start=on_start,
        )


__all__ = [
    "CommandExecutor",
    "EnvironmentService",
    "ExecutionService",
    "ProcessResult",
]
