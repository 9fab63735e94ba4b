"""Core command execution service."""

import asyncio
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    import click

from testpilot.common.errors import ProcessSpawnError, TestpilotError
from testpilot_cli.core.constants import ExitCode
from testpilot_logging import get_cli_logger

from .environment_service import EnvironmentService

logger = get_cli_logger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a watched child process.

    ``returncode`` is ``None`` only when the process was killed by the
    watchdog and never reported a status.
    """

    returncode: int | None
    stdout: str
    stderr: str
    duration_ms: float
    timed_out: bool = False
    pid: int | None = None


class ExecutionService:
    """Spawn subprocesses with the CLI environment.

    Synchronous commands map failures to :class:`TestpilotError`; watched
    runner processes report timeouts in their :class:`ProcessResult`.
    """

    def __init__(self, ctx: Optional["click.Context"] = None) -> None:
        self.ctx = ctx
        self._env_service = EnvironmentService(ctx)

    def execute(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        capture_output: bool = False,
        timeout: float | None = None,
        check: bool = True,
        **kwargs: Any,
    ) -> subprocess.CompletedProcess[str]:
        """Execute a command with the given parameters.

        Parameters
        ----------
        cmd : list[str]
            Command to execute
        cwd : Path | None, optional
            Working directory
        env : dict[str, str] | None, optional
            Environment variables to add/override
        capture_output : bool, optional
            Whether to capture output
        timeout : float | None, optional
            Timeout in seconds
        check : bool, optional
            Whether to raise exception on failure
        **kwargs : Any
            Additional arguments passed to subprocess.run

        Returns
        -------
        subprocess.CompletedProcess[str]
            Result of command execution

        Raises
        ------
        TestpilotError
            If command fails and check=True
        """
        logger.debug("Executing command: %s", " ".join(cmd))
        if cwd:
            logger.debug("Working directory: %s", cwd)

        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                cwd=cwd,
                env=self._env_service.build_environment(env),
                capture_output=capture_output,
                text=True,
                timeout=timeout,
                check=False,
                **kwargs,
            )

            if check and result.returncode != 0:
                error_msg = f"Command failed with exit code {result.returncode}: {' '.join(cmd)}"
                if result.stderr:
                    error_msg += f"\nError output: {result.stderr}"
                logger.error(error_msg)
                raise TestpilotError(error_msg)

            return result

        except subprocess.TimeoutExpired as e:
            error_msg = f"Command timed out after {timeout} seconds: {' '.join(cmd)}"
            logger.error(error_msg)
            if check:
                raise TestpilotError(error_msg) from e
            return subprocess.CompletedProcess(cmd, ExitCode.TIMEOUT, "", str(e))

        except FileNotFoundError as e:
            error_msg = f"Command not found: {cmd[0]}"
            logger.error(error_msg)
            if check:
                raise TestpilotError(error_msg) from e
            return subprocess.CompletedProcess(cmd, ExitCode.NOT_FOUND, "", str(e))

    async def run_process(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
        on_start: Any = None,
    ) -> ProcessResult:
        """Run a child process with captured output under a watchdog.

        Parameters
        ----------
        cmd : list[str]
            Command to execute
        cwd : Path | None, optional
            Working directory
        env : dict[str, str] | None, optional
            Environment variables to add/override
        timeout : float | None, optional
            Watchdog deadline in seconds; the child is killed when it expires
        on_start : Callable[[int], Any] | None, optional
            Called with the child pid once the process is spawned

        Returns
        -------
        ProcessResult
            Exit status, decoded output and timing

        Raises
        ------
        ProcessSpawnError
            If the process cannot be started
        """
        logger.debug("Spawning process: %s", " ".join(cmd))
        started = time.perf_counter()
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=cwd,
                env=self._env_service.build_environment(env),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            msg = f"Failed to start process {cmd[0]}: {e}"
            logger.error(msg)
            raise ProcessSpawnError(msg) from e

        if on_start is not None:
            on_start(process.pid)

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Process %s exceeded %ss, killing", process.pid, timeout)
            if process.returncode is None:
                process.kill()
            await process.wait()
            return ProcessResult(
                returncode=None,
                stdout="",
                stderr="",
                duration_ms=(time.perf_counter() - started) * 1000,
                timed_out=True,
                pid=process.pid,
            )

        return ProcessResult(
            returncode=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_ms=(time.perf_counter() - started) * 1000,
            pid=process.pid,
        )
