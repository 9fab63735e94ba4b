"""Resource sampling of a running child process tree."""

import asyncio
import contextlib
from dataclasses import dataclass

import psutil

from testpilot_logging import get_logger

logger = get_logger(__name__)

DEFAULT_INTERVAL = 0.1


@dataclass(frozen=True)
class ProcessUsage:
    """Peak resident memory (bytes) and CPU time (ms) of a process tree."""

    peak_rss: int = 0
    cpu_ms: float = 0


class ProcessSampler:
    """Poll a child process and its descendants until stopped.

    The sampler keeps the highest combined resident set size seen and the
    latest combined CPU time, so short-lived runners that exit between two
    polls report whatever the last poll observed.

    Parameters
    ----------
    interval : float
        Seconds between polls
    """

    def __init__(self, interval: float = DEFAULT_INTERVAL) -> None:
        self.interval = interval
        self._peak_rss = 0
        self._cpu_ms = 0.0
        self._task: asyncio.Task | None = None

    def attach(self, pid: int) -> None:
        """Start polling ``pid``; must be called from inside the event loop."""
        try:
            process = psutil.Process(pid)
        except psutil.Error as e:
            logger.debug("Cannot sample process %s: %s", pid, e)
            return
        self._sample(process)
        self._task = asyncio.get_running_loop().create_task(self._poll(process))

    async def stop(self) -> ProcessUsage:
        """Stop polling and return what was observed."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        return ProcessUsage(peak_rss=self._peak_rss, cpu_ms=self._cpu_ms)

    async def _poll(self, process: psutil.Process) -> None:
        while self._sample(process):
            await asyncio.sleep(self.interval)

    def _sample(self, process: psutil.Process) -> bool:
        try:
            with process.oneshot():
                rss = process.memory_info().rss
                cpu = process.cpu_times()
                cpu_ms = (cpu.user + cpu.system) * 1000
            for child in process.children(recursive=True):
                with contextlib.suppress(psutil.Error):
                    rss += child.memory_info().rss
                    child_cpu = child.cpu_times()
                    cpu_ms += (child_cpu.user + child_cpu.system) * 1000
        except psutil.Error:
            return False
        self._peak_rss = max(self._peak_rss, rss)
        self._cpu_ms = max(self._cpu_ms, cpu_ms)
        return True
