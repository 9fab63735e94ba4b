"""Bounded per-test history of performance samples."""

from collections import deque

from testpilot.models.metrics import HistoricalDataPoint

DEFAULT_MAX_POINTS = 50


class HistoryStore:
    """Ring buffer of :class:`HistoricalDataPoint` per test name.

    Each buffer holds at most ``max_points`` samples; adding beyond that evicts
    the oldest. The store is owned by one orchestrator and handed to the
    performance analyzer explicitly.

    Parameters
    ----------
    max_points : int
        Samples kept per test name
    """

    def __init__(self, max_points: int = DEFAULT_MAX_POINTS) -> None:
        self.max_points = max_points
        self._data: dict[str, deque[HistoricalDataPoint]] = {}

    def add(self, test_name: str, point: HistoricalDataPoint) -> None:
        """Append a sample for a test, evicting the oldest if full."""
        buffer = self._data.get(test_name)
        if buffer is None:
            buffer = deque(maxlen=self.max_points)
            self._data[test_name] = buffer
        buffer.append(point)

    def get(self, test_name: str) -> list[HistoricalDataPoint]:
        """Samples for a test, oldest first."""
        return list(self._data.get(test_name, ()))

    def latest(self, test_name: str) -> HistoricalDataPoint | None:
        """Most recent sample for a test."""
        buffer = self._data.get(test_name)
        return buffer[-1] if buffer else None

    def all_points(self) -> list[HistoricalDataPoint]:
        """Every sample, grouped by test in insertion order."""
        return [point for buffer in self._data.values() for point in buffer]

    def test_names(self) -> list[str]:
        return list(self._data)

    def export(self) -> dict[str, list[HistoricalDataPoint]]:
        """Copy of the whole store."""
        return {name: list(buffer) for name, buffer in self._data.items()}

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, test_name: object) -> bool:
        return test_name in self._data
