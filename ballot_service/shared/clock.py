"""Time sources for the ballot. Timestamps are whole seconds since the epoch."""
import time


class SystemClock:
    """Wall clock, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


class FakeClock:
    """
    Controllable clock for tests and simulations.

    Time only moves forward; attempts to rewind raise ValueError.
    """

    def __init__(self, start: int = 1_700_000_000):
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new time."""
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError("Clock cannot move backwards")
        self._now = int(timestamp)
