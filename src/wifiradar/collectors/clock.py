"""Time source used by collectors and the scheduler.

Injecting the clock lets tests step time by hand instead of sleeping.
"""

import asyncio
from datetime import UTC, datetime
import time
from typing import Protocol


class Clock(Protocol):
    """Source of wall-clock time, monotonic time and sleeping."""

    def now(self) -> datetime:
        """Current UTC time (timezone-aware)."""
        ...

    def monotonic(self) -> float:
        """Monotonic seconds for measuring intervals."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the caller for ``seconds``."""
        ...


class SystemClock:
    """Clock backed by the real system time and asyncio.sleep.

    ``now()`` never goes backwards, even if the wall clock is stepped, so
    samples taken through one SystemClock have non-decreasing timestamps.
    """

    def __init__(self) -> None:
        self._last: datetime | None = None

    def now(self) -> datetime:
        current = datetime.now(UTC)
        if self._last is not None and current < self._last:
            current = self._last
        self._last = current
        return current

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
