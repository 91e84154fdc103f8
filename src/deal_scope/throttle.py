"""Minimum-interval throttle for external providers."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable


class RateLimiter:
    """
    Serializes calls to one provider: each ``wait()`` returns no sooner than
    ``min_interval_s`` after the previous one. Callers suspend, they never fail.
    """

    def __init__(
        self,
        min_interval_s: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_interval_s = min_interval_s
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last: float | None = None

    async def wait(self) -> float:
        """Block until the interval has elapsed; return seconds waited."""
        if self.min_interval_s <= 0:
            return 0.0
        async with self._lock:
            waited = 0.0
            if self._last is not None:
                waited = (self._last + self.min_interval_s) - self._clock()
                if waited > 0:
                    await self._sleep(waited)
                else:
                    waited = 0.0
            self._last = self._clock()
            return waited
