# src/taskgate/throttle/rate_limiter.py

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections import deque
from typing import Any, TypeVar

from ..core.ports import Clock, Sleeper, TaskOperation
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """
    Sliding-window limiter: at most `max_calls` starts per `period_seconds`.

    This throttles by time, not by how many calls are in flight; combine it with
    TaskScheduler when both are needed. Check-and-record happens without awaiting,
    so concurrent callers on one loop cannot overshoot the window.
    """

    def __init__(
        self,
        max_calls: int,
        period_seconds: float,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if isinstance(max_calls, bool) or not isinstance(max_calls, int) or max_calls < 1:
            raise ConfigurationError(f"max_calls must be a positive integer, got {max_calls!r}")
        if period_seconds <= 0:
            raise ConfigurationError(f"period_seconds must be > 0, got {period_seconds}")

        self.max_calls = max_calls
        self.period_seconds = float(period_seconds)
        self._clock = clock
        self._sleep = sleep
        self._calls: deque[float] = deque()

    @classmethod
    def from_settings(cls, settings: Any) -> RateLimiter:
        return cls(
            int(getattr(settings, "rate_limit_calls", 3)),
            float(getattr(settings, "rate_limit_period", 2.0)),
        )

    def _prune(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self.period_seconds:
            self._calls.popleft()

    @property
    def available(self) -> int:
        """Calls that may start right now without waiting."""
        self._prune(self._clock())
        return self.max_calls - len(self._calls)

    async def acquire(self) -> None:
        """Wait until the window has room, then record this call."""
        while True:
            now = self._clock()
            self._prune(now)
            if len(self._calls) < self.max_calls:
                self._calls.append(now)
                return

            wait_s = self.period_seconds - (now - self._calls[0])
            logger.debug("Rate limit reached (%d/%.2fs); waiting %.3fs", self.max_calls, self.period_seconds, wait_s)
            await self._sleep(max(0.0, wait_s))

    async def execute(self, operation: TaskOperation[T]) -> T:
        await self.acquire()
        outcome = operation()
        if inspect.isawaitable(outcome):
            return await outcome
        return outcome
