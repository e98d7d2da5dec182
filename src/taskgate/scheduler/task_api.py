# src/taskgate/scheduler/task_api.py

"""
Composition helpers built on top of TaskScheduler and its handles.

None of these are special cases inside the scheduler: aggregation, timeouts and
retries are expressed by composing handles and awaitables.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Iterable, Sequence, TypeVar

from ..config import get_settings
from ..core.ports import Sleeper, TaskOperation
from ..errors import ConfigurationError, RetryExhaustedError, TaskTimeoutError
from .task_handle import TaskHandle
from .task_scheduler import TaskScheduler

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _retry_defaults() -> tuple[int, float]:
    s = get_settings()
    return (
        int(getattr(s, "retry_max_attempts", 3)),
        float(getattr(s, "retry_base_delay", 1.0)),
    )


def serial_queue(*, name: str = "queue") -> TaskScheduler:
    """Strict FIFO queue: one task at a time, failures logged and skipped."""
    return TaskScheduler(1, name=name)


async def execute_with_limit(operations: Iterable[TaskOperation[T]], limit: int) -> list[T]:
    """
    Run a batch with at most `limit` tasks in flight and return results in input order.

    Fails fast: the first TaskError is raised as soon as it happens. Sibling tasks are
    not cancelled and keep running on the scheduler.
    """
    scheduler = TaskScheduler(limit, name="execute_with_limit")
    handles = scheduler.submit_batch(operations)
    if not handles:
        return []
    return list(await asyncio.gather(*handles))


@dataclass(slots=True)
class SettledResults:
    """Outcome of settle_all: successes and failures, each in input order."""

    fulfilled: list[Any] = field(default_factory=list)
    rejected: list[BaseException] = field(default_factory=list)

    @property
    def all_fulfilled(self) -> bool:
        return not self.rejected


async def settle_all(handles: Sequence[TaskHandle[Any]] | Iterable[Awaitable[Any]]) -> SettledResults:
    """
    Wait for every handle, tolerating failures.

    Cancelled handles end up in `rejected` as asyncio.CancelledError.
    """
    items = list(handles)
    out = SettledResults()
    if not items:
        return out

    results = await asyncio.gather(*items, return_exceptions=True)
    for res in results:
        if isinstance(res, BaseException):
            out.rejected.append(res)
        else:
            out.fulfilled.append(res)
    return out


async def with_timeout(awaitable: Awaitable[T], seconds: float | None) -> T:
    """
    Race an awaitable against a timer.

    The awaitable is shielded: on timeout the caller gets TaskTimeoutError while the
    underlying work (for example a scheduled task) keeps running and still settles
    its own handle. `seconds=None` disables the timer.
    """
    if seconds is None:
        return await awaitable
    if seconds <= 0:
        raise ConfigurationError(f"timeout must be > 0 seconds, got {seconds}")

    try:
        return await asyncio.wait_for(asyncio.shield(awaitable), timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise TaskTimeoutError(seconds, original_error=exc) from exc


async def retry_operation(
        operation: TaskOperation[T],
        *,
        max_attempts: int | None = None,
        base_delay: float | None = None,
        sleep: Sleeper = asyncio.sleep,
) -> T:
    """
    Call `operation` until it succeeds, backing off exponentially between attempts.

    Delays are base_delay * 1, 2, 4, ... seconds. After the last failed attempt
    RetryExhaustedError is raised with the last error attached. Unset limits come
    from settings (TASKGATE_RETRY_MAX_ATTEMPTS, TASKGATE_RETRY_BASE_DELAY).
    """
    if max_attempts is None or base_delay is None:
        default_attempts, default_delay = _retry_defaults()
        max_attempts = default_attempts if max_attempts is None else max_attempts
        base_delay = default_delay if base_delay is None else base_delay

    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
        raise ConfigurationError(f"max_attempts must be a positive integer, got {max_attempts!r}")
    if base_delay < 0:
        raise ConfigurationError(f"base_delay must be >= 0, got {base_delay}")

    for attempt in range(1, max_attempts + 1):
        try:
            outcome = operation()
            if inspect.isawaitable(outcome):
                outcome = await outcome
            if attempt > 1:
                logger.info("Operation succeeded on attempt %d/%d", attempt, max_attempts)
            return outcome
        except Exception as exc:
            if attempt == max_attempts:
                logger.error("Operation failed after %d attempts: %r", max_attempts, exc)
                raise RetryExhaustedError(max_attempts, exc) from exc

            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                "Attempt %d/%d failed: %r; retrying in %.2fs", attempt, max_attempts, exc, delay
            )
            await sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
