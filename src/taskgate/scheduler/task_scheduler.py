# src/taskgate/scheduler/task_scheduler.py

from __future__ import annotations

"""
Concurrency-bounded task scheduler.

A small self-driving admission loop that:
- keeps submitted tasks in a FIFO queue,
- starts them in submission order while fewer than `concurrency_limit` are running,
- settles each task's own handle (one failure never affects its siblings),
- pulls in the next queued task whenever a running one finishes.

All bookkeeping happens synchronously inside one event loop, so two admission
passes can never interleave. The scheduler is not thread safe; hand work over
from other threads with loop.call_soon_threadsafe.
"""

import asyncio
import functools
import inspect
import logging
from collections import deque
from typing import Any, Iterable

from ..core.ports import TaskOperation
from ..errors import ConfigurationError, TaskError
from .task_handle import TaskHandle
from .task_models import SchedulerStats, TaskRecord, TaskState

logger = logging.getLogger(__name__)


def _validate_limit(concurrency_limit: Any) -> int:
    # bool is an int subclass; True would silently mean "1".
    if isinstance(concurrency_limit, bool) or not isinstance(concurrency_limit, int):
        raise ConfigurationError(
            f"concurrency_limit must be a positive integer, got {concurrency_limit!r}"
        )
    if concurrency_limit < 1:
        raise ConfigurationError(f"concurrency_limit must be >= 1, got {concurrency_limit}")
    return concurrency_limit


class TaskScheduler:
    """Runs submitted tasks with at most `concurrency_limit` of them in flight."""

    def __init__(self, concurrency_limit: int, *, name: str = "taskgate") -> None:
        self._limit = _validate_limit(concurrency_limit)
        self.name = name

        self._pending: deque[tuple[TaskRecord, asyncio.Future[Any]]] = deque()
        self._running = 0
        self._next_sequence = 1
        self._admitting = False

        # Strong refs to in-flight asyncio tasks (the loop only keeps weak ones).
        self._inflight: set[asyncio.Future[Any]] = set()

        self._idle = asyncio.Event()
        self._idle.set()

        self._counts = {
            TaskState.FULFILLED: 0,
            TaskState.REJECTED: 0,
            TaskState.CANCELLED: 0,
        }

    @classmethod
    def from_settings(cls, settings: Any, *, name: str | None = None) -> TaskScheduler:
        limit = getattr(settings, "concurrency_limit", None)
        app_name = name or str(getattr(settings, "app_name", "taskgate"))
        return cls(limit, name=app_name)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def concurrency_limit(self) -> int:
        return self._limit

    @property
    def running_count(self) -> int:
        return self._running

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def stats(self) -> SchedulerStats:
        return SchedulerStats(
            concurrency_limit=self._limit,
            submitted=self._next_sequence - 1,
            pending=len(self._pending),
            running=self._running,
            fulfilled=self._counts[TaskState.FULFILLED],
            rejected=self._counts[TaskState.REJECTED],
            cancelled=self._counts[TaskState.CANCELLED],
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, operation: TaskOperation[Any]) -> TaskHandle[Any]:
        """
        Queue one task and return its handle.

        Must be called from a running event loop. The task may start before this returns.
        """
        loop = asyncio.get_running_loop()
        handle = self._enqueue(operation, loop)
        self._admit()
        return handle

    def submit_batch(self, operations: Iterable[TaskOperation[Any]]) -> list[TaskHandle[Any]]:
        """
        Queue several tasks back to back, keeping their relative order.

        Everything is enqueued before the admission pass runs, so no other submission
        can land between two tasks of the same batch.
        """
        ops = list(operations)
        if not ops:
            return []

        loop = asyncio.get_running_loop()
        handles = [self._enqueue(op, loop) for op in ops]
        self._admit()
        return handles

    def cancel_pending(self) -> int:
        """Cancel every task that has not started yet. Returns how many were cancelled."""
        cancelled = 0
        while self._pending:
            record, future = self._pending.popleft()
            self._finish_cancel(record, future)
            cancelled += 1
        if cancelled:
            logger.info("%s: cancelled %d pending task(s)", self.name, cancelled)
        self._update_idle()
        return cancelled

    async def join(self) -> None:
        """Wait until nothing is pending or running."""
        await self._idle.wait()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enqueue(self, operation: TaskOperation[Any], loop: asyncio.AbstractEventLoop) -> TaskHandle[Any]:
        record = TaskRecord(sequence=self._next_sequence, operation=operation)
        self._next_sequence += 1

        future: asyncio.Future[Any] = loop.create_future()
        future.add_done_callback(functools.partial(self._on_handle_done, record))
        self._pending.append((record, future))
        self._idle.clear()

        logger.debug("%s: task #%d queued (pending=%d)", self.name, record.sequence, len(self._pending))
        return TaskHandle(record, future, self)

    def _admit(self) -> None:
        """
        Start queued tasks while slots are free.

        Guarded loop rather than recursion: a task that completes synchronously
        calls back into _admit, which returns at once and lets this loop continue.
        """
        if self._admitting:
            return
        self._admitting = True
        try:
            while self._running < self._limit and self._pending:
                record, future = self._pending.popleft()
                if future.cancelled():
                    # Handle was cancelled from outside before its done-callback ran.
                    self._finish_cancel(record, future)
                    continue
                self._start(record, future)
        finally:
            self._admitting = False
            self._update_idle()

    def _start(self, record: TaskRecord, future: asyncio.Future[Any]) -> None:
        record.mark_running()
        self._running += 1
        logger.debug(
            "%s: task #%d started (running=%d/%d)", self.name, record.sequence, self._running, self._limit
        )

        try:
            outcome = record.operation()
        except (Exception, asyncio.CancelledError) as exc:
            self._settle(record, future, error=exc)
            return
        except BaseException as exc:
            # KeyboardInterrupt / SystemExit still propagate, but the slot is released first.
            self._settle(record, future, error=exc)
            raise

        if not inspect.isawaitable(outcome):
            self._settle(record, future, value=outcome)
            return

        try:
            inflight = asyncio.ensure_future(outcome)
        except (Exception, asyncio.CancelledError) as exc:
            self._settle(record, future, error=exc)
            return
        except BaseException as exc:
            self._settle(record, future, error=exc)
            raise

        self._inflight.add(inflight)
        inflight.add_done_callback(functools.partial(self._on_operation_done, record, future))

    def _on_operation_done(
        self,
        record: TaskRecord,
        future: asyncio.Future[Any],
        inflight: asyncio.Future[Any],
    ) -> None:
        self._inflight.discard(inflight)

        if inflight.cancelled():
            self._settle(record, future, error=asyncio.CancelledError(f"task #{record.sequence} was cancelled"))
            return

        exc = inflight.exception()
        if exc is not None:
            self._settle(record, future, error=exc)
        else:
            self._settle(record, future, value=inflight.result())

    def _settle(
        self,
        record: TaskRecord,
        future: asyncio.Future[Any],
        *,
        value: Any = None,
        error: BaseException | None = None,
    ) -> None:
        if error is None:
            record.mark_fulfilled(value)
            self._counts[TaskState.FULFILLED] += 1
            if not future.done():
                future.set_result(value)
            logger.debug("%s: task #%d fulfilled", self.name, record.sequence)
        else:
            record.mark_rejected(error)
            self._counts[TaskState.REJECTED] += 1
            if not future.done():
                task_error = TaskError(record.sequence, error)
                task_error.__cause__ = error
                future.set_exception(task_error)
                # Already logged below; awaiting the handle still raises it.
                future.exception()
            logger.warning("%s: task #%d failed: %r", self.name, record.sequence, error, exc_info=error)

        # Last effect: free the slot and pull in the next queued task.
        self._running -= 1
        self._admit()

    def _cancel_pending(self, record: TaskRecord) -> bool:
        if record.state is not TaskState.PENDING:
            return False
        for i, (queued, future) in enumerate(self._pending):
            if queued is record:
                del self._pending[i]
                self._finish_cancel(record, future)
                self._update_idle()
                logger.debug("%s: task #%d cancelled before start", self.name, record.sequence)
                return True
        return False

    def _finish_cancel(self, record: TaskRecord, future: asyncio.Future[Any]) -> None:
        record.mark_cancelled()
        self._counts[TaskState.CANCELLED] += 1
        if not future.done():
            future.cancel()

    def _on_handle_done(self, record: TaskRecord, future: asyncio.Future[Any]) -> None:
        # A pending handle cancelled from outside (e.g. asyncio.wait_for) leaves the queue.
        if future.cancelled() and record.state is TaskState.PENDING:
            self._cancel_pending(record)

    def _update_idle(self) -> None:
        if self._running == 0 and not self._pending:
            self._idle.set()
        else:
            self._idle.clear()

    def __repr__(self) -> str:
        return (
            f"<TaskScheduler {self.name!r} limit={self._limit} "
            f"running={self._running} pending={len(self._pending)}>"
        )
