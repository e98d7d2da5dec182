# src/taskgate/scheduler/task_handle.py

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Generator, Generic, TypeVar

from .task_models import TaskRecord, TaskState

if TYPE_CHECKING:
    from .task_scheduler import TaskScheduler

T = TypeVar("T")


class TaskHandle(Generic[T]):
    """
    Caller-side view of one submitted task.

    Awaiting the handle returns the task's value, raises TaskError when the task
    failed, or raises asyncio.CancelledError when it was cancelled before it started.
    Each handle settles independently of every other handle.
    """

    __slots__ = ("_record", "_future", "_scheduler")

    def __init__(self, record: TaskRecord, future: asyncio.Future[T], scheduler: TaskScheduler) -> None:
        self._record = record
        self._future = future
        self._scheduler = scheduler

    @property
    def sequence(self) -> int:
        return self._record.sequence

    @property
    def state(self) -> TaskState:
        return self._record.state

    def done(self) -> bool:
        return self._future.done()

    def cancelled(self) -> bool:
        return self._future.cancelled()

    def result(self) -> T:
        """Same contract as asyncio.Future.result()."""
        return self._future.result()

    def exception(self) -> BaseException | None:
        """Same contract as asyncio.Future.exception()."""
        return self._future.exception()

    def cancel(self) -> bool:
        """
        Cancel the task if it has not started yet.

        Returns False for running or settled tasks; those are left to finish.
        """
        return self._scheduler._cancel_pending(self._record)

    def __await__(self) -> Generator[Any, None, T]:
        return self._future.__await__()

    def __repr__(self) -> str:
        return f"<TaskHandle #{self._record.sequence} {self._record.state.value}>"
