# src/taskgate/scheduler/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..core.ports import TaskOperation
from ..errors import InvalidTransitionError


class TaskState(StrEnum):
    """
    Task lifecycle state.

    Notes:
    - a record leaves each state at most once;
    - "cancelled" is only reachable from "pending" (running work is never interrupted).
    """

    PENDING = "pending"
    RUNNING = "running"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_settled(self) -> bool:
        return self in (TaskState.FULFILLED, TaskState.REJECTED, TaskState.CANCELLED)


_ALLOWED: dict[TaskState, tuple[TaskState, ...]] = {
    TaskState.PENDING: (TaskState.RUNNING, TaskState.CANCELLED),
    TaskState.RUNNING: (TaskState.FULFILLED, TaskState.REJECTED),
    TaskState.FULFILLED: (),
    TaskState.REJECTED: (),
    TaskState.CANCELLED: (),
}


@dataclass(slots=True)
class TaskRecord:
    sequence: int
    operation: TaskOperation[Any]
    state: TaskState = TaskState.PENDING

    result: Any = None
    error: BaseException | None = None

    def _advance(self, new_state: TaskState) -> None:
        if new_state not in _ALLOWED[self.state]:
            raise InvalidTransitionError(
                f"Task #{self.sequence}: cannot move from {self.state} to {new_state}"
            )
        self.state = new_state

    def mark_running(self) -> None:
        self._advance(TaskState.RUNNING)

    def mark_fulfilled(self, value: Any) -> None:
        self._advance(TaskState.FULFILLED)
        self.result = value

    def mark_rejected(self, error: BaseException) -> None:
        self._advance(TaskState.REJECTED)
        self.error = error

    def mark_cancelled(self) -> None:
        self._advance(TaskState.CANCELLED)


@dataclass(slots=True, frozen=True)
class SchedulerStats:
    """Point-in-time counters of one scheduler."""

    concurrency_limit: int
    submitted: int
    pending: int
    running: int
    fulfilled: int = 0
    rejected: int = 0
    cancelled: int = 0

    @property
    def settled(self) -> int:
        return self.fulfilled + self.rejected + self.cancelled
