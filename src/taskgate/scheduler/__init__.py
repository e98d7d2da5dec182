"""
Scheduler subsystem.

Components:
- task_models.py: data structures (TaskState, TaskRecord, SchedulerStats)
- task_handle.py: awaitable per-task handle returned by submit()
- task_scheduler.py: concurrency-bounded FIFO scheduler
- task_api.py: composition helpers (serial queue, batch runner, settle-all, timeout, retry)
"""

from .task_handle import TaskHandle
from .task_models import SchedulerStats, TaskRecord, TaskState
from .task_scheduler import TaskScheduler

__all__ = ["SchedulerStats", "TaskHandle", "TaskRecord", "TaskScheduler", "TaskState"]
