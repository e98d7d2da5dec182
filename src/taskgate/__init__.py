"""Concurrency-bounded asyncio task scheduling."""

from .errors import (
    ConfigurationError,
    InvalidTransitionError,
    RetryExhaustedError,
    TaskError,
    TaskgateError,
    TaskTimeoutError,
)
from .scheduler import SchedulerStats, TaskHandle, TaskRecord, TaskScheduler, TaskState
from .scheduler.task_api import (
    SettledResults,
    execute_with_limit,
    retry_operation,
    serial_queue,
    settle_all,
    with_timeout,
)
from .throttle import RateLimiter

__all__ = [
    "ConfigurationError",
    "InvalidTransitionError",
    "RateLimiter",
    "RetryExhaustedError",
    "SchedulerStats",
    "SettledResults",
    "TaskError",
    "TaskHandle",
    "TaskRecord",
    "TaskScheduler",
    "TaskState",
    "TaskTimeoutError",
    "TaskgateError",
    "execute_with_limit",
    "retry_operation",
    "serial_queue",
    "settle_all",
    "with_timeout",
]
