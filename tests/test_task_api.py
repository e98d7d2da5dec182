# tests/test_task_api.py

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from taskgate.errors import ConfigurationError, RetryExhaustedError, TaskError, TaskTimeoutError
from taskgate.scheduler import task_api
from taskgate.scheduler.task_api import (
    execute_with_limit,
    retry_operation,
    serial_queue,
    settle_all,
    with_timeout,
)
from taskgate.scheduler.task_models import TaskState
from taskgate.scheduler.task_scheduler import TaskScheduler

from .fakes import Boom, ConcurrencyProbe, FakeClock


def test_serial_queue_has_single_slot() -> None:
    queue = serial_queue(name="jobs")
    assert queue.concurrency_limit == 1
    assert queue.name == "jobs"


@pytest.mark.asyncio
async def test_serial_queue_keeps_going_after_failure(probe: ConcurrencyProbe) -> None:
    queue = serial_queue()
    handles = [
        queue.submit(probe.sleeper(1, 0.01)),
        queue.submit(probe.sleeper(2, 0.0, fail=True)),
        queue.submit(probe.sleeper(3, 0.0)),
    ]

    await queue.join()

    assert probe.started == [1, 2, 3]
    assert [h.state for h in handles] == [TaskState.FULFILLED, TaskState.REJECTED, TaskState.FULFILLED]
    assert isinstance(handles[1].exception(), TaskError)


@pytest.mark.asyncio
async def test_execute_with_limit_returns_results_in_input_order(probe: ConcurrencyProbe) -> None:
    ops = [probe.sleeper(i, d) for i, d in enumerate([0.03, 0.0, 0.02, 0.01, 0.0], start=1)]

    results = await execute_with_limit(ops, 2)

    assert results == [1, 2, 3, 4, 5]
    assert probe.peak == 2
    assert probe.started == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_execute_with_limit_fails_fast_without_cancelling_siblings(probe: ConcurrencyProbe) -> None:
    ops = [probe.sleeper(1, 0.05), probe.sleeper(2, 0.0, fail=True), probe.sleeper(3, 0.01)]

    with pytest.raises(TaskError) as ei:
        await execute_with_limit(ops, 2)

    assert ei.value.sequence == 2
    assert isinstance(ei.value.original_error, Boom)

    await asyncio.sleep(0.1)
    assert sorted(probe.finished) == [1, 2, 3]


@pytest.mark.asyncio
async def test_execute_with_limit_edge_cases() -> None:
    assert await execute_with_limit([], 3) == []
    with pytest.raises(ConfigurationError):
        await execute_with_limit([lambda: 1], 0)


@pytest.mark.asyncio
async def test_settle_all_partitions_outcomes(probe: ConcurrencyProbe) -> None:
    scheduler = TaskScheduler(2)
    handles = scheduler.submit_batch(
        [
            probe.sleeper(1, 0.01),
            probe.sleeper(2, 0.0, fail=True),
            probe.sleeper(3, 0.0),
        ]
    )

    settled = await settle_all(handles)

    assert settled.fulfilled == [1, 3]
    assert len(settled.rejected) == 1
    assert isinstance(settled.rejected[0], TaskError)
    assert settled.rejected[0].sequence == 2
    assert not settled.all_fulfilled


@pytest.mark.asyncio
async def test_settle_all_reports_cancelled_handles(probe: ConcurrencyProbe) -> None:
    scheduler = TaskScheduler(1)
    h1 = scheduler.submit(probe.sleeper(1, 0.01))
    h2 = scheduler.submit(probe.sleeper(2))
    h2.cancel()

    settled = await settle_all([h1, h2])

    assert settled.fulfilled == [1]
    assert len(settled.rejected) == 1
    assert isinstance(settled.rejected[0], asyncio.CancelledError)


@pytest.mark.asyncio
async def test_settle_all_empty() -> None:
    settled = await settle_all([])
    assert settled.fulfilled == []
    assert settled.all_fulfilled


@pytest.mark.asyncio
async def test_with_timeout_leaves_scheduled_task_running(probe: ConcurrencyProbe) -> None:
    scheduler = TaskScheduler(1)
    handle = scheduler.submit(probe.sleeper(1, 0.05))

    with pytest.raises(TaskTimeoutError) as ei:
        await with_timeout(handle, 0.01)
    assert ei.value.timeout == 0.01
    assert ei.value.retryable

    assert await handle == 1
    assert handle.state is TaskState.FULFILLED


@pytest.mark.asyncio
async def test_with_timeout_passes_results_through() -> None:
    scheduler = TaskScheduler(2)
    fast = scheduler.submit(lambda: "fast")
    untimed = scheduler.submit(lambda: "untimed")

    assert await with_timeout(fast, 1.0) == "fast"
    assert await with_timeout(untimed, None) == "untimed"

    with pytest.raises(ConfigurationError):
        await with_timeout(fast, 0)


@pytest.mark.asyncio
async def test_retry_operation_backs_off_exponentially(clock: FakeClock) -> None:
    calls = {"n": 0}

    async def unreliable() -> str:
        calls["n"] += 1
        if calls["n"] < 3:
            raise Boom("network error")
        return "Success!"

    result = await retry_operation(unreliable, max_attempts=5, base_delay=0.5, sleep=clock.sleep)

    assert result == "Success!"
    assert calls["n"] == 3
    assert clock.sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_retry_operation_gives_up_after_last_attempt(clock: FakeClock) -> None:
    calls = {"n": 0}

    def always_fails() -> None:
        calls["n"] += 1
        raise Boom(f"attempt {calls['n']}")

    with pytest.raises(RetryExhaustedError) as ei:
        await retry_operation(always_fails, max_attempts=3, base_delay=1.0, sleep=clock.sleep)

    assert calls["n"] == 3
    assert ei.value.attempts == 3
    assert str(ei.value.original_error) == "attempt 3"
    assert clock.sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_retry_operation_reads_defaults_from_settings(
    monkeypatch, settings: SimpleNamespace, clock: FakeClock
) -> None:
    monkeypatch.setattr(task_api, "get_settings", lambda: settings)
    calls = {"n": 0}

    def always_fails() -> None:
        calls["n"] += 1
        raise Boom("nope")

    with pytest.raises(RetryExhaustedError):
        await retry_operation(always_fails, sleep=clock.sleep)

    assert calls["n"] == settings.retry_max_attempts
    assert clock.sleeps == [0.0, 0.0]


@pytest.mark.asyncio
async def test_retry_operation_rejects_bad_arguments() -> None:
    with pytest.raises(ConfigurationError):
        await retry_operation(lambda: 1, max_attempts=0, base_delay=1.0)
    with pytest.raises(ConfigurationError):
        await retry_operation(lambda: 1, max_attempts=2, base_delay=-1.0)
