# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskgate.scheduler.task_scheduler import TaskScheduler

from .fakes import ConcurrencyProbe, FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with from_settings() constructors.

    A SimpleNamespace rather than the real config keeps tests independent of the
    developer's environment and .env file.
    """
    return SimpleNamespace(
        app_name="taskgate-test",
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        concurrency_limit=2,
        task_timeout=None,
        retry_max_attempts=3,
        retry_base_delay=0.0,
        rate_limit_calls=3,
        rate_limit_period=2.0,
    )


@pytest.fixture()
def probe() -> ConcurrencyProbe:
    return ConcurrencyProbe()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scheduler(settings: SimpleNamespace) -> TaskScheduler:
    return TaskScheduler.from_settings(settings)
