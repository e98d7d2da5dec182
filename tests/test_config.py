# tests/test_config.py

from __future__ import annotations

import os
from pathlib import Path

import pytest

from taskgate import config
from taskgate.config import Settings


@pytest.fixture()
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("TASKGATE_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    s = Settings.from_env()

    assert s.app_name == "taskgate"
    assert s.log_level == "INFO"
    assert s.log_dir == Path(".local/taskgate")
    assert s.concurrency_limit == 4
    assert s.task_timeout is None
    assert (s.retry_max_attempts, s.retry_base_delay) == (3, 1.0)
    assert (s.rate_limit_calls, s.rate_limit_period) == (3, 2.0)


def test_env_overrides(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("TASKGATE_CONCURRENCY_LIMIT", "8")
    clean_env.setenv("TASKGATE_TASK_TIMEOUT", "2.5")
    clean_env.setenv("TASKGATE_RETRY_BASE_DELAY", "0.25")
    clean_env.setenv("TASKGATE_LOG_DIR", str(tmp_path))
    clean_env.setenv("TASKGATE_LOG_LEVEL", "debug")

    s = Settings.from_env()

    assert s.concurrency_limit == 8
    assert s.task_timeout == 2.5
    assert s.retry_base_delay == 0.25
    assert s.log_dir == tmp_path
    assert s.log_level == "debug"


def test_malformed_values_fall_back_to_defaults(clean_env) -> None:
    clean_env.setenv("TASKGATE_CONCURRENCY_LIMIT", "many")
    clean_env.setenv("TASKGATE_TASK_TIMEOUT", "soon")
    clean_env.setenv("TASKGATE_RATE_LIMIT_PERIOD", " ")

    s = Settings.from_env()

    assert s.concurrency_limit == 4
    assert s.task_timeout is None
    assert s.rate_limit_period == 2.0


def test_get_settings_is_cached(clean_env) -> None:
    config.get_settings.cache_clear()
    try:
        assert config.get_settings() is config.get_settings()
    finally:
        config.get_settings.cache_clear()
