# src/taskgate/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object shared by the CLI and anything that builds schedulers from config.
- Malformed values fall back to defaults; range checks happen where the value is used
  (TaskScheduler / RateLimiter raise ConfigurationError).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKGATE"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_opt_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_dir: Path

    # ---- Scheduler ----
    concurrency_limit: int
    task_timeout: float | None

    # ---- Retry ----
    retry_max_attempts: int
    retry_base_delay: float

    # ---- Rate limiter ----
    rate_limit_calls: int
    rate_limit_period: float

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            app_name=_env(_k("APP_NAME"), "taskgate"),
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            log_dir=_env_path(_k("LOG_DIR"), Path(".local/taskgate")),
            concurrency_limit=_env_int(_k("CONCURRENCY_LIMIT"), 4),
            task_timeout=_env_opt_float(_k("TASK_TIMEOUT")),
            retry_max_attempts=_env_int(_k("RETRY_MAX_ATTEMPTS"), 3),
            retry_base_delay=_env_float(_k("RETRY_BASE_DELAY"), 1.0),
            rate_limit_calls=_env_int(_k("RATE_LIMIT_CALLS"), 3),
            rate_limit_period=_env_float(_k("RATE_LIMIT_PERIOD"), 2.0),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Real environment wins over .env.
    load_dotenv(override=False)
    return Settings.from_env()
