# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKGATE_APP_NAME": "App display name (default: taskgate).",
    "TASKGATE_LOG_LEVEL": "Console logging level (default: INFO).",
    "TASKGATE_LOG_DIR": "Directory for taskgate.log (default: .local/taskgate).",
    # Scheduler
    "TASKGATE_CONCURRENCY_LIMIT": "Max tasks running at once; must be >= 1 (default: 4).",
    "TASKGATE_TASK_TIMEOUT": "Per-task timeout in seconds for the demo runner (default: unset, no timeout).",
    # Retry
    "TASKGATE_RETRY_MAX_ATTEMPTS": "Attempts made by retry_operation (default: 3).",
    "TASKGATE_RETRY_BASE_DELAY": "First backoff delay in seconds, doubled per attempt (default: 1.0).",
    # Rate limiter
    "TASKGATE_RATE_LIMIT_CALLS": "Calls allowed per window (default: 3).",
    "TASKGATE_RATE_LIMIT_PERIOD": "Window length in seconds (default: 2.0).",
}
