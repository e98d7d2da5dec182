# src/taskgate/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console policy:
    - taskgate.scheduler.*: INFO+ only. Every queue/start/finish is a DEBUG line,
      one per task, which floods a terminal on any real batch; the file keeps them
      so admission order can still be reconstructed afterwards.
    - other taskgate.*: everything the handler level allows
    - py.warnings and third-party loggers: ERROR+ only
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith("taskgate.scheduler."):
            return record.levelno >= logging.INFO
        if name.startswith("taskgate."):
            return True
        return record.levelno >= logging.ERROR


def _console_handler(level: int, fmt: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.addFilter(_ConsoleNoiseFilter())
    return handler


def _file_handler(log_file: Path, level: int, fmt: logging.Formatter) -> logging.Handler:
    # Unfiltered: per-task scheduler traces end up here.
    handler = logging.FileHandler(str(log_file), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskgate",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to a filtered stderr console and to <log_dir>/taskgate.log.

    Replaces whatever handlers the root logger had, so call it once from the entrypoint.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "taskgate.log"

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(_console_handler(console_level, fmt))
    root.addHandler(_file_handler(log_file, file_level, fmt))

    logging.captureWarnings(True)

    # Unretrieved-exception reports from asyncio stay visible; its DEBUG chatter does not.
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    return log_file
