# src/taskgate/cli/main.py

"""
CLI entrypoint (`taskgate-demo`).

Runs a batch of simulated tasks through a TaskScheduler and prints when each one
started and finished, so the concurrency bound and FIFO admission can be watched
directly. Example:

    taskgate-demo --limit 2 --durations 100,100,50,10
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Sequence

from ..config import get_settings
from ..errors import ConfigurationError
from ..logging_setup import setup_logging
from ..scheduler.task_api import SettledResults, settle_all, with_timeout
from ..scheduler.task_scheduler import TaskScheduler

logger = logging.getLogger(__name__)


class SimulatedFailure(RuntimeError):
    """Raised by demo tasks listed in --fail."""


@dataclass(slots=True, frozen=True)
class TraceEvent:
    sequence: int
    event: str  # "start" | "finish" | "fail"
    at_ms: float


@dataclass(slots=True)
class DemoReport:
    limit: int
    events: list[TraceEvent] = field(default_factory=list)
    max_running: int = 0
    settled: SettledResults = field(default_factory=SettledResults)

    def order(self, event: str) -> list[int]:
        return [e.sequence for e in self.events if e.event == event]


async def run_demo(
        *,
        limit: int,
        durations_ms: Sequence[float],
        fail: Sequence[int] = (),
        timeout_s: float | None = None,
) -> DemoReport:
    """Submit one simulated task per duration (T1..Tn) and record the trace."""
    scheduler = TaskScheduler(limit, name="demo")
    report = DemoReport(limit=limit)
    failing = set(fail)
    t0 = time.monotonic()
    running = 0

    def _now_ms() -> float:
        return (time.monotonic() - t0) * 1000.0

    def _make(seq: int, duration_ms: float):
        async def _task() -> int:
            nonlocal running
            running += 1
            report.max_running = max(report.max_running, running)
            report.events.append(TraceEvent(seq, "start", _now_ms()))
            logger.info("T%d started", seq)
            try:
                await asyncio.sleep(duration_ms / 1000.0)
                if seq in failing:
                    report.events.append(TraceEvent(seq, "fail", _now_ms()))
                    raise SimulatedFailure(f"T{seq} failed on purpose")
                report.events.append(TraceEvent(seq, "finish", _now_ms()))
                logger.info("T%d completed", seq)
                return seq
            finally:
                running -= 1

        return _task

    handles = scheduler.submit_batch(_make(i, d) for i, d in enumerate(durations_ms, start=1))
    report.settled = await settle_all([with_timeout(h, timeout_s) for h in handles])
    return report


def _parse_durations(raw: str) -> list[float]:
    try:
        return [float(x) for x in raw.replace(" ", "").split(",") if x]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid durations: {raw!r}") from exc


def _parse_fail(raw: str) -> list[int]:
    try:
        return [int(x) for x in raw.replace(" ", "").split(",") if x]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid task numbers: {raw!r}") from exc


def build_parser(default_limit: int) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskgate-demo",
        description="Run simulated tasks through a concurrency-bounded scheduler.",
    )
    parser.add_argument("--limit", type=int, default=default_limit, help="max tasks running at once")
    parser.add_argument(
        "--durations",
        type=_parse_durations,
        default=[100.0, 100.0, 50.0, 10.0],
        help="comma-separated task durations in ms (default: 100,100,50,10)",
    )
    parser.add_argument("--fail", type=_parse_fail, default=[], help="comma-separated task numbers that fail")
    return parser


def format_report(report: DemoReport) -> str:
    lines = [f"limit={report.limit} max_running={report.max_running}"]
    for e in report.events:
        lines.append(f"{e.at_ms:8.1f}ms  T{e.sequence:<3d} {e.event}")
    lines.append(f"start order:      {' '.join(f'T{s}' for s in report.order('start'))}")
    lines.append(
        "completion order: "
        + " ".join(f"T{e.sequence}" for e in report.events if e.event in ("finish", "fail"))
    )
    lines.append(f"fulfilled={len(report.settled.fulfilled)} rejected={len(report.settled.rejected)}")
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.log_dir, console_level=console_level)

    args = build_parser(settings.concurrency_limit).parse_args(argv)
    logger.info("Starting %s demo (limit=%s, tasks=%d)", settings.app_name, args.limit, len(args.durations))

    try:
        report = asyncio.run(
            run_demo(
                limit=args.limit,
                durations_ms=args.durations,
                fail=args.fail,
                timeout_s=settings.task_timeout,
            )
        )
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    print(format_report(report))
    return 0 if report.settled.all_fulfilled else 1


if __name__ == "__main__":
    raise SystemExit(main())
