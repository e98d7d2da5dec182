# src/taskgate/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the scheduler and helpers.

Tasks are plain callables; nothing has to inherit from a base class.
Clock and sleep are injectable so throttling can be tested without real time.
"""

from typing import Any, Awaitable, Protocol, TypeVar, Union

T_co = TypeVar("T_co", covariant=True)


class TaskOperation(Protocol[T_co]):
    """
    Zero-argument unit of work.

    Usually an ``async def`` function or a lambda returning a coroutine.
    A plain (non-awaitable) return value counts as an immediate success.
    """

    def __call__(self) -> Union[Awaitable[T_co], T_co]: ...


class Clock(Protocol):
    """Monotonic seconds, e.g. time.monotonic."""

    def __call__(self) -> float: ...


class Sleeper(Protocol):
    """Awaitable sleep, e.g. asyncio.sleep."""

    def __call__(self, delay: float) -> Awaitable[Any]: ...
