"""Latency measurement for awaited operations."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]
"""Monotonic clock returning seconds."""

Sleep = Callable[[float], Awaitable[None]]
"""Coroutine function suspending for the given number of seconds."""


@dataclass(frozen=True, slots=True)
class Measured(Generic[T]):
    """Return value of an operation together with when it ran."""

    value: T
    """What the operation returned."""

    started_at: float
    """Clock reading before the operation started."""

    finished_at: float
    """Clock reading after the operation completed."""

    @property
    def elapsed_ms(self) -> float:
        """Duration in milliseconds."""
        return (self.finished_at - self.started_at) * 1000


async def measure(operation: Callable[[], Awaitable[T]], clock: Clock = time.monotonic) -> Measured[T]:
    """
    Await `operation()` and record its start and end time.

    Exceptions propagate unchanged; failed operations have no measurement.
    """
    started_at = clock()
    value = await operation()
    return Measured(value=value, started_at=started_at, finished_at=clock())
