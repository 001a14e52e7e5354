"""Testing utilities for sessions and schedulers.

Provides a controllable wall clock, an observer that records notifications,
and async assertion helpers for timer-driven code.

Usage:
    from tests.testing_utils import FrozenClock, EventRecorder, wait_for

    clock = FrozenClock(datetime(2023, 1, 8, tzinfo=timezone.utc))
    session = SessionCoordinator(clock=clock)
    clock.advance(timedelta(hours=1))

    recorder = EventRecorder.attach(session.events)
    await wait_for(lambda: recorder.count(REFRESH_REQUESTED) >= 2)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable

from dashtime.session.events import (
    ADDRESS_CHANGED,
    REFRESH_REQUESTED,
    TIME_RANGE_CHANGED,
    EventChannel,
)


@dataclass
class FrozenClock:
    """Wall clock that only moves when told to.

    Example:
        clock = FrozenClock(datetime(2023, 1, 8, tzinfo=timezone.utc))
        clock.advance(timedelta(days=1))
        assert clock().day == 9
    """

    now: datetime

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward.

        Raises:
            ValueError: If delta is negative
        """
        if delta < timedelta(0):
            raise ValueError(f"Cannot advance time by negative amount: {delta}")
        self.now = self.now + delta


@dataclass
class EventRecorder:
    """Observer that records every notification it receives, in order."""

    events: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)

    @classmethod
    def attach(
        cls,
        channel: EventChannel,
        names: tuple[str, ...] = (TIME_RANGE_CHANGED, ADDRESS_CHANGED, REFRESH_REQUESTED),
    ) -> EventRecorder:
        recorder = cls()
        for name in names:
            channel.subscribe(name, recorder.callback_for(name))
        return recorder

    def callback_for(self, name: str) -> Callable[..., None]:
        def record(*args: Any) -> None:
            self.events.append((name, args))

        return record

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def count(self, name: str) -> int:
        return sum(1 for n, _ in self.events if n == name)

    def payloads(self, name: str) -> list[tuple[Any, ...]]:
        return [args for n, args in self.events if n == name]


async def next_turn() -> None:
    """Let callbacks scheduled with call_soon run."""
    await asyncio.sleep(0)
    await asyncio.sleep(0)


async def wait_for(
    condition: Callable[[], bool],
    timeout: float = 1.0,
    interval: float = 0.005,
    message: str | None = None,
) -> None:
    """Wait until condition is True or timeout.

    Raises:
        TimeoutError: If condition not met within timeout
    """
    start = time.monotonic()
    while not condition():
        if time.monotonic() - start >= timeout:
            raise TimeoutError(message or f"Condition not met within {timeout}s")
        await asyncio.sleep(interval)

