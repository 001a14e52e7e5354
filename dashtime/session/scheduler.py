"""Self-rescheduling auto-refresh timer.

The scheduler is either IDLE (nothing pending) or ARMED (exactly one pending
timer). Every path that arms a timer cancels the previous one first, and a
firing timer re-arms its successor before dispatching the refresh, so the
next tick is never held up by a slow refresh.

Usage:
    scheduler = RefreshScheduler(on_tick=request_refresh)
    scheduler.set_interval("30s")   # ARMED
    scheduler.set_interval(None)    # IDLE
    scheduler.cancel_all()          # IDLE, safe from any state
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Callable

from ..timerange.intervals import format_interval, parse_interval

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    """State of the refresh scheduler."""

    IDLE = "idle"
    ARMED = "armed"


@dataclass(frozen=True)
class SchedulerHandle:
    """Identifies the single outstanding timer of a session.

    Attributes:
        handle_id: Monotonic id, unique within one scheduler
        interval: Period the timer was armed with
        fire_at: Loop time at which it fires
    """

    handle_id: int
    interval: timedelta
    fire_at: float


class RefreshScheduler:
    """Owns at most one pending refresh timer.

    Not reentrant: all calls are expected on the session's event loop.
    """

    def __init__(
        self,
        on_tick: Callable[[], Any],
        *,
        min_interval: timedelta | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Initialize scheduler.

        Args:
            on_tick: Refresh side effect. Called after the next timer is armed;
                an awaitable result is scheduled as a task, never awaited.
            min_interval: Shorter intervals are clamped up to this.
            loop: Event loop for timers. Defaults to the running loop.
        """
        self._on_tick = on_tick
        self._min_interval = min_interval
        self._loop = loop
        self._ids = itertools.count(1)
        self._handle: SchedulerHandle | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self.tick_count = 0

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.ARMED if self._timer is not None else SchedulerState.IDLE

    @property
    def handle(self) -> SchedulerHandle | None:
        """The pending timer, or None when idle."""
        return self._handle

    @property
    def pending_count(self) -> int:
        """Number of live timers: always 0 or 1."""
        return 0 if self._timer is None else 1

    @property
    def interval(self) -> timedelta | None:
        return self._handle.interval if self._handle else None

    def set_interval(self, interval: str | timedelta | None) -> SchedulerHandle | None:
        """Arm the scheduler with ``interval``, or go idle when it is empty.

        Args:
            interval: Duration literal (``"10s"``), timedelta, or None/"" to disable.

        Returns:
            The new handle, or None when the scheduler is now idle.

        Raises:
            InvalidInterval: If a literal cannot be parsed.
        """
        period = self._coerce(interval)
        self.cancel()
        if period is None:
            return None
        return self._arm(period)

    def cancel(self) -> None:
        """Cancel the pending timer, if any. A no-op when idle."""
        if self._timer is not None:
            self._timer.cancel()
            logger.debug("Cancelled refresh timer %s", self._handle.handle_id if self._handle else "?")
        self._timer = None
        self._handle = None

    def cancel_all(self) -> None:
        """Go idle unconditionally. Used when the session switches dashboards."""
        was_armed = self._timer is not None
        self.cancel()
        if was_armed:
            logger.info("Auto-refresh stopped")

    def _coerce(self, interval: str | timedelta | None) -> timedelta | None:
        if interval is None or interval == "" or interval is False:
            return None
        period = interval if isinstance(interval, timedelta) else parse_interval(interval)
        if period <= timedelta(0):
            return None
        if self._min_interval is not None and period < self._min_interval:
            logger.warning(
                "Refresh interval %s below minimum, using %s",
                format_interval(period),
                format_interval(self._min_interval),
            )
            period = self._min_interval
        return period

    def _arm(self, period: timedelta) -> SchedulerHandle:
        delay = period.total_seconds()
        handle = SchedulerHandle(
            handle_id=next(self._ids),
            interval=period,
            fire_at=self.loop.time() + delay,
        )
        self._handle = handle
        self._timer = self.loop.call_later(delay, self._fire, handle.handle_id)
        logger.debug(
            "Armed refresh timer",
            extra={"handle_id": handle.handle_id, "interval": format_interval(period)},
        )
        return handle

    def _fire(self, handle_id: int) -> None:
        handle = self._handle
        if handle is None or handle.handle_id != handle_id:
            # Superseded timer
            return
        self._timer = None
        self._arm(handle.interval)
        self.tick_count += 1
        result = self._on_tick()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result, loop=self.loop)
            self._tasks.add(task)
            task.add_done_callback(self._finish)

    def _finish(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Refresh tick failed: %s", error)


__all__ = ["SchedulerState", "SchedulerHandle", "RefreshScheduler"]
