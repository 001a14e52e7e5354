"""Observer channel for session notifications.

Two events leave a session:

- ``time-range-changed``: delivered synchronously, carries the raw TimeRange.
- ``refresh-requested``: no payload, deferred to the next loop turn.

Observers that return an awaitable are scheduled as tasks and not awaited.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

TIME_RANGE_CHANGED = "time-range-changed"
REFRESH_REQUESTED = "refresh-requested"
ADDRESS_CHANGED = "address-changed"

Observer = Callable[..., Any]


class EventChannel:
    """Per-session publish/subscribe channel."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._observers: dict[str, list[Observer]] = defaultdict(list)
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """The loop deferred deliveries run on."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def subscribe(self, event: str, callback: Observer) -> Callable[[], None]:
        """Register ``callback`` for ``event``.

        Returns:
            A function that removes the subscription.
        """
        self._observers[event].append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(event, callback)

        return unsubscribe

    def unsubscribe(self, event: str, callback: Observer) -> None:
        observers = self._observers.get(event, [])
        if callback in observers:
            observers.remove(callback)

    def observer_count(self, event: str) -> int:
        return len(self._observers.get(event, []))

    def publish(self, event: str, *args: Any) -> None:
        """Deliver ``event`` to every current observer, in subscription order.

        A failing observer is logged and skipped; the rest still run.
        """
        for callback in list(self._observers.get(event, [])):
            try:
                result = callback(*args)
            except Exception as e:
                logger.warning("Observer for %s failed: %s", event, e, exc_info=True)
                continue
            if inspect.isawaitable(result):
                self._track(result, event)

    def publish_soon(self, event: str, *args: Any) -> asyncio.Handle:
        """Deliver ``event`` on the next turn of the loop."""
        return self.loop.call_soon(self.publish, event, *args)

    def _track(self, awaitable: Any, event: str) -> None:
        task = asyncio.ensure_future(awaitable, loop=self.loop)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finish(t, event))

    def _finish(self, task: asyncio.Task[Any], event: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Async observer for %s failed: %s", event, error)

    async def drain(self) -> None:
        """Wait for observer tasks started so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def clear(self) -> None:
        """Drop all subscriptions."""
        self._observers.clear()


__all__ = [
    "TIME_RANGE_CHANGED",
    "REFRESH_REQUESTED",
    "ADDRESS_CHANGED",
    "Observer",
    "EventChannel",
]
