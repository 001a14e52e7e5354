"""Tests for the session observer channel."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from dashtime.session.events import REFRESH_REQUESTED, TIME_RANGE_CHANGED, EventChannel

from tests.testing_utils import next_turn


class TestPublish:
    """Synchronous delivery."""

    def test_delivers_in_subscription_order(self) -> None:
        channel = EventChannel()
        calls: list[str] = []
        channel.subscribe(TIME_RANGE_CHANGED, lambda payload: calls.append(f"a:{payload}"))
        channel.subscribe(TIME_RANGE_CHANGED, lambda payload: calls.append(f"b:{payload}"))
        channel.publish(TIME_RANGE_CHANGED, "x")
        assert calls == ["a:x", "b:x"]

    def test_other_events_not_delivered(self) -> None:
        channel = EventChannel()
        calls: list[str] = []
        channel.subscribe(REFRESH_REQUESTED, lambda: calls.append("refresh"))
        channel.publish(TIME_RANGE_CHANGED, "x")
        assert calls == []

    def test_unsubscribe(self) -> None:
        channel = EventChannel()
        calls: list[int] = []
        unsubscribe = channel.subscribe(REFRESH_REQUESTED, lambda: calls.append(1))
        assert channel.observer_count(REFRESH_REQUESTED) == 1
        unsubscribe()
        unsubscribe()
        channel.publish(REFRESH_REQUESTED)
        assert calls == []
        assert channel.observer_count(REFRESH_REQUESTED) == 0

    def test_failing_observer_does_not_stop_others(self, caplog: pytest.LogCaptureFixture) -> None:
        channel = EventChannel()
        calls: list[int] = []

        def broken() -> None:
            raise RuntimeError("boom")

        channel.subscribe(REFRESH_REQUESTED, broken)
        channel.subscribe(REFRESH_REQUESTED, lambda: calls.append(1))
        with caplog.at_level(logging.WARNING, logger="dashtime.session.events"):
            channel.publish(REFRESH_REQUESTED)
        assert calls == [1]
        assert "boom" in caplog.text

    def test_clear(self) -> None:
        channel = EventChannel()
        channel.subscribe(REFRESH_REQUESTED, lambda: None)
        channel.clear()
        assert channel.observer_count(REFRESH_REQUESTED) == 0


class TestDeferred:
    """Deferred and async delivery."""

    @pytest.mark.asyncio
    async def test_publish_soon_waits_for_next_turn(self) -> None:
        channel = EventChannel()
        calls: list[int] = []
        channel.subscribe(REFRESH_REQUESTED, lambda: calls.append(1))
        channel.publish_soon(REFRESH_REQUESTED)
        assert calls == []
        await next_turn()
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_async_observer_is_scheduled(self) -> None:
        channel = EventChannel()
        done = asyncio.Event()

        async def observer() -> None:
            await asyncio.sleep(0)
            done.set()

        channel.subscribe(REFRESH_REQUESTED, observer)
        channel.publish(REFRESH_REQUESTED)
        assert not done.is_set()
        await channel.drain()
        assert done.is_set()

    @pytest.mark.asyncio
    async def test_async_observer_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        channel = EventChannel()

        async def observer() -> None:
            raise RuntimeError("late boom")

        channel.subscribe(REFRESH_REQUESTED, observer)
        with caplog.at_level(logging.WARNING, logger="dashtime.session.events"):
            channel.publish(REFRESH_REQUESTED)
            await channel.drain()
            await next_turn()
        assert "late boom" in caplog.text


class TestMockObservers:
    """Observer call contracts."""

    def test_payload_passed_through(self) -> None:
        channel = EventChannel()
        observer = MagicMock()
        channel.subscribe(TIME_RANGE_CHANGED, observer)
        channel.publish(TIME_RANGE_CHANGED, {"from": "now-1h", "to": "now"})
        observer.assert_called_once_with({"from": "now-1h", "to": "now"})

    @pytest.mark.asyncio
    async def test_async_mock_observer_awaited(self) -> None:
        channel = EventChannel()
        observer = AsyncMock()
        channel.subscribe(REFRESH_REQUESTED, observer)
        channel.publish_soon(REFRESH_REQUESTED)
        await next_turn()
        await channel.drain()
        observer.assert_awaited_once_with()
