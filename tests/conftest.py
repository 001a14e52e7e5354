"""Pytest fixtures for dashtime tests.

Common fixtures for time-range and refresh-session tests.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

import pytest

from dashtime.config import reset_config
from dashtime.config_schema import RefreshConfig, TimeConfig
from dashtime.session import SessionCoordinator

from tests.testing_utils import EventRecorder, FrozenClock


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "scenario(num): acceptance scenario number. Usage: @pytest.mark.scenario(3)",
    )


@pytest.fixture(autouse=True)
def _fresh_config() -> Iterator[None]:
    """Each test starts without a loaded global config."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def anchor() -> datetime:
    """Fixed 'now': Sunday 2023-01-08 00:00 UTC."""
    return datetime(2023, 1, 8, tzinfo=timezone.utc)


@pytest.fixture
def clock(anchor: datetime) -> FrozenClock:
    return FrozenClock(anchor)


@pytest.fixture
def fast_refresh() -> RefreshConfig:
    """Refresh config that allows millisecond intervals."""
    return RefreshConfig(min_interval="1ms")


@pytest.fixture
def session(clock: FrozenClock, fast_refresh: RefreshConfig) -> Iterator[SessionCoordinator]:
    """Uninitialized session on the running loop; closed after the test."""
    coordinator = SessionCoordinator(TimeConfig(), fast_refresh, clock=clock)
    yield coordinator
    coordinator.close()


@pytest.fixture
def recorder(session: SessionCoordinator) -> EventRecorder:
    return EventRecorder.attach(session.events)


@pytest.fixture
def dashboard() -> dict[str, Any]:
    return {
        "title": "Service overview",
        "time": {"from": "now-6h", "to": "now"},
        "refresh": "30s",
    }


@pytest.fixture
def dashboard_file(tmp_path: Path, dashboard: dict[str, Any]) -> Path:
    path = tmp_path / "dashboard.json"
    path.write_text(json.dumps(dashboard))
    return path
