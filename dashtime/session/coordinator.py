"""Per-session composition of range state, refresh scheduler and notifications.

One SessionCoordinator lives for one dashboard-viewing session. It holds no
module-level state; several sessions can run side by side, each with its own
range, timer and observers.

Usage:
    session = SessionCoordinator.from_config()
    session.subscribe(REFRESH_REQUESTED, reload_panels)
    session.init(dashboard, {"from": "now-1h", "to": "now"})
    window = session.get_resolved()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable

from ..config import get_validated_config
from ..config_schema import AppConfig, RefreshConfig, TimeConfig
from ..errors import InvalidExpression
from ..timerange.codec import decode_saved_boundary
from ..timerange.models import Relative, ResolvedRange, TimeBoundary, TimeRange
from .events import REFRESH_REQUESTED, EventChannel, Observer
from .scheduler import RefreshScheduler
from .settings import DashboardSettings
from .state import TimeRangeState

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionCoordinator:
    """Composes TimeRangeState and RefreshScheduler for one session."""

    def __init__(
        self,
        time_config: TimeConfig | None = None,
        refresh_config: RefreshConfig | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize coordinator.

        Args:
            time_config: Timezone, week start and default range
            refresh_config: Auto-refresh limits
            loop: Event loop for timers and deferred notifications
            clock: Source of "now" snapshots
        """
        self.time_config = time_config or TimeConfig()
        self.refresh_config = refresh_config or RefreshConfig()
        self.clock = clock
        self.events = EventChannel(loop)
        self.scheduler = RefreshScheduler(
            self.request_refresh,
            min_interval=self.refresh_config.min_interval_delta,
            loop=loop,
        )
        self.dashboard: DashboardSettings | None = None
        self._state: TimeRangeState | None = None

    @classmethod
    def from_config(cls, config: AppConfig | None = None, **kwargs: Any) -> SessionCoordinator:
        """Build a coordinator from the loaded application config."""
        if config is None:
            config = get_validated_config()
        return cls(config.time, config.refresh, **kwargs)

    @property
    def state(self) -> TimeRangeState:
        if self._state is None:
            raise RuntimeError("Session not initialized. Call init() first.")
        return self._state

    def _saved_boundary(self, value: Any, fallback: str, side: str) -> TimeBoundary:
        if value is None:
            return Relative(fallback)
        try:
            return decode_saved_boundary(value)
        except InvalidExpression as e:
            logger.warning("Saved '%s' boundary unusable, using %s: %s", side, fallback, e)
            return Relative(fallback)

    def _saved_range(self, dashboard: DashboardSettings) -> TimeRange:
        default = self.time_config.default_range
        saved = dashboard.time
        return TimeRange(
            from_=self._saved_boundary(saved.from_ if saved else None, default.from_, "from"),
            to=self._saved_boundary(saved.to if saved else None, default.to, "to"),
        )

    def init(
        self,
        dashboard: DashboardSettings | Mapping[str, Any],
        address_params: Mapping[str, str] | None = None,
    ) -> ResolvedRange:
        """Start the session for ``dashboard``.

        Cancels any timer left from a previous dashboard, adopts the saved
        range, applies ``from``/``to`` address-bar parameters, resolves the
        range once and arms auto-refresh when the dashboard declares one.

        Returns:
            The range resolved against the current clock.

        Raises:
            InvalidExpression: If the adopted range cannot be resolved.
        """
        self.scheduler.cancel_all()

        if not isinstance(dashboard, DashboardSettings):
            dashboard = DashboardSettings.model_validate(dashboard)
        self.dashboard = dashboard

        self._state = TimeRangeState(
            self._saved_range(dashboard),
            dashboard,
            self.scheduler,
            self.events,
            tz=self.time_config.tzinfo,
            week_start=self.time_config.week_start_day,
        )
        params = address_params or {}
        now = self.clock()
        self._state.set_from_url(params.get("from"), params.get("to"), now)
        resolved = self._state.get_resolved(now)

        if dashboard.refresh:
            self._state.set_auto_refresh(dashboard.refresh)

        logger.info(
            "Session initialized",
            extra={
                "dashboard": dashboard.title,
                "time_range": self._state.get_raw().to_dict(),
                "refresh": dashboard.refresh,
            },
        )
        return resolved

    def get_resolved(self, now: datetime | None = None) -> ResolvedRange:
        """Resolve the current range against ``now`` (default: the clock)."""
        return self.state.get_resolved(now if now is not None else self.clock())

    def get_raw(self) -> TimeRange:
        return self.state.get_raw()

    def get_for_address_bar(self, resolve_to_absolute: bool = False) -> dict[str, str]:
        return self.state.get_for_address_bar(resolve_to_absolute, self.clock())

    def set_range(self, time_range: TimeRange, is_user_manual_selection: bool = True) -> None:
        self.state.set_range(time_range, is_user_manual_selection)

    def set_refresh(self, interval: str | None) -> None:
        """Change the auto-refresh interval; None or "" disables it.

        Raises:
            InvalidInterval: If ``interval`` is not a duration literal.
        """
        self.state.set_auto_refresh(interval)

    def request_refresh(self) -> None:
        """Ask observers to reload data on the next loop turn."""
        self.events.publish_soon(REFRESH_REQUESTED)

    def refresh_now(self) -> None:
        """Manual refresh; the range is left as is."""
        self.request_refresh()

    def subscribe(self, event: str, callback: Observer) -> Callable[[], None]:
        return self.events.subscribe(event, callback)

    def close(self) -> None:
        """End the session: no timer survives it."""
        self.scheduler.cancel_all()
        self.events.clear()


__all__ = ["SessionCoordinator", "utc_now"]
