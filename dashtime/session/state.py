"""Time range state for one dashboard session.

Holds the raw range, applies address-bar parameters, resolves on demand and
enforces the auto-refresh suppression rule:

- setting an absolute ``to`` suspends auto-refresh and remembers its interval
- moving back to a relative ``to`` restores the remembered interval
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo

from ..errors import InvalidExpression
from ..timerange.codec import decode_boundary, encode_for_address
from ..timerange.datemath import MONDAY, is_valid, resolve
from ..timerange.intervals import format_interval, is_disabled, parse_interval
from ..timerange.models import Relative, ResolvedRange, TimeBoundary, TimeRange
from .events import ADDRESS_CHANGED, REFRESH_REQUESTED, TIME_RANGE_CHANGED, EventChannel
from .scheduler import RefreshScheduler
from .settings import DashboardSettings

logger = logging.getLogger(__name__)


class TimeRangeState:
    """Owns the session's current TimeRange."""

    def __init__(
        self,
        time_range: TimeRange,
        dashboard: DashboardSettings,
        scheduler: RefreshScheduler,
        events: EventChannel,
        *,
        tz: tzinfo = timezone.utc,
        week_start: int = MONDAY,
    ) -> None:
        self._range = time_range
        self._dashboard = dashboard
        self._scheduler = scheduler
        self._events = events
        self._tz = tz
        self._week_start = week_start
        self._suspended_refresh: str | None = None

    @property
    def time_range(self) -> TimeRange:
        return self._range

    @property
    def suspended_refresh(self) -> str | None:
        """Interval remembered while an absolute range suppresses auto-refresh."""
        return self._suspended_refresh

    def _decode_param(self, side: str, raw: str, anchor_now: datetime | None) -> TimeBoundary | None:
        try:
            boundary = decode_boundary(raw)
        except InvalidExpression as e:
            logger.warning("Ignoring malformed '%s' parameter: %s", side, e)
            return None
        if isinstance(boundary, Relative) and not is_valid(
            boundary.expression, anchor_now, tz=self._tz, week_start=self._week_start
        ):
            logger.warning("Ignoring malformed '%s' parameter: %r", side, raw)
            return None
        return boundary

    def set_from_url(
        self,
        from_raw: str | None = None,
        to_raw: str | None = None,
        anchor_now: datetime | None = None,
    ) -> TimeRange:
        """Apply ``from``/``to`` address-bar parameters.

        Absent or malformed parameters leave their side unchanged. Relative
        parameters are checked against ``anchor_now`` (default: the current
        time). No notification is sent; this runs once while the session
        initializes.
        """
        from_ = self._decode_param("from", from_raw, anchor_now) if from_raw else None
        to = self._decode_param("to", to_raw, anchor_now) if to_raw else None
        self._range = self._range.replace(from_=from_, to=to)
        return self._range

    def set_range(self, new_range: TimeRange, is_user_manual_selection: bool = True) -> None:
        """Replace the range, then notify observers and request a refresh.

        Args:
            new_range: The new raw range.
            is_user_manual_selection: True when picked in the UI. Manual picks
                are also written back to the address bar; range changes that
                came from address-bar navigation are not echoed.
        """
        self._range = new_range

        if new_range.is_absolute_to:
            self._suspended_refresh = self._dashboard.refresh or self._suspended_refresh
            if self._dashboard.refresh:
                logger.info(
                    "Absolute range selected, suspending auto-refresh",
                    extra={"interval": self._dashboard.refresh},
                )
            self.set_auto_refresh(None)
        elif self._suspended_refresh and self._suspended_refresh != self._dashboard.refresh:
            logger.info(
                "Relative range selected, resuming auto-refresh",
                extra={"interval": self._suspended_refresh},
            )
            self.set_auto_refresh(self._suspended_refresh)
            self._suspended_refresh = None

        self._events.publish(TIME_RANGE_CHANGED, self._range)
        if is_user_manual_selection:
            self._events.publish(ADDRESS_CHANGED, self.get_for_address_bar())
        self._events.publish_soon(REFRESH_REQUESTED)

    def set_auto_refresh(self, interval: str | None) -> None:
        """Record ``interval`` on the dashboard and drive the scheduler with it.

        Raises:
            InvalidInterval: If ``interval`` is not a duration literal.
        """
        if is_disabled(interval):
            self._scheduler.cancel()
            self._dashboard.refresh = None
            return
        handle = self._scheduler.set_interval(interval)
        if handle is not None and handle.interval != parse_interval(interval):
            # Clamped by the scheduler
            self._dashboard.refresh = format_interval(handle.interval)
        else:
            self._dashboard.refresh = interval

    def get_raw(self) -> TimeRange:
        """The unresolved range. Immutable, so safe to hand out."""
        return self._range

    def get_resolved(self, anchor_now: datetime | None) -> ResolvedRange:
        """Resolve both sides against one ``now`` snapshot.

        Raises:
            InvalidExpression: If a relative side does not parse.
            ClockAnchorMissing: If ``anchor_now`` is missing or naive.
        """
        return ResolvedRange(
            from_=resolve(self._range.from_, anchor_now, False, tz=self._tz, week_start=self._week_start),
            to=resolve(self._range.to, anchor_now, True, tz=self._tz, week_start=self._week_start),
        )

    def get_for_address_bar(
        self,
        resolve_to_absolute: bool = False,
        anchor_now: datetime | None = None,
    ) -> dict[str, str]:
        """Query parameters for the current range, relative sides kept verbatim.

        With ``resolve_to_absolute`` both sides are frozen against
        ``anchor_now`` (or the current time) to build a shareable link.
        """
        if not resolve_to_absolute:
            return encode_for_address(self._range)
        now = anchor_now or datetime.now(timezone.utc)
        return encode_for_address(
            self._range,
            resolve_to_absolute=True,
            resolver=lambda boundary, round_up: resolve(
                boundary, now, round_up, tz=self._tz, week_start=self._week_start
            ),
        )


__all__ = ["TimeRangeState"]
