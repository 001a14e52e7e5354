"""Dashboard session: range state, refresh scheduling and notifications."""

from .events import (
    ADDRESS_CHANGED,
    REFRESH_REQUESTED,
    TIME_RANGE_CHANGED,
    EventChannel,
)
from .scheduler import RefreshScheduler, SchedulerHandle, SchedulerState
from .settings import DashboardSettings, DashboardTime
from .state import TimeRangeState
from .coordinator import SessionCoordinator

__all__ = [
    "ADDRESS_CHANGED",
    "REFRESH_REQUESTED",
    "TIME_RANGE_CHANGED",
    "EventChannel",
    "RefreshScheduler",
    "SchedulerHandle",
    "SchedulerState",
    "DashboardSettings",
    "DashboardTime",
    "TimeRangeState",
    "SessionCoordinator",
]
