"""Pydantic models for the slice of a dashboard record a session consumes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..timerange.intervals import parse_interval


class DashboardTime(BaseModel):
    """Saved time range. Values are raw strings, datetimes or decoded boundaries."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    from_: Any = Field(default=None, alias="from")
    to: Any = None


class DashboardSettings(BaseModel):
    """Time and refresh settings of the dashboard loaded into a session.

    ``refresh`` is owned by the active session while it runs: the session
    writes it when auto-refresh is toggled or suppressed.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    time: DashboardTime | None = None
    refresh: str | None = None

    @field_validator("refresh", mode="before")
    @classmethod
    def normalize_refresh(cls, v: Any) -> str | None:
        """Empty or false refresh values mean disabled."""
        if v is None or v is False or v == "":
            return None
        if not isinstance(v, str):
            raise ValueError(f"refresh must be a duration literal, got {v!r}")
        parse_interval(v)
        return v


__all__ = ["DashboardTime", "DashboardSettings"]
