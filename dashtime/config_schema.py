"""Pydantic schema for configuration validation.

All config values are validated at startup. Typos and invalid values
fail fast with clear error messages.

Usage:
    from dashtime.config_schema import load_validated_config, AppConfig
    config = load_validated_config("config/config.yaml")
    # config is now a validated AppConfig instance
"""

from __future__ import annotations

from datetime import timedelta, tzinfo
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .timerange.datemath import MONDAY, SUNDAY, is_valid
from .timerange.intervals import parse_interval


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos)."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# TIME MODEL
# =============================================================================

class DefaultRangeConfig(StrictModel):
    """Range used when a dashboard record carries none."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_: str = Field(default="now-6h", alias="from", description="Default 'from' boundary")
    to: str = Field(default="now", description="Default 'to' boundary")

    @field_validator("from_", "to")
    @classmethod
    def must_be_relative(cls, v: str) -> str:
        """Defaults must be relative expressions."""
        if not is_valid(v):
            raise ValueError(f"Invalid relative expression: {v!r}")
        return v


class TimeConfig(StrictModel):
    """How relative expressions are evaluated."""

    timezone: str = Field(
        default="UTC",
        description="IANA zone for calendar arithmetic and rounding"
    )
    week_start: Literal["monday", "sunday"] = Field(
        default="monday",
        description="Weekday that '/w' rounding snaps to"
    )
    default_range: DefaultRangeConfig = Field(default_factory=DefaultRangeConfig)

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v!r}") from e
        return v

    @property
    def tzinfo(self) -> tzinfo:
        return ZoneInfo(self.timezone)

    @property
    def week_start_day(self) -> int:
        return MONDAY if self.week_start == "monday" else SUNDAY


# =============================================================================
# REFRESH MODEL
# =============================================================================

class RefreshConfig(StrictModel):
    """Auto-refresh limits and picker choices."""

    min_interval: str = Field(
        default="1s",
        description="Shorter auto-refresh intervals are clamped to this"
    )
    intervals: list[str] = Field(
        default_factory=lambda: ["5s", "10s", "30s", "1m", "5m", "15m", "30m", "1h", "2h", "1d"],
        description="Intervals offered by the refresh picker"
    )

    @field_validator("min_interval")
    @classmethod
    def valid_min_interval(cls, v: str) -> str:
        parse_interval(v)
        return v

    @field_validator("intervals")
    @classmethod
    def valid_intervals(cls, v: list[str]) -> list[str]:
        for literal in v:
            parse_interval(literal)
        return v

    @property
    def min_interval_delta(self) -> timedelta:
        return parse_interval(self.min_interval)


# =============================================================================
# LOGGING MODEL
# =============================================================================

class LoggingConfig(StrictModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level for the CLI"
    )
    format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="logging.Formatter format string"
    )


# =============================================================================
# ROOT CONFIG
# =============================================================================

class AppConfig(StrictModel):
    """Root configuration model for the entire application.

    All fields have sensible defaults, so an empty config file is valid.
    """

    time: TimeConfig = Field(default_factory=TimeConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# LOADING FUNCTIONS
# =============================================================================

def load_validated_config(config_path: str | Path = "config/config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid (with detailed error message).
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return AppConfig.model_validate(raw_config)


def validate_config_dict(config_dict: dict[str, Any]) -> AppConfig:
    """Validate a configuration dictionary.

    Args:
        config_dict: Configuration as a dictionary.

    Returns:
        Validated AppConfig instance.

    Raises:
        pydantic.ValidationError: If config is invalid.
    """
    return AppConfig.model_validate(config_dict)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "AppConfig",
    "TimeConfig",
    "DefaultRangeConfig",
    "RefreshConfig",
    "LoggingConfig",
    "StrictModel",
    "load_validated_config",
    "validate_config_dict",
]
