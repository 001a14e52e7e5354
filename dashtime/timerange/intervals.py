"""Refresh interval literals such as ``"5s"``, ``"1m"`` or ``"250ms"``."""

from __future__ import annotations

import re
from datetime import timedelta

from ..errors import InvalidInterval

_LITERAL = re.compile(r"^(?P<num>\d+)(?P<unit>ms|s|m|h|d|w|M|y)$")

UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
    "M": 2592000,  # 30 days
    "y": 31536000,  # 365 days
}


def is_disabled(literal: str | None | bool) -> bool:
    """Whether a refresh setting means "no auto-refresh"."""
    if literal is None or literal is False or literal == "":
        return True
    if isinstance(literal, str):
        return parse_interval(literal) == timedelta(0)
    return False


def parse_interval(literal: str) -> timedelta:
    """Parse a duration literal.

    Args:
        literal: ``<N><unit>`` with unit one of ms, s, m, h, d, w, M, y.

    Returns:
        The duration. ``"0s"`` parses to a zero timedelta.

    Raises:
        InvalidInterval: If the literal is not well formed.
    """
    if not isinstance(literal, str):
        raise InvalidInterval(literal)
    match = _LITERAL.match(literal.strip())
    if match is None:
        raise InvalidInterval(literal)
    return timedelta(seconds=int(match.group("num")) * UNIT_SECONDS[match.group("unit")])


def format_interval(duration: timedelta) -> str:
    """Render a duration as the largest whole-unit literal."""
    ms = round(duration.total_seconds() * 1000)
    for unit in ("y", "w", "d", "h", "m", "s"):
        unit_ms = round(UNIT_SECONDS[unit] * 1000)
        if ms and ms % unit_ms == 0:
            return f"{ms // unit_ms}{unit}"
    return f"{ms}ms"


__all__ = ["UNIT_SECONDS", "is_disabled", "parse_interval", "format_interval"]
