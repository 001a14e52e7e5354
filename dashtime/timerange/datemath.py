"""Resolve time boundaries to concrete instants.

Relative expressions follow the grammar::

    now ( ("+" | "-") [N] unit | "/" unit )*
    unit := s | m | h | d | w | M | y

Steps apply left to right. ``+``/``-`` shift the instant; a missing N means 1.
``/unit`` snaps to the start of that unit, or to its last millisecond when
resolving with ``round_up=True``.

Seconds, minutes and hours are elapsed durations. Days, weeks, months and
years are calendar steps taken on the wall clock of the configured timezone,
so ``now-1M`` on March 31st lands on the last day of February.

Usage:
    from dashtime.timerange.datemath import resolve

    start = resolve(Relative("now-7d"), now, round_up=False)
    end = resolve(Relative("now"), now, round_up=True)
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone, tzinfo

from dateutil.relativedelta import relativedelta

from ..errors import ClockAnchorMissing, InvalidExpression
from .models import Absolute, Relative, TimeBoundary

logger = logging.getLogger(__name__)

UNITS: tuple[str, ...] = ("y", "M", "w", "d", "h", "m", "s")

MONDAY = 0
SUNDAY = 6

_STEP = re.compile(r"(?P<op>[+-])(?P<num>\d*)(?P<unit>[yMwdhms])|/(?P<round>[yMwdhms])")

# Elapsed-time units
_FIXED: dict[str, timedelta] = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}

# Calendar units, applied on the local wall clock
_CALENDAR: dict[str, str] = {
    "d": "days",
    "w": "weeks",
    "M": "months",
    "y": "years",
}

_ONE_MS = timedelta(milliseconds=1)


def _check_anchor(now: datetime | None) -> datetime:
    if now is None:
        raise ClockAnchorMissing("Resolution requires a 'now' snapshot")
    if not isinstance(now, datetime) or now.tzinfo is None:
        raise ClockAnchorMissing(f"'now' must be a timezone-aware datetime, got {now!r}")
    return now


def _shift(instant: datetime, unit: str, amount: int, tz: tzinfo) -> datetime:
    if unit in _FIXED:
        shifted = instant.astimezone(timezone.utc) + _FIXED[unit] * amount
        return shifted.astimezone(tz)
    return instant + relativedelta(**{_CALENDAR[unit]: amount})


def start_of(instant: datetime, unit: str, week_start: int = MONDAY) -> datetime:
    """Snap a local wall-clock instant to the start of ``unit``."""
    if unit == "s":
        return instant.replace(microsecond=0)
    if unit == "m":
        return instant.replace(second=0, microsecond=0)
    if unit == "h":
        return instant.replace(minute=0, second=0, microsecond=0)

    day = instant.replace(hour=0, minute=0, second=0, microsecond=0)
    if unit == "d":
        return day
    if unit == "w":
        return day - relativedelta(days=(day.weekday() - week_start) % 7)
    if unit == "M":
        return day.replace(day=1)
    if unit == "y":
        return day.replace(month=1, day=1)
    raise InvalidExpression(f"/{unit}", f"unknown rounding unit {unit!r}")


def end_of(instant: datetime, unit: str, week_start: int = MONDAY) -> datetime:
    """Last millisecond of the ``unit`` containing ``instant``."""
    start = start_of(instant, unit, week_start)
    if unit in _FIXED:
        following = start + _FIXED[unit]
    else:
        following = start + relativedelta(**{_CALENDAR[unit]: 1})
    return following - _ONE_MS


def evaluate(
    expression: str,
    now: datetime,
    round_up: bool = False,
    *,
    tz: tzinfo = timezone.utc,
    week_start: int = MONDAY,
) -> datetime:
    """Evaluate a relative expression against ``now``.

    Args:
        expression: Expression starting with ``now``.
        now: Timezone-aware anchor instant.
        round_up: Snap ``/unit`` steps to the end of the unit instead of the start.
        tz: Zone whose wall clock drives calendar steps and rounding.
        week_start: Weekday (0=Monday .. 6=Sunday) that ``/w`` snaps to.

    Returns:
        The resolved instant in UTC.

    Raises:
        InvalidExpression: If the expression does not match the grammar.
        ClockAnchorMissing: If ``now`` is missing or naive.
    """
    anchor = _check_anchor(now)
    if not expression.startswith("now"):
        raise InvalidExpression(expression, "relative expressions must start with 'now'")

    current = anchor.astimezone(tz)
    pos = len("now")
    while pos < len(expression):
        match = _STEP.match(expression, pos)
        if match is None:
            raise InvalidExpression(expression, f"unexpected {expression[pos:]!r}")
        pos = match.end()

        rounding = match.group("round")
        if rounding:
            snap = end_of if round_up else start_of
            try:
                current = snap(current, rounding, week_start)
            except (OverflowError, ValueError) as e:
                raise InvalidExpression(expression, "offset out of range") from e
            continue

        amount = int(match.group("num") or 1)
        if match.group("op") == "-":
            amount = -amount
        try:
            current = _shift(current, match.group("unit"), amount, tz)
        except (OverflowError, ValueError) as e:
            raise InvalidExpression(expression, "offset out of range") from e

    return current.astimezone(timezone.utc)


def resolve(
    boundary: TimeBoundary,
    now: datetime | None,
    round_up: bool = False,
    *,
    tz: tzinfo = timezone.utc,
    week_start: int = MONDAY,
) -> datetime:
    """Map a boundary to a concrete UTC instant.

    Absolute boundaries come back unchanged. Relative ones are evaluated
    against ``now``; pass ``round_up=False`` for ``from`` and ``True`` for ``to``
    so that a window like ``now/d`` .. ``now/d`` still spans the whole day.
    """
    anchor = _check_anchor(now)
    if isinstance(boundary, Absolute):
        return boundary.instant
    if isinstance(boundary, Relative):
        resolved = evaluate(boundary.expression, anchor, round_up, tz=tz, week_start=week_start)
        logger.debug(
            "Resolved %s -> %s",
            boundary.expression,
            resolved.isoformat(),
            extra={"round_up": round_up},
        )
        return resolved
    raise InvalidExpression(boundary, "not a time boundary")


def is_valid(
    expression: str,
    now: datetime | None = None,
    *,
    tz: tzinfo = timezone.utc,
    week_start: int = MONDAY,
) -> bool:
    """Whether ``expression`` evaluates against ``now`` (default: the current time)."""
    anchor = now if now is not None else datetime.now(timezone.utc)
    try:
        evaluate(expression, anchor, tz=tz, week_start=week_start)
    except InvalidExpression:
        return False
    return True


__all__ = [
    "UNITS",
    "MONDAY",
    "SUNDAY",
    "start_of",
    "end_of",
    "evaluate",
    "resolve",
    "is_valid",
]
