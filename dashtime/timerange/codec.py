"""Address-bar encoding of time boundaries.

Decoding precedence for a raw ``from``/``to`` parameter (first match wins):

1. contains ``now``         -> Relative, kept verbatim
2. ``YYYYMMDD``             -> Absolute, midnight UTC
3. ``YYYYMMDDTHHmmss``      -> Absolute, UTC
4. integer                  -> Absolute, epoch milliseconds
5. anything else            -> InvalidExpression

Encoding writes absolute boundaries as epoch milliseconds and relative ones
verbatim, so ``now-6h`` survives navigation instead of freezing.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable

from dateutil.parser import isoparse

from ..errors import InvalidExpression
from .datemath import resolve
from .models import Absolute, Relative, TimeBoundary, TimeRange

_DATE = re.compile(r"^\d{8}$")
_TIMESTAMP = re.compile(r"^\d{8}T\d{6}$")
_EPOCH_MS = re.compile(r"^-?\d+$")


def _parse_utc(raw: str, fmt: str) -> Absolute:
    try:
        parsed = datetime.strptime(raw, fmt)
    except ValueError as e:
        raise InvalidExpression(raw, "not a calendar date") from e
    return Absolute(parsed.replace(tzinfo=timezone.utc))


def decode_boundary(raw: str) -> TimeBoundary:
    """Decode one address-bar parameter.

    Raises:
        InvalidExpression: If ``raw`` matches none of the recognised encodings.
    """
    if not isinstance(raw, str):
        raise InvalidExpression(raw, "expected a string")
    if "now" in raw:
        return Relative(raw)
    if len(raw) == 8 and _DATE.match(raw):
        return _parse_utc(raw, "%Y%m%d")
    if len(raw) == 15 and _TIMESTAMP.match(raw):
        return _parse_utc(raw, "%Y%m%dT%H%M%S")
    if _EPOCH_MS.match(raw):
        try:
            return Absolute.from_epoch_ms(int(raw))
        except OverflowError as e:
            raise InvalidExpression(raw, "epoch out of range") from e
    raise InvalidExpression(raw)


def decode_saved_boundary(value: Any) -> TimeBoundary:
    """Decode a boundary as stored in a dashboard record.

    Saved dashboards carry absolute instants as ISO-8601 strings
    (``"2023-01-01T00:00:00.000Z"``); everything else goes through
    :func:`decode_boundary`. Values already decoded pass through.
    """
    if isinstance(value, (Absolute, Relative)):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return Absolute(value)
    if isinstance(value, str) and "now" not in value and ("-" in value[1:] or ":" in value):
        try:
            parsed = isoparse(value)
        except ValueError as e:
            raise InvalidExpression(value, "not an ISO-8601 timestamp") from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return Absolute(parsed)
    return decode_boundary(value)


def encode_boundary(boundary: TimeBoundary) -> str:
    """Encode a single boundary for the address bar."""
    if isinstance(boundary, Absolute):
        return str(boundary.epoch_ms)
    if isinstance(boundary, Relative):
        return boundary.expression
    raise InvalidExpression(boundary, "not a time boundary")


def encode_for_address(
    time_range: TimeRange,
    resolve_to_absolute: bool = False,
    resolver: Callable[[TimeBoundary, bool], datetime] | None = None,
) -> dict[str, str]:
    """Encode a range as ``{"from": ..., "to": ...}`` query parameters.

    Args:
        time_range: The raw range.
        resolve_to_absolute: Freeze relative sides to the current time first,
            producing a clock-independent, shareable link.
        resolver: ``(boundary, round_up) -> instant`` used when freezing.
            Defaults to UTC resolution against the wall clock.
    """
    from_, to = time_range.from_, time_range.to
    if resolve_to_absolute:
        if resolver is None:
            now = datetime.now(timezone.utc)
            from_ = Absolute(resolve(from_, now, False))
            to = Absolute(resolve(to, now, True))
        else:
            from_ = Absolute(resolver(from_, False))
            to = Absolute(resolver(to, True))
    return {"from": encode_boundary(from_), "to": encode_boundary(to)}


__all__ = [
    "decode_boundary",
    "decode_saved_boundary",
    "encode_boundary",
    "encode_for_address",
]
