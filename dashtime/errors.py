"""Exceptions raised by the time-range and refresh components.

Usage:
    from dashtime.errors import InvalidExpression

    try:
        boundary = decode_boundary(raw)
    except InvalidExpression as e:
        logger.warning("Ignoring %s", e.expression)
"""

from __future__ import annotations


class DashtimeError(Exception):
    """Base class for all dashtime errors."""


class InvalidExpression(DashtimeError, ValueError):
    """A boundary string matches neither an absolute encoding nor the relative grammar."""

    def __init__(self, expression: object, reason: str = "") -> None:
        self.expression = expression
        self.reason = reason
        message = f"Invalid time expression: {expression!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ClockAnchorMissing(DashtimeError):
    """Resolution was requested without a timezone-aware 'now' snapshot."""


class InvalidInterval(DashtimeError, ValueError):
    """A refresh duration literal could not be parsed."""

    def __init__(self, literal: object) -> None:
        self.literal = literal
        super().__init__(f"Invalid interval string: {literal!r}")


__all__ = [
    "DashtimeError",
    "InvalidExpression",
    "ClockAnchorMissing",
    "InvalidInterval",
]
