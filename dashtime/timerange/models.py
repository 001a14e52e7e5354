"""Time boundary and range value types.

A boundary is either an absolute instant or a relative expression anchored
on "now". Both are immutable; a session replaces its range wholesale rather
than editing one in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Union

from ..errors import InvalidExpression

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Absolute:
    """A fixed instant. Always stored as a timezone-aware UTC datetime."""

    instant: datetime

    def __post_init__(self) -> None:
        if self.instant.tzinfo is None:
            raise ValueError(f"Absolute boundary requires an aware datetime: {self.instant!r}")
        instant = self.instant.astimezone(timezone.utc)
        # Millisecond precision, matching the address-bar encoding
        instant = instant.replace(microsecond=instant.microsecond // 1000 * 1000)
        object.__setattr__(self, "instant", instant)

    @classmethod
    def from_epoch_ms(cls, epoch_ms: int) -> Absolute:
        """Build a boundary from milliseconds since the Unix epoch."""
        return cls(EPOCH + timedelta(milliseconds=epoch_ms))

    @property
    def epoch_ms(self) -> int:
        """Milliseconds since the Unix epoch."""
        return (self.instant - EPOCH) // timedelta(milliseconds=1)

    def __str__(self) -> str:
        return self.instant.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Relative:
    """An expression such as ``now``, ``now-6h`` or ``now-1d/d``."""

    expression: str

    def __post_init__(self) -> None:
        if "now" not in self.expression:
            raise InvalidExpression(self.expression, "relative expressions must contain 'now'")

    def __str__(self) -> str:
        return self.expression


TimeBoundary = Union[Absolute, Relative]


@dataclass(frozen=True)
class TimeRange:
    """Raw (unresolved) ``from``/``to`` pair.

    No ordering between the two sides is enforced here; an inverted range
    only shows up once it is resolved.
    """

    from_: TimeBoundary
    to: TimeBoundary

    @property
    def is_absolute_to(self) -> bool:
        """Whether the ``to`` side is a frozen instant."""
        return isinstance(self.to, Absolute)

    def replace(
        self,
        from_: TimeBoundary | None = None,
        to: TimeBoundary | None = None,
    ) -> TimeRange:
        """Return a copy with the given sides swapped in."""
        return TimeRange(
            from_=from_ if from_ is not None else self.from_,
            to=to if to is not None else self.to,
        )

    def to_dict(self) -> dict[str, str]:
        """Human-readable form used in notifications and logs."""
        return {"from": str(self.from_), "to": str(self.to)}


@dataclass(frozen=True)
class ResolvedRange:
    """Both sides of a range as concrete UTC instants.

    Produced per read against one "now" snapshot and never cached.
    """

    from_: datetime
    to: datetime

    @property
    def is_inverted(self) -> bool:
        """True when ``from`` lies after ``to``."""
        return self.from_ > self.to

    @property
    def duration_seconds(self) -> float:
        return (self.to - self.from_).total_seconds()

    def to_dict(self) -> dict[str, str]:
        return {
            "from": self.from_.isoformat().replace("+00:00", "Z"),
            "to": self.to.isoformat().replace("+00:00", "Z"),
        }


__all__ = [
    "Absolute",
    "Relative",
    "TimeBoundary",
    "TimeRange",
    "ResolvedRange",
]
