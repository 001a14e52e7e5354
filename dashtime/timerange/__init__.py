"""Time boundaries, date math and address-bar encoding."""

from .models import Absolute, Relative, TimeBoundary, TimeRange, ResolvedRange
from .datemath import resolve, evaluate, is_valid
from .codec import decode_boundary, decode_saved_boundary, encode_boundary, encode_for_address
from .intervals import parse_interval, format_interval, is_disabled

__all__ = [
    "Absolute",
    "Relative",
    "TimeBoundary",
    "TimeRange",
    "ResolvedRange",
    "resolve",
    "evaluate",
    "is_valid",
    "decode_boundary",
    "decode_saved_boundary",
    "encode_boundary",
    "encode_for_address",
    "parse_interval",
    "format_interval",
    "is_disabled",
]
