"""Tests for refresh interval literals."""

from __future__ import annotations

from datetime import timedelta

import pytest

from dashtime.errors import InvalidInterval
from dashtime.timerange.intervals import format_interval, is_disabled, parse_interval


class TestParseInterval:
    """Tests for parse_interval."""

    @pytest.mark.parametrize(
        "literal, expected",
        [
            ("250ms", timedelta(milliseconds=250)),
            ("5s", timedelta(seconds=5)),
            ("1m", timedelta(minutes=1)),
            ("2h", timedelta(hours=2)),
            ("1d", timedelta(days=1)),
            ("1w", timedelta(weeks=1)),
            ("1M", timedelta(days=30)),
            ("1y", timedelta(days=365)),
        ],
    )
    def test_units(self, literal: str, expected: timedelta) -> None:
        assert parse_interval(literal) == expected

    def test_zero(self) -> None:
        assert parse_interval("0s") == timedelta(0)

    @pytest.mark.parametrize("literal", ["", "10", "10x", "s", "-5s", "1.5m", "5 s"])
    def test_invalid(self, literal: str) -> None:
        with pytest.raises(InvalidInterval) as exc_info:
            parse_interval(literal)
        assert exc_info.value.literal == literal

    def test_invalid_interval_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_interval("soon")


class TestIsDisabled:
    """Empty, false and zero refresh settings mean disabled."""

    @pytest.mark.parametrize("value", [None, "", False, "0s", "0m"])
    def test_disabled(self, value: str | None | bool) -> None:
        assert is_disabled(value)

    def test_enabled(self) -> None:
        assert not is_disabled("10s")


class TestFormatInterval:
    """Tests for format_interval."""

    @pytest.mark.parametrize(
        "duration, literal",
        [
            (timedelta(seconds=30), "30s"),
            (timedelta(minutes=5), "5m"),
            (timedelta(hours=36), "36h"),
            (timedelta(days=14), "2w"),
            (timedelta(milliseconds=1500), "1500ms"),
        ],
    )
    def test_largest_whole_unit(self, duration: timedelta, literal: str) -> None:
        assert format_interval(duration) == literal
