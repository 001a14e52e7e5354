"""Tests for the run.py command-line runner."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

import run
from dashtime.config import load_config


def read_report(capsys: pytest.CaptureFixture[str]) -> dict[str, Any]:
    out = capsys.readouterr().out
    result: dict[str, Any] = json.loads(out)
    return result


class TestMain:
    """End-to-end runs of main()."""

    def test_prints_saved_range(
        self, dashboard_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert run.main([str(dashboard_file)]) == 0
        report = read_report(capsys)
        assert report["dashboard"] == "Service overview"
        assert report["raw"] == {"from": "now-6h", "to": "now"}
        assert report["address"] == {"from": "now-6h", "to": "now"}
        assert report["refresh"] == "30s"
        assert report["refresh_ticks"] == 0

    def test_address_params(
        self, dashboard_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        run.main([str(dashboard_file), "--from", "20230101", "--to", "20230102"])
        report = read_report(capsys)
        assert report["resolved"] == {
            "from": "2023-01-01T00:00:00Z",
            "to": "2023-01-02T00:00:00Z",
        }
        assert report["address"] == {"from": "1672531200000", "to": "1672617600000"}

    def test_absolute_link(
        self, dashboard_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        run.main([str(dashboard_file), "--absolute"])
        report = read_report(capsys)
        assert report["address"]["from"].isdigit()
        assert int(report["address"]["to"]) - int(report["address"]["from"]) == 6 * 3600 * 1000

    def test_invalid_timezone_override(self, dashboard_file: Path) -> None:
        with pytest.raises(ValidationError):
            run.main([str(dashboard_file), "--timezone", "Mars/Olympus"])


class TestRunSession:
    """run_session with a config allowing fast ticks."""

    @pytest.fixture(autouse=True)
    def _fast_config(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("refresh:\n  min_interval: 1ms\n")
        load_config(path)

    def test_waits_for_ticks(self) -> None:
        report = asyncio.run(
            run.run_session({"title": "Fast", "refresh": "5ms"}, {}, ticks=2)
        )
        assert report["refresh_ticks"] >= 2
        assert report["refresh"] == "5ms"

    def test_no_refresh_does_not_wait(self) -> None:
        report = asyncio.run(run.run_session({"title": "Static"}, {}, ticks=5))
        assert report["refresh_ticks"] == 0
        assert report["refresh"] is None
