#!/usr/bin/env python3
"""
Dashtime - dashboard time-range runner

Usage:
    python run.py dashboard.json                         # Resolve the saved range
    python run.py dashboard.json --from now-1h --to now  # Apply address-bar params
    python run.py dashboard.json --absolute              # Shareable, frozen link params
    python run.py dashboard.json --ticks 3               # Run auto-refresh for 3 ticks
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, TypedDict

from dotenv import load_dotenv

from dashtime.config import get_validated_config, load_config, set_config_value
from dashtime.session import REFRESH_REQUESTED, SessionCoordinator

logger = logging.getLogger("dashtime.run")


class SessionReport(TypedDict):
    """What the runner prints for a session."""

    dashboard: str
    raw: dict[str, str]
    resolved: dict[str, str]
    address: dict[str, str]
    refresh: str | None
    refresh_ticks: int


def load_dashboard(path: str | Path) -> dict[str, Any]:
    """Load a dashboard record from JSON."""
    with open(path) as f:
        result: dict[str, Any] = json.load(f)
        return result


async def run_session(
    dashboard: dict[str, Any],
    params: dict[str, str],
    ticks: int = 0,
    absolute: bool = False,
) -> SessionReport:
    """Initialize a session and optionally let auto-refresh fire ``ticks`` times."""
    session = SessionCoordinator.from_config()
    refreshed = asyncio.Event()
    count = 0

    def on_refresh() -> None:
        nonlocal count
        count += 1
        logger.info("Refresh requested (%d)", count)
        if count >= ticks:
            refreshed.set()

    session.subscribe(REFRESH_REQUESTED, on_refresh)
    try:
        resolved = session.init(dashboard, params)
        settings = session.dashboard
        if settings is None:
            raise RuntimeError("Session has no dashboard after init")
        if ticks > 0:
            if not settings.refresh:
                logger.warning("Dashboard has no auto-refresh interval, not waiting for ticks")
            else:
                await refreshed.wait()
        return {
            "dashboard": settings.title,
            "raw": session.get_raw().to_dict(),
            "resolved": resolved.to_dict(),
            "address": session.get_for_address_bar(resolve_to_absolute=absolute),
            "refresh": settings.refresh,
            "refresh_ticks": count,
        }
    finally:
        session.close()


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Resolve a dashboard's time range and drive its auto-refresh"
    )
    parser.add_argument("dashboard", help="Path to dashboard JSON")
    parser.add_argument(
        "--config", default=None, help="Path to config file (default: config/config.yaml)"
    )
    parser.add_argument("--from", dest="from_", default=None, help="Address-bar 'from' parameter")
    parser.add_argument("--to", default=None, help="Address-bar 'to' parameter")
    parser.add_argument("--timezone", default=None, help="Override time.timezone")
    parser.add_argument(
        "--absolute",
        action="store_true",
        help="Freeze relative boundaries in the printed address parameters",
    )
    parser.add_argument(
        "--ticks", type=int, default=0, help="Wait for N auto-refresh ticks before exiting"
    )
    args: argparse.Namespace = parser.parse_args(argv)

    load_config(args.config)
    if args.timezone:
        set_config_value("time.timezone", args.timezone)

    config = get_validated_config()
    logging.basicConfig(level=config.logging.level, format=config.logging.format)

    params: dict[str, str] = {}
    if args.from_:
        params["from"] = args.from_
    if args.to:
        params["to"] = args.to

    report = asyncio.run(
        run_session(load_dashboard(args.dashboard), params, args.ticks, args.absolute)
    )
    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
