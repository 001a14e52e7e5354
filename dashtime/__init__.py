"""Dashtime source package.

This package contains the dashboard time-range components:
- config: Configuration loading and management
- timerange: Boundary models, date math, address-bar codec, interval literals
- session: Range state, refresh scheduler and the per-session coordinator
"""

from __future__ import annotations

__all__: list[str] = []
