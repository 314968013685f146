"""Shared constants for the Textual UI."""

from __future__ import annotations

TELEGRAM_BLUE = "#2AABEE"
STATS_REFRESH_SECONDS = 1.0
SIGNAL_LOG_LINES = 500
