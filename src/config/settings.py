"""Global configuration and constants for the bracket tracker."""

from __future__ import annotations

import os
from typing import Final

BRACKET_URL: Final = os.environ.get(
    "BRACKET_TRACKER_URL", "https://www.espn.com/mens-college-basketball/bracket"
)
DEFAULT_USER_AGENT: Final = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/115.0 Safari/537.36"
)
DEFAULT_TIMEOUT: Final = 15  # seconds
DEFAULT_RETRIES: Final = 3
DEFAULT_BACKOFF_FACTOR: Final = 0.6

# Polling defaults (minutes); daily cutoff is minutes past local midnight.
# Kept as raw strings; TrackerConfig.from_settings converts and validates them.
DEFAULT_TIMEZONE: Final = os.environ.get("BRACKET_TRACKER_TIMEZONE", "America/New_York")
DEFAULT_INTERVAL: Final = os.environ.get("BRACKET_TRACKER_INTERVAL", "15")
DEFAULT_MAX_INTERVAL: Final = os.environ.get("BRACKET_TRACKER_MAX_INTERVAL", "60")
DEFAULT_DAILY_CUTOFF: Final = os.environ.get("BRACKET_TRACKER_DAILY_CUTOFF", "180")
DEFAULT_IGNORE_INITIAL: Final = os.environ.get("BRACKET_TRACKER_IGNORE_INITIAL", "")
