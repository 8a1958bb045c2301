"""Text helpers shared by the bracket extractor."""

from __future__ import annotations

import re
from datetime import time
from typing import Iterable

NBSP_RE = re.compile(r"&nbsp;?|\xa0")
WS_RE = re.compile(r"\s+")
CLOCK_RE = re.compile(r"\b(\d{1,2}):(\d{2})\s*([AP])\.?\s*M\.?", re.IGNORECASE)


def clean_text(text: str | None) -> str:
    if not text:
        return ""
    text = NBSP_RE.sub(" ", text)
    return WS_RE.sub(" ", text).strip()


def extract_first_number(text: str) -> int | None:
    m = re.search(r"\d+", text)
    return int(m.group(0)) if m else None


def parse_clock_time(text: str) -> time | None:
    """Parse a 12-hour clock time like '7:00 PM ET' or '12:15 p.m.'."""
    m = CLOCK_RE.search(text)
    if not m:
        return None
    hour, minute = int(m.group(1)), int(m.group(2))
    if not 1 <= hour <= 12 or minute > 59:
        return None
    if m.group(3).upper() == "P" and hour != 12:
        hour += 12
    elif m.group(3).upper() == "A" and hour == 12:
        hour = 0
    return time(hour, minute)


def dedupe(seq: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in seq:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out
