"""Clock sources and day-boundary helpers.

All "now" reads in the tracker go through a `Clock` so scheduling can be tested
against a fixed instant. Helpers here work on aware datetimes and compute
differences on UTC instants, so DST transitions are counted in real elapsed
time rather than wall-clock time.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo

__all__ = [
    "Clock",
    "SystemClock",
    "FixedClock",
    "local_midnight",
    "next_cutoff",
    "millis_between",
]

_ONE_MS = timedelta(milliseconds=1)


class Clock(Protocol):
    def now(self) -> datetime: ...  # pragma: no cover - structural


class SystemClock:
    """Wall clock expressed in a configured zone."""

    def __init__(self, tz: tzinfo | str) -> None:
        self._tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock:
    """Always returns the same instant; used for deterministic scheduling."""

    def __init__(self, instant: datetime, tz: tzinfo | str | None = None) -> None:
        if instant.tzinfo is None:
            if tz is None:
                raise ValueError("FixedClock needs an aware instant or an explicit tz")
            zone = ZoneInfo(tz) if isinstance(tz, str) else tz
            instant = instant.replace(tzinfo=zone)
        elif tz is not None:
            instant = instant.astimezone(ZoneInfo(tz) if isinstance(tz, str) else tz)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant


def local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=tz)


def next_cutoff(now: datetime, cutoff_minutes: int, tz: tzinfo) -> datetime:
    """Return the next instant at which the bracket day rolls over.

    The bracket day starts at `cutoff_minutes` past local midnight, so a time
    before the cutoff still belongs to the previous day and rolls over at
    today's cutoff. The result is always strictly after `now` as an instant,
    including inside the repeated hour when clocks go back.
    """
    now_utc = now.astimezone(timezone.utc)
    day = now_utc.astimezone(tz).date()
    # wall-clock arithmetic in the zone; 03:00 stays 03:00 across DST changes
    target = local_midnight(day, tz) + timedelta(minutes=cutoff_minutes)
    # same-zone datetimes compare by wall clock and ignore fold, so compare in UTC
    if target.astimezone(timezone.utc) <= now_utc:
        target = local_midnight(day + timedelta(days=1), tz) + timedelta(minutes=cutoff_minutes)
    return target


def millis_between(start: datetime, end: datetime) -> int:
    """Elapsed milliseconds from `start` to `end`, measured on UTC instants."""
    delta = end.astimezone(timezone.utc) - start.astimezone(timezone.utc)
    return delta // _ONE_MS
