"""Validated tracker configuration.

`TrackerConfig` is built once per tracker and never mutated. Validation runs in
`__post_init__` so an invalid combination can never reach a running tracker.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import settings

MINUTES_PER_DAY = 24 * 60
MS_PER_MINUTE = 60 * 1000


class ConfigurationError(ValueError):
    """Raised when tracker configuration values are missing or inconsistent."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


@dataclass(frozen=True, slots=True)
class TrackerConfig:
    timezone: str
    interval: float
    max_interval: float
    daily_cutoff: int
    ignore_initial: bool = False

    def __post_init__(self) -> None:
        try:
            ZoneInfo(str(self.timezone))
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(
                f"Unknown time zone: {self.timezone!r}", field="timezone"
            ) from e
        for name in ("interval", "max_interval", "daily_cutoff"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}", field=name)
        if self.interval <= 0:
            raise ConfigurationError("interval must be positive", field="interval")
        if self.max_interval < self.interval:
            raise ConfigurationError(
                f"max_interval ({self.max_interval}) is less than interval ({self.interval})",
                field="max_interval",
            )
        if not 0 <= self.daily_cutoff < MINUTES_PER_DAY:
            raise ConfigurationError(
                f"daily_cutoff must be within [0, {MINUTES_PER_DAY}) minutes",
                field="daily_cutoff",
            )

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def interval_ms(self) -> int:
        return int(round(self.interval * MS_PER_MINUTE))

    @property
    def max_interval_ms(self) -> int:
        return int(round(self.max_interval * MS_PER_MINUTE))

    @classmethod
    def from_settings(cls, **overrides: Any) -> "TrackerConfig":
        """Build from `config.settings` defaults; `None` overrides are ignored.

        Defaults may be raw environment strings. They are converted here so a
        malformed value surfaces as `ConfigurationError` naming the field.
        """
        defaults: dict[str, Any] = {
            "timezone": settings.DEFAULT_TIMEZONE,
            "interval": settings.DEFAULT_INTERVAL,
            "max_interval": settings.DEFAULT_MAX_INTERVAL,
            "daily_cutoff": settings.DEFAULT_DAILY_CUTOFF,
            "ignore_initial": settings.DEFAULT_IGNORE_INITIAL,
        }
        unknown = set(overrides) - set(defaults)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        values = {k: v for k, v in overrides.items() if v is not None}
        for name, raw in defaults.items():
            if name not in values:
                values[name] = _from_env(name, raw)
        return cls(**values)


_ENV_CONVERTERS: dict[str, Callable[[str], Any]] = {
    "interval": float,
    "max_interval": float,
    "daily_cutoff": int,
    "ignore_initial": lambda raw: raw.lower() in ("1", "true", "yes", "on"),
}


def _from_env(name: str, raw: Any) -> Any:
    convert = _ENV_CONVERTERS.get(name)
    if convert is None or not isinstance(raw, str):
        return raw
    try:
        return convert(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", field=name) from e
