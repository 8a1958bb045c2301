import pytest

from config import settings
from config.tracker_config import ConfigurationError, TrackerConfig


def _cfg(**overrides):
    values = dict(timezone="America/New_York", interval=15, max_interval=60, daily_cutoff=180)
    values.update(overrides)
    return TrackerConfig(**values)


def test_valid_config_derives_milliseconds():
    cfg = _cfg(interval=15, max_interval=25)
    assert cfg.interval_ms == 900_000
    assert cfg.max_interval_ms == 1_500_000
    assert cfg.zone.key == "America/New_York"
    assert cfg.ignore_initial is False


def test_fractional_minutes_are_allowed():
    assert _cfg(interval=0.5, max_interval=0.5).interval_ms == 30_000


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"timezone": "Mars/Olympus_Mons"}, "timezone"),
        ({"interval": 0}, "interval"),
        ({"interval": -5}, "interval"),
        ({"interval": 30, "max_interval": 20}, "max_interval"),
        ({"daily_cutoff": -1}, "daily_cutoff"),
        ({"daily_cutoff": 1440}, "daily_cutoff"),
        ({"interval": "15"}, "interval"),
        ({"daily_cutoff": True}, "daily_cutoff"),
    ],
)
def test_invalid_config_fails_fast(overrides, field):
    with pytest.raises(ConfigurationError) as exc:
        _cfg(**overrides)
    assert exc.value.field == field


def test_max_interval_equal_to_interval_is_valid():
    assert _cfg(interval=20, max_interval=20).max_interval_ms == 1_200_000


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        _cfg(interval=0)


def test_from_settings_uses_defaults_and_ignores_none(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_TIMEZONE", "America/Chicago")
    monkeypatch.setattr(settings, "DEFAULT_INTERVAL", 10)
    cfg = TrackerConfig.from_settings(interval=None, daily_cutoff=120)
    assert cfg.timezone == "America/Chicago"
    assert cfg.interval == 10
    assert cfg.daily_cutoff == 120


def test_from_settings_rejects_unknown_keys():
    with pytest.raises(ConfigurationError):
        TrackerConfig.from_settings(polling="fast")


def test_from_settings_converts_environment_strings(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_INTERVAL", "7.5")
    monkeypatch.setattr(settings, "DEFAULT_DAILY_CUTOFF", " 90 ")
    monkeypatch.setattr(settings, "DEFAULT_IGNORE_INITIAL", "Yes")
    cfg = TrackerConfig.from_settings()
    assert cfg.interval == 7.5
    assert cfg.daily_cutoff == 90
    assert cfg.ignore_initial is True


def test_from_settings_reports_malformed_environment_value(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_INTERVAL", "abc")
    with pytest.raises(ConfigurationError) as exc:
        TrackerConfig.from_settings()
    assert exc.value.field == "interval"


def test_override_skips_malformed_environment_value(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_DAILY_CUTOFF", "3am")
    assert TrackerConfig.from_settings(daily_cutoff=120).daily_cutoff == 120
