# Shared fixtures: a default New York configuration and a manual timer factory
# so unattended-mode tests never sleep or spawn threads.

from __future__ import annotations

import pytest

from config.tracker_config import TrackerConfig
from factories import FakeTimerFactory


@pytest.fixture
def config() -> TrackerConfig:
    return TrackerConfig(
        timezone="America/New_York", interval=15, max_interval=60, daily_cutoff=180
    )


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()
