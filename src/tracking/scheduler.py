"""Adaptive poll scheduling.

Decides, after each parse, how long to wait before the next one:

 1. no games on the page        -> sleep until the next daily cutoff
 2. every game final            -> sleep until the next daily cutoff
 3. any game in progress        -> exponential backoff (x1.5) from the base
                                   interval, clamped to the ceiling each cycle
 4. otherwise (nothing started) -> sleep until the earliest declared tip-off,
                                   or the base interval if that is unknown or
                                   already past

Branches 1, 2 and 4 end a backoff run, so the next in-progress cycle starts
again from the base interval.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from config.tracker_config import TrackerConfig
from core import clock as clock_utils
from domain.models import GameStatus, RawGame, TrackerState

_log = logging.getLogger(__name__)

BACKOFF_MULTIPLIER = 1.5


class PollScheduler:
    def __init__(self, config: TrackerConfig) -> None:
        self._config = config
        self._tz = config.zone

    def compute_next_delay(
        self, games: Sequence[RawGame], now: datetime, state: TrackerState
    ) -> int:
        if not games:
            delay = self._until_next_cutoff(now)
            state.backoff_level = 0
            _log.debug("No games found; resuming at next cutoff in %d ms", delay)
        elif all(g.status is GameStatus.FINAL for g in games):
            delay = self._until_next_cutoff(now)
            state.backoff_level = 0
            _log.debug("All %d games final; resuming at next cutoff in %d ms", len(games), delay)
        elif any(g.status is GameStatus.IN_PROGRESS for g in games):
            delay = self._backoff(state)
            state.backoff_level += 1
            _log.debug("Games in progress; backoff level %d, delay %d ms", state.backoff_level, delay)
        else:
            delay = self._until_tip_off(games, now)
            state.backoff_level = 0
            _log.debug("No game started yet; next check in %d ms", delay)
        delay = max(1, int(delay))
        state.current_interval = delay
        return delay

    def next_cutoff(self, now: datetime) -> datetime:
        return clock_utils.next_cutoff(now, self._config.daily_cutoff, self._tz)

    def _until_next_cutoff(self, now: datetime) -> int:
        return clock_utils.millis_between(now, self.next_cutoff(now))

    def _backoff(self, state: TrackerState) -> int:
        if state.backoff_level == 0 or state.current_interval is None:
            delay = self._config.interval_ms
        else:
            delay = int(round(state.current_interval * BACKOFF_MULTIPLIER))
        return min(delay, self._config.max_interval_ms)

    def _until_tip_off(self, games: Sequence[RawGame], now: datetime) -> int:
        starts = [
            g.scheduled_start
            for g in games
            if g.status is GameStatus.NOT_STARTED and g.scheduled_start is not None
        ]
        if starts:
            earliest = min(starts)
            if earliest > now:
                return clock_utils.millis_between(now, earliest)
        # started according to the schedule but the page has not caught up
        return self._config.interval_ms
