"""ScoreTracker facade: one parse cycle plus the self-rearming wake-up.

A cycle runs synchronously: extract games from the document, diff them
against the previous cycle and publish ``game`` events, compute the next delay
and publish one ``scheduled`` event, then (when a document source is attached
and the tracker is not stopped) arm a timer that pulls a fresh document and
runs the next cycle.

Example:
    tracker = ScoreTracker(TrackerConfig.from_settings(), source=lambda: fetch(url))
    tracker.on(TrackerEvent.GAME, lambda evt: print(evt.payload.home.name))
    tracker.start()
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

from config.tracker_config import TrackerConfig
from core.clock import Clock, SystemClock
from core.event_bus import EventBus, EventHandler, Subscription, TrackerEvent
from domain.models import RawGame, TrackerState
from parsing import bracket_parser
from tracking.differ import GameDiffer
from tracking.scheduler import PollScheduler

__all__ = ["ScoreTracker", "DocumentSource", "TimerFactory"]

_log = logging.getLogger(__name__)

DocumentSource = Callable[[], "str | bytes"]
TimerFactory = Callable[[float, Callable[[], None]], Any]
Extractor = Callable[..., List[RawGame]]


def _daemon_timer(seconds: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(seconds, callback)
    timer.daemon = True
    return timer


class ScoreTracker:
    def __init__(
        self,
        config: TrackerConfig,
        *,
        clock: Optional[Clock] = None,
        bus: Optional[EventBus] = None,
        source: Optional[DocumentSource] = None,
        timer_factory: Optional[TimerFactory] = None,
        extractor: Optional[Extractor] = None,
    ) -> None:
        self._config = config
        self._clock = clock or SystemClock(config.zone)
        self._bus = bus or EventBus()
        self._source = source
        self._timer_factory = timer_factory or _daemon_timer
        self._extract = extractor or bracket_parser.extract_games
        self._state = TrackerState.empty()
        self._differ = GameDiffer()
        self._scheduler = PollScheduler(config)
        self._timer_lock = threading.Lock()
        # serializes cycles from the timer thread and the caller's thread
        self._cycle_lock = threading.RLock()
        self._timer: Any = None
        self._generation = 0
        self._stopped = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def current_interval(self) -> Optional[int]:
        """Last computed delay in milliseconds (None before the first cycle)."""
        return self._state.current_interval

    @property
    def backoff_level(self) -> int:
        return self._state.backoff_level

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def has_pending_timer(self) -> bool:
        with self._timer_lock:
            return self._timer is not None

    def on(
        self, event: str | TrackerEvent, handler: EventHandler, *, once: bool = False
    ) -> Subscription:
        return self._bus.subscribe(event, handler, once=once)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------
    def parse(self, document: str | bytes | None, suppress: Optional[bool] = None) -> List[RawGame]:
        """Run one full cycle over `document` and return the emitted games.

        `suppress` forces (True) or forbids (False) baseline suppression for
        this call. When omitted, only the very first cycle is suppressed and
        only if the tracker was configured with `ignore_initial`.
        """
        with self._cycle_lock:
            now = self._clock.now()
            zone = self._config.zone
            games = self._extract(document, tz=zone, today=now.astimezone(zone).date())
            if suppress is None:
                suppress = self._config.ignore_initial and not self._state.has_emitted_baseline
            emitted = self._differ.observe(games, self._state, suppress=bool(suppress))
            self._state.has_emitted_baseline = True
            for game in emitted:
                _log.info(
                    "Game %s (%s): %s vs %s [%s]",
                    game.id,
                    game.region,
                    game.visitor.name,
                    game.home.name,
                    game.status.value,
                )
                self._bus.publish(TrackerEvent.GAME, game)
            delay = self._scheduler.compute_next_delay(games, now, self._state)
            self._state.cycles += 1
            self._bus.publish(TrackerEvent.SCHEDULED, delay)
            self._arm(delay)
            return emitted

    # ------------------------------------------------------------------
    # Unattended operation
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Resume self-rearming and run a cycle against the document source now."""
        if self._source is None:
            raise RuntimeError("ScoreTracker.start() requires a document source")
        with self._timer_lock:
            self._stopped = False
        self._run_from_source()

    def stop(self) -> None:
        """Cancel the pending wake-up (if any) and stop re-arming. Idempotent."""
        with self._timer_lock:
            self._stopped = True
            self._generation += 1
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            _log.info("Tracker stopped; pending wake-up cancelled")

    def _arm(self, delay_ms: int) -> None:
        with self._timer_lock:
            if self._stopped or self._source is None:
                return
            previous = self._timer
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(delay_ms / 1000.0, lambda: self._on_timer(generation))
            self._timer = timer
        if previous is not None:
            previous.cancel()
        timer.start()
        _log.info("Next poll in %.1f minutes", delay_ms / 60000.0)

    def _on_timer(self, generation: int) -> None:
        with self._timer_lock:
            # a newer timer (or stop()) superseded this one
            if self._stopped or generation != self._generation:
                return
            self._timer = None
        self._run_from_source()

    def _run_from_source(self) -> None:
        assert self._source is not None
        try:
            document = self._source()
        except Exception as exc:  # noqa: BLE001 - any source failure retries later
            _log.warning("Document source failed: %s", exc, exc_info=True)
            self._bus.publish(TrackerEvent.ERROR, exc)
            self._arm(self._config.interval_ms)
            return
        self.parse(document)
