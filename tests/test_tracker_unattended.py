"""Self-rearming behaviour: timers, stop() and source failures."""

from __future__ import annotations

import threading

import pytest

from core.clock import FixedClock
from core.event_bus import TrackerEvent
from core.http_client import HttpError
from factories import ny, read_page
from tracking.tracker import ScoreTracker

NOW = ny(2014, 3, 22, 18, 0)


class PageSource:
    def __init__(self, *pages: object):
        self.pages = list(pages)
        self.calls = 0

    def __call__(self) -> bytes:
        self.calls += 1
        page = self.pages.pop(0) if len(self.pages) > 1 else self.pages[0]
        if isinstance(page, Exception):
            raise page
        return read_page(str(page))


def _tracker(config, timers, source) -> ScoreTracker:
    return ScoreTracker(config, clock=FixedClock(NOW), source=source, timer_factory=timers)


def test_start_runs_cycle_and_arms_timer(config, timers):
    source = PageSource("in-progress.html")
    tracker = _tracker(config, timers, source)
    tracker.start()
    assert source.calls == 1
    assert timers.last.started
    assert timers.last.seconds == 900.0
    assert tracker.has_pending_timer


def test_timer_fire_runs_next_cycle_with_backoff(config, timers):
    tracker = _tracker(config, timers, PageSource("in-progress.html"))
    tracker.start()
    timers.last.fire()
    assert tracker.current_interval == 1350000
    assert timers.last.seconds == 1350.0
    assert len(timers.timers) == 2


def test_stop_cancels_pending_timer_and_is_idempotent(config, timers):
    tracker = _tracker(config, timers, PageSource("in-progress.html"))
    tracker.start()
    pending = timers.last
    tracker.stop()
    tracker.stop()
    assert pending.cancelled
    assert tracker.stopped
    assert not tracker.has_pending_timer


def test_cancelled_timer_firing_late_is_ignored(config, timers):
    source = PageSource("in-progress.html")
    tracker = _tracker(config, timers, source)
    tracker.start()
    stale = timers.last
    tracker.stop()
    stale.fire()
    assert source.calls == 1
    assert tracker.current_interval == 900000


def test_stop_inside_handler_prevents_arming(config, timers):
    tracker = _tracker(config, timers, PageSource("in-progress.html"))
    tracker.on(TrackerEvent.GAME, lambda e: tracker.stop(), once=True)
    tracker.start()
    assert timers.timers == []
    assert tracker.current_interval == 900000


def test_stopped_tracker_can_still_be_driven_manually(config, timers):
    tracker = _tracker(config, timers, PageSource("in-progress.html"))
    tracker.stop()
    tracker.parse(read_page("in-progress.html"))
    tracker.parse(read_page("in-progress.html"))
    assert tracker.current_interval == 1350000
    assert tracker.backoff_level == 2
    assert timers.timers == []


def test_stop_keeps_state_and_start_resumes(config, timers):
    tracker = _tracker(config, timers, PageSource("in-progress.html"))
    tracker.start()
    tracker.stop()
    tracker.start()
    assert tracker.backoff_level == 2
    assert timers.last.seconds == 1350.0
    assert not tracker.stopped


def test_manual_parse_replaces_pending_timer(config, timers):
    tracker = _tracker(config, timers, PageSource("in-progress.html"))
    tracker.start()
    first = timers.last
    tracker.parse(read_page("round-one-complete.html"))
    assert first.cancelled
    assert timers.last is not first
    # the superseded timer must not run a cycle
    first.fire()
    assert tracker.state.cycles == 2


def test_parse_without_source_never_arms(config, timers):
    tracker = ScoreTracker(config, clock=FixedClock(NOW), timer_factory=timers)
    tracker.parse(read_page("in-progress.html"))
    assert timers.timers == []


def test_start_requires_source(config):
    with pytest.raises(RuntimeError):
        ScoreTracker(config).start()


def test_source_failure_publishes_error_and_retries_at_interval(config, timers):
    boom = HttpError("bracket page unavailable")
    source = PageSource(boom, "in-progress.html")
    tracker = _tracker(config, timers, source)
    errors = []
    tracker.on(TrackerEvent.ERROR, lambda e: errors.append(e.payload))
    tracker.start()
    assert errors == [boom]
    assert timers.last.seconds == 900.0
    assert tracker.state.cycles == 0
    timers.last.fire()
    assert tracker.state.cycles == 1
    assert tracker.current_interval == 900000


def test_cycles_from_two_threads_never_overlap(config, timers):
    entered = threading.Event()
    release = threading.Event()
    active: list[str] = []
    overlaps: list[str] = []

    def slow_extract(document, *, tz, today):
        if active:
            overlaps.append(document)
        active.append(document)
        entered.set()
        if document == "first":
            release.wait(5)
        active.pop()
        return []

    tracker = ScoreTracker(
        config, clock=FixedClock(NOW), timer_factory=timers, extractor=slow_extract
    )
    first = threading.Thread(target=tracker.parse, args=("first",))
    first.start()
    assert entered.wait(5)
    second = threading.Thread(target=tracker.parse, args=("second",))
    second.start()
    second.join(0.2)
    assert second.is_alive()  # blocked until the first cycle finishes
    release.set()
    first.join(5)
    second.join(5)
    assert overlaps == []
    assert tracker.state.cycles == 2
