"""CLI entry point for the bracket tracker.

Commands:
  once   Parse a single bracket snapshot (file or URL) and print the games it
         would notify plus the delay until the next poll.
  watch  Poll the bracket URL unattended, printing games as they change,
         until interrupted.

Example:
  bracket-track once --file bracket.html --now 2015-03-19T07:00:00 --json
  bracket-track watch --url https://example.com/bracket --interval 10
"""

from __future__ import annotations

import argparse
import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from config import settings
from config.tracker_config import ConfigurationError, TrackerConfig
from core import http_client
from core.clock import FixedClock
from core.event_bus import Event, TrackerEvent
from domain.models import RawGame
from tracking.tracker import ScoreTracker

_log = logging.getLogger("bracket_track")


def _build_config(args: argparse.Namespace) -> TrackerConfig:
    return TrackerConfig.from_settings(
        timezone=args.timezone,
        interval=args.interval,
        max_interval=args.max_interval,
        daily_cutoff=args.daily_cutoff,
        ignore_initial=True if args.ignore_initial else None,
    )


def _iso_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO timestamp: {value!r}") from None


def _format_game(game: RawGame) -> str:
    def side(s) -> str:
        mark = " (W)" if s.is_winner else ""
        return f"({s.seed}) {s.name}{mark}"

    return f"{game.region} {side(game.visitor)} vs {side(game.home)} [{game.status.value}]"


def _emit(args: argparse.Namespace, record: dict[str, Any], text: str) -> None:
    if args.json:
        print(json.dumps(record, ensure_ascii=False), flush=True)
    else:
        print(text, flush=True)


def _attach_printers(args: argparse.Namespace, tracker: ScoreTracker) -> None:
    def on_game(evt: Event) -> None:
        game: RawGame = evt.payload
        _emit(args, {"event": "game", "game": game.to_dict()}, _format_game(game))

    def on_scheduled(evt: Event) -> None:
        delay = int(evt.payload)
        _emit(
            args,
            {"event": "scheduled", "delay_ms": delay},
            f"Next poll in {delay / 60000:.1f} minutes",
        )

    tracker.on(TrackerEvent.GAME, on_game)
    tracker.on(TrackerEvent.SCHEDULED, on_scheduled)


def cmd_once(args: argparse.Namespace) -> int:
    config = _build_config(args)
    clock = None
    if args.now:
        clock = FixedClock(args.now, tz=config.timezone)
    if args.file:
        document: str | bytes = Path(args.file).read_bytes()
    else:
        document = http_client.fetch(args.url)
    tracker = ScoreTracker(config, clock=clock)
    _attach_printers(args, tracker)
    tracker.parse(document, True if args.suppress else None)
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    config = _build_config(args)
    url = args.url

    def source() -> str:
        return http_client.fetch(url)

    tracker = ScoreTracker(config, source=source)
    _attach_printers(args, tracker)

    def on_error(evt: Event) -> None:
        _log.error("Fetch failed, retrying in %s minutes: %s", config.interval, evt.payload)

    tracker.on(TrackerEvent.ERROR, on_error)
    done = threading.Event()
    try:
        tracker.start()
        done.wait()
    except KeyboardInterrupt:
        _log.info("Interrupted; stopping tracker")
    finally:
        tracker.stop()
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--timezone", help=f"IANA zone (default {settings.DEFAULT_TIMEZONE})")
    p.add_argument("--interval", type=float, help="Base poll interval in minutes")
    p.add_argument("--max-interval", type=float, help="Backoff ceiling in minutes")
    p.add_argument("--daily-cutoff", type=int, help="Minutes past local midnight to resume")
    p.add_argument(
        "--ignore-initial", action="store_true", help="Do not notify games seen on the first poll"
    )
    p.add_argument("--json", action="store_true", help="Emit JSON lines")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bracket-track")
    sub = p.add_subparsers(dest="command", required=True)

    once = sub.add_parser("once", help="Parse one bracket snapshot")
    src = once.add_mutually_exclusive_group(required=True)
    src.add_argument("--file", help="Saved bracket HTML file")
    src.add_argument("--url", help="Bracket page URL")
    once.add_argument(
        "--now", type=_iso_datetime, help="Pretend the current local time is this ISO timestamp"
    )
    once.add_argument(
        "--suppress", action="store_true", help="Treat this snapshot as a silent baseline"
    )
    _add_common(once)
    once.set_defaults(func=cmd_once)

    watch = sub.add_parser("watch", help="Poll the bracket page until interrupted")
    watch.add_argument("--url", default=settings.BRACKET_URL, help="Bracket page URL")
    _add_common(watch)
    watch.set_defaults(func=cmd_watch)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 2
    except http_client.HttpError as e:
        print(f"Fetch failed: {e}")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
