"""Parsing of published bracket pages into raw game records (BeautifulSoup).

Page layout recipe:
 - every element with class ``match`` is one game; its id comes from
   ``data-game-id`` or the element id minus a ``match`` prefix
 - the closest ``.region`` ancestor names the region (``data-region`` or its
   ``.region-name`` heading)
 - ``.team.home`` / ``.team.visitor`` hold ``.seed`` and ``.name``; the name's
   text and ``title`` attribute are both kept as variants, since the page uses
   short names in text and full names in titles
 - ``.status`` text decides the status and, for upcoming games, the tip-off
   time on the ``data-date`` of the match (or an ancestor), defaulting to today

Incomplete matches (future-round placeholders without teams or seeds) are
skipped. Documents without games produce an empty list, never an error.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, tzinfo
from typing import List, Optional

from bs4 import BeautifulSoup  # type: ignore

from domain.models import GameStatus, RawGame, Side
from parsing.errors import MissingSectionError, ParsingError, ValueExtractionError
from utils import html_utils

_log = logging.getLogger(__name__)

MATCH_ID_PREFIX_RE = re.compile(r"^match[-_]?", re.IGNORECASE)
UNSCHEDULED = {"", "tbd", "tba"}


def _text(node) -> str:
    return html_utils.clean_text(node.get_text(" ", strip=True)) if node else ""


def _game_id(match) -> str:
    raw = match.get("data-game-id") or match.get("id") or ""
    game_id = MATCH_ID_PREFIX_RE.sub("", raw.strip())
    if not game_id:
        raise ValueExtractionError("Match element has no id", context={"html": str(match)[:80]})
    return game_id


def _region(match) -> str:
    region = match.find_parent(class_="region")
    if region is None:
        return ""
    label = region.get("data-region") or _text(region.select_one(".region-name"))
    return html_utils.clean_text(label).upper()


def _side(match, role: str) -> Side:
    node = match.select_one(f".team.{role}")
    if node is None:
        raise MissingSectionError(f"No {role} team row", context={"role": role})
    name_node = node.select_one(".name")
    variants = []
    if name_node is not None:
        variants = html_utils.dedupe(
            [_text(name_node), html_utils.clean_text(name_node.get("title"))]
        )
    if not variants:
        raise MissingSectionError(f"No {role} team name", context={"role": role})
    seed = html_utils.extract_first_number(_text(node.select_one(".seed")))
    if not seed:
        raise ValueExtractionError(f"No {role} seed", context={"role": role})
    return Side(names=tuple(variants), seed=seed, is_winner="winner" in node.get("class", []))


def _game_date(match, today: date) -> date:
    holder = match if match.has_attr("data-date") else match.find_parent(attrs={"data-date": True})
    if holder is None:
        return today
    raw = holder.get("data-date", "").strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        _log.debug("Unparseable data-date %r; using %s", raw, today)
        return today


def _status(match, tz: tzinfo, today: date) -> tuple[GameStatus, Optional[datetime]]:
    text = _text(match.select_one(".status"))
    lowered = text.lower()
    if lowered.startswith("final"):
        return GameStatus.FINAL, None
    tip_off = html_utils.parse_clock_time(text)
    if tip_off is not None:
        start = datetime.combine(_game_date(match, today), tip_off, tzinfo=tz)
        return GameStatus.NOT_STARTED, start
    if lowered in UNSCHEDULED:
        return GameStatus.NOT_STARTED, None
    return GameStatus.IN_PROGRESS, None


def parse_game(match, *, tz: tzinfo, today: date) -> RawGame:
    status, start = _status(match, tz, today)
    return RawGame(
        id=_game_id(match),
        region=_region(match),
        home=_side(match, "home"),
        visitor=_side(match, "visitor"),
        status=status,
        scheduled_start=start,
    )


def extract_games(
    document: str | bytes | None, *, tz: tzinfo, today: date | None = None
) -> List[RawGame]:
    """Extract games in page order.

    `today` is the local date used for games whose page omits a date; it
    defaults to the current date in `tz`.
    """
    if not document:
        return []
    if today is None:
        today = datetime.now(tz).date()
    soup = BeautifulSoup(document, "html.parser")
    games: List[RawGame] = []
    seen: set[str] = set()
    for match in soup.find_all(class_="match"):
        try:
            game = parse_game(match, tz=tz, today=today)
        except (ParsingError, ValueError) as e:
            _log.debug("Skipping incomplete match %s: %s", match.get("id"), e)
            continue
        if game.id in seen:
            _log.warning("Duplicate game id %s on page; keeping first occurrence", game.id)
            continue
        seen.add(game.id)
        games.append(game)
    return games
