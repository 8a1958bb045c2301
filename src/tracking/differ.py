"""Change detection between consecutive bracket snapshots."""

from __future__ import annotations

import logging
from typing import Iterable, List

from domain.models import RawGame, TrackerState

_log = logging.getLogger(__name__)


class GameDiffer:
    """Decides which games are worth a notification this cycle.

    A game qualifies when it has not been seen before or when its
    status/winner snapshot changed. The seen table is refreshed for every game
    even when the cycle is suppressed, so the next cycle diffs against the
    latest page.
    """

    def observe(
        self, games: Iterable[RawGame], state: TrackerState, *, suppress: bool = False
    ) -> List[RawGame]:
        emitted: List[RawGame] = []
        for game in games:
            snapshot = game.snapshot()
            previous = state.seen_games.get(game.id)
            state.seen_games[game.id] = snapshot
            if previous == snapshot:
                continue
            if suppress:
                continue
            emitted.append(game)
        if suppress:
            _log.debug("Baseline cycle: recorded %d games without notifying", len(state.seen_games))
        return emitted
