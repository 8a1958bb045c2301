"""Domain models for the bracket tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class GameStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINAL = "final"


@dataclass(frozen=True, slots=True)
class Side:
    names: Tuple[str, ...]
    seed: int
    is_winner: bool = False

    def __post_init__(self) -> None:
        if not self.names:
            raise ValueError("Side requires at least one name variant")
        if self.seed < 1:
            raise ValueError(f"Seed must be positive, got {self.seed}")

    @property
    def name(self) -> str:
        """Canonical display name (first variant on the page)."""
        return self.names[0]

    def to_dict(self) -> Dict[str, Any]:
        return {"names": list(self.names), "seed": self.seed, "is_winner": self.is_winner}


# (status, home.is_winner, visitor.is_winner)
Snapshot = Tuple[GameStatus, bool, bool]


@dataclass(frozen=True, slots=True)
class RawGame:
    id: str
    region: str
    home: Side
    visitor: Side
    status: GameStatus = GameStatus.NOT_STARTED
    scheduled_start: Optional[datetime] = None

    def snapshot(self) -> Snapshot:
        return (self.status, self.home.is_winner, self.visitor.is_winner)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "region": self.region,
            "home": self.home.to_dict(),
            "visitor": self.visitor.to_dict(),
            "status": self.status.value,
            "scheduled_start": (
                self.scheduled_start.isoformat() if self.scheduled_start else None
            ),
        }


@dataclass(slots=True)
class TrackerState:
    seen_games: Dict[str, Snapshot] = field(default_factory=dict)
    backoff_level: int = 0
    current_interval: Optional[int] = None
    has_emitted_baseline: bool = False
    cycles: int = 0

    @classmethod
    def empty(cls) -> "TrackerState":
        return cls()
