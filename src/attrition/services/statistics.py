from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from attrition.engine.types import Side


class StatisticsError(RuntimeError):
    pass


def _int(d: Mapping[str, object], key: str) -> int:
    v = d.get(key, 0)
    return int(v) if isinstance(v, int) else 0


@dataclass
class GameStatistics:
    games_played: int = 0
    games_won: int = 0
    games_lost: int = 0
    games_drawn: int = 0
    total_turns: int = 0
    total_play_time_ms: int = 0
    last_played: str | None = None

    @property
    def games_finished(self) -> int:
        return self.games_won + self.games_lost + self.games_drawn

    @property
    def average_turns_per_game(self) -> int:
        if self.games_finished == 0:
            return 0
        return round(self.total_turns / self.games_finished)

    @property
    def average_game_duration_ms(self) -> int:
        if self.games_finished == 0:
            return 0
        return round(self.total_play_time_ms / self.games_finished)

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "GameStatistics":
        last = d.get("last_played")
        return GameStatistics(
            games_played=_int(d, "games_played"),
            games_won=_int(d, "games_won"),
            games_lost=_int(d, "games_lost"),
            games_drawn=_int(d, "games_drawn"),
            total_turns=_int(d, "total_turns"),
            total_play_time_ms=_int(d, "total_play_time_ms"),
            last_played=last if isinstance(last, str) else None,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "games_played": self.games_played,
            "games_won": self.games_won,
            "games_lost": self.games_lost,
            "games_drawn": self.games_drawn,
            "total_turns": self.total_turns,
            "total_play_time_ms": self.total_play_time_ms,
            "average_turns_per_game": self.average_turns_per_game,
            "average_game_duration_ms": self.average_game_duration_ms,
            "last_played": self.last_played,
        }


class StatisticsService:
    """Win/loss record for the local player, kept in a JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self.stats = self._load_or_create()

    def _load_or_create(self) -> GameStatistics:
        if not self._path.exists():
            stats = GameStatistics()
            self._write(stats)
            return stats
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StatisticsError(f"Invalid JSON in {self._path}: {e}") from e
        if not isinstance(raw, dict):
            return GameStatistics()
        return GameStatistics.from_dict(raw)

    def _write(self, stats: GameStatistics) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(stats.to_dict(), indent=2), encoding="utf-8")

    def save(self) -> None:
        self._write(self.stats)

    def record_game_start(self) -> None:
        self.stats.games_played += 1
        self.stats.last_played = datetime.now(tz=timezone.utc).isoformat()
        self.save()

    def record_game_end(self, winner: Side | None, turns: int, duration_ms: int) -> None:
        if winner == "player":
            self.stats.games_won += 1
        elif winner == "opponent":
            self.stats.games_lost += 1
        else:
            self.stats.games_drawn += 1
        self.stats.total_turns += max(0, turns)
        self.stats.total_play_time_ms += max(0, duration_ms)
        self.save()

    def reset(self) -> None:
        self.stats = GameStatistics()
        self.save()
