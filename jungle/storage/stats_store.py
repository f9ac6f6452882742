"""
Stats Store - Persistent lifetime statistics and tutorial flag.

The store:
- Counts wins, games played, captures and evolutions
- Remembers whether the tutorial has been shown
- Is the ONLY persistence in the system (games themselves are in-memory)

Design decisions:
- One small JSON file, rewritten on every update
- A missing or unreadable file reads as zeroed stats
- The engine never calls the store; the session forwards reducer events
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any
import json
import logging

logger = logging.getLogger(__name__)


OUTCOMES = ("win", "loss")


@dataclass
class AggregateStats:
    """Lifetime totals for the human side."""
    wins: int = 0
    total: int = 0
    captures: int = 0
    evolutions: int = 0

    @property
    def losses(self) -> int:
        return self.total - self.wins

    @property
    def win_rate(self) -> float:
        return self.wins / self.total if self.total else 0.0


class StatsStore(ABC):
    """Interface the session reports outcomes, captures and evolutions to."""

    @abstractmethod
    def record_outcome(self, outcome: str) -> None:
        """Record a finished game. `outcome` is "win" or "loss"."""
        pass

    @abstractmethod
    def record_capture(self) -> None:
        pass

    @abstractmethod
    def record_evolution(self) -> None:
        pass

    @abstractmethod
    def read_aggregate_stats(self) -> AggregateStats:
        pass

    @abstractmethod
    def read_tutorial_seen(self) -> bool:
        pass

    @abstractmethod
    def mark_tutorial_seen(self) -> None:
        pass


def _check_outcome(outcome: str) -> None:
    if outcome not in OUTCOMES:
        raise ValueError(f"Unknown outcome {outcome!r}, expected one of {OUTCOMES}")


class InMemoryStatsStore(StatsStore):
    """Process-local store. Used by tests and when no file is wanted."""

    def __init__(self):
        self._stats = AggregateStats()
        self._tutorial_seen = False

    def record_outcome(self, outcome: str) -> None:
        _check_outcome(outcome)
        self._stats.total += 1
        if outcome == "win":
            self._stats.wins += 1

    def record_capture(self) -> None:
        self._stats.captures += 1

    def record_evolution(self) -> None:
        self._stats.evolutions += 1

    def read_aggregate_stats(self) -> AggregateStats:
        return AggregateStats(**vars(self._stats))

    def read_tutorial_seen(self) -> bool:
        return self._tutorial_seen

    def mark_tutorial_seen(self) -> None:
        self._tutorial_seen = True


class JsonFileStatsStore(StatsStore):
    """
    File-backed store.

    Usage:
        store = JsonFileStatsStore("~/.jungle/stats.json")
        store.record_outcome("win")
        print(store.read_aggregate_stats().wins)

    File layout:
        {"wins": 0, "total": 0, "captures": 0, "evos": 0, "tutorial_done": false}
    """

    def __init__(self, path: str | Path | None = None):
        if path is None:
            path = Path.home() / ".jungle" / "stats.json"
        self.path = Path(path).expanduser()

    def record_outcome(self, outcome: str) -> None:
        _check_outcome(outcome)
        data = self._load()
        data["total"] += 1
        if outcome == "win":
            data["wins"] += 1
        self._save(data)

    def record_capture(self) -> None:
        data = self._load()
        data["captures"] += 1
        self._save(data)

    def record_evolution(self) -> None:
        data = self._load()
        data["evos"] += 1
        self._save(data)

    def read_aggregate_stats(self) -> AggregateStats:
        data = self._load()
        return AggregateStats(
            wins=data["wins"],
            total=data["total"],
            captures=data["captures"],
            evolutions=data["evos"],
        )

    def read_tutorial_seen(self) -> bool:
        return bool(self._load()["tutorial_done"])

    def mark_tutorial_seen(self) -> None:
        data = self._load()
        data["tutorial_done"] = True
        self._save(data)

    def clear(self) -> None:
        """Forget everything."""
        self.path.unlink(missing_ok=True)

    def _defaults(self) -> dict[str, Any]:
        return {"wins": 0, "total": 0, "captures": 0, "evos": 0, "tutorial_done": False}

    def _load(self) -> dict[str, Any]:
        data = self._defaults()
        if not self.path.exists():
            return data
        try:
            stored = json.loads(self.path.read_text())
        except (OSError, ValueError):
            logger.exception("Failed to load stats from %s", self.path)
            return data
        if not isinstance(stored, dict):
            logger.warning("Ignoring malformed stats file %s", self.path)
            return data
        for key, default in data.items():
            value = stored.get(key, default)
            if isinstance(value, type(default)):
                data[key] = value
        return data

    def _save(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2))
        except OSError:
            logger.exception("Failed to save stats to %s", self.path)
