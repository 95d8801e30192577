"""
Best-score ledger - Lowest time and move count per difficulty tier.

The matching game reads and writes its records through this interface.
Whether a result is an improvement is decided by the game; the ledger
only stores.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .base import Difficulty

if TYPE_CHECKING:
    from ..progression.state import UserProgress


@dataclass(frozen=True)
class BestScore:
    """Best elapsed seconds and move count for one difficulty tier."""
    time: int
    moves: int

    def to_dict(self) -> dict[str, int]:
        return {"time": self.time, "moves": self.moves}

    @classmethod
    def from_dict(cls, data: dict) -> BestScore:
        return cls(time=int(data["time"]), moves=int(data["moves"]))


class BestScoreLedger(ABC):
    """Storage for best scores, keyed by difficulty."""

    @abstractmethod
    def get_best(self, difficulty: Difficulty) -> BestScore | None:
        pass

    @abstractmethod
    def set_best(self, difficulty: Difficulty, time: int, moves: int):
        pass


class InMemoryBestScoreLedger(BestScoreLedger):
    """Process-local ledger, lost when the process exits."""

    def __init__(self, initial: dict[Difficulty, BestScore] | None = None):
        self._scores: dict[Difficulty, BestScore] = dict(initial or {})

    def get_best(self, difficulty: Difficulty) -> BestScore | None:
        return self._scores.get(Difficulty.parse(difficulty))

    def set_best(self, difficulty: Difficulty, time: int, moves: int):
        self._scores[Difficulty.parse(difficulty)] = BestScore(time=time, moves=moves)


class ProgressBestScoreLedger(BestScoreLedger):
    """
    Ledger stored inside a UserProgress snapshot.

    Records live under progress.best_scores[game][difficulty] so they are
    persisted per user together with the rest of the progress.
    """

    def __init__(self, progress: UserProgress, game: str = "matching"):
        self.progress = progress
        self.game = game

    def get_best(self, difficulty: Difficulty) -> BestScore | None:
        record = self.progress.best_scores.get(self.game, {}).get(Difficulty.parse(difficulty).value)
        return BestScore.from_dict(record) if record else None

    def set_best(self, difficulty: Difficulty, time: int, moves: int):
        scores = self.progress.best_scores.setdefault(self.game, {})
        scores[Difficulty.parse(difficulty).value] = BestScore(time=time, moves=moves).to_dict()
