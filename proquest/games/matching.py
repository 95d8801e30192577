"""
Timed Matching Game - Find all symbol pairs before the countdown ends.

Rules:
- N pairs (4/6/8 by difficulty) are shuffled face-down into 2N cells
- The countdown (120/90/60 seconds) starts with start()
- Flipping a second cell counts one move and schedules a resolution:
  matching symbols stay matched, others turn face-down again
- While two cells wait for resolution, further flips are ignored
- All cells matched -> WIN, best time/moves recorded if improved
- Countdown reaches zero first -> NOT_WIN, nothing recorded
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import MutableSequence, TypeVar

from .. import config
from .base import Difficulty, GameEngine, Outcome
from .clock import Scheduler
from .ledger import BestScore, BestScoreLedger, InMemoryBestScoreLedger

logger = logging.getLogger(__name__)

T = TypeVar("T")

SYMBOLS: tuple[str, ...] = (
    "target",
    "controller",
    "trophy",
    "star",
    "circus",
    "palette",
    "rocket",
    "gem",
)

PAIR_COUNTS: dict[Difficulty, int] = {
    Difficulty.EASY: 4,
    Difficulty.MEDIUM: 6,
    Difficulty.HARD: 8,
}

TIME_LIMITS: dict[Difficulty, int] = {
    Difficulty.EASY: 120,
    Difficulty.MEDIUM: 90,
    Difficulty.HARD: 60,
}

TICK_SECONDS = 1.0


@dataclass
class MatchCell:
    """One face-down card on the table."""
    cell_id: int
    symbol: str
    face_up: bool = False
    matched: bool = False


def shuffle_cells(items: MutableSequence[T], rng: random.Random) -> MutableSequence[T]:
    """Shuffle items in place with the injected rng. Returns items."""
    rng.shuffle(items)
    return items


class TimedMatchingGame(GameEngine):
    """
    Pair-matching game against the clock.

    Usage:
        game = TimedMatchingGame(Difficulty.EASY, scheduler=scheduler)
        game.on_outcome = handle_outcome
        game.start()
        game.flip(0)
        game.flip(5)
        scheduler.advance(1.0)  # pair resolves
    """

    variant = "matching"

    def __init__(
        self,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        ledger: BestScoreLedger | None = None,
        resolve_delay: float | None = None,
    ):
        super().__init__(difficulty, scheduler=scheduler, rng=rng)
        self.ledger = ledger or InMemoryBestScoreLedger()
        self.resolve_delay = config.RESOLVE_DELAY if resolve_delay is None else resolve_delay

        self.total_time = TIME_LIMITS[self.difficulty]
        self.time_left = self.total_time
        self.moves = 0
        self.face_up: list[int] = []
        self.cells = self._deal()

        self.elapsed: int | None = None
        self.new_best_time = False
        self.new_best_moves = False

    def _deal(self) -> list[MatchCell]:
        symbols = list(SYMBOLS[:PAIR_COUNTS[self.difficulty]]) * 2
        shuffle_cells(symbols, self.rng)
        return [MatchCell(cell_id=i, symbol=s) for i, s in enumerate(symbols)]

    @property
    def total_pairs(self) -> int:
        return len(self.cells) // 2

    @property
    def matched_pairs(self) -> int:
        return sum(1 for cell in self.cells if cell.matched) // 2

    @property
    def awaiting_resolution(self) -> bool:
        return len(self.face_up) == 2

    @property
    def best(self) -> BestScore | None:
        return self.ledger.get_best(self.difficulty)

    def start(self):
        """Start the countdown. Calling it again has no effect."""
        if self._started or not self.active:
            return
        super().start()
        self.time_left = self.total_time
        self._schedule(TICK_SECONDS, self._tick)

    def _tick(self):
        self.time_left = max(0, self.time_left - 1)
        if self.time_left == 0:
            logger.debug("Matching countdown expired after %d moves", self.moves)
            self._finish(Outcome.NOT_WIN)
            return
        self._schedule(TICK_SECONDS, self._tick)

    def can_flip(self, index: int) -> bool:
        if not (self.active and self._started):
            return False
        if self.awaiting_resolution or self.time_left <= 0:
            return False
        if not 0 <= index < len(self.cells):
            return False
        cell = self.cells[index]
        return not (cell.face_up or cell.matched)

    def flip(self, index: int) -> bool:
        """
        Turn a cell face-up.

        Returns False without touching the state when the flip is not
        allowed (pair pending, time over, cell already up or matched).
        """
        if not self.can_flip(index):
            return False

        self._record_decision()
        self.cells[index].face_up = True
        self.face_up.append(index)

        if len(self.face_up) == 2:
            self.moves += 1
            first, second = self.face_up
            if self.resolve_delay > 0:
                self._schedule(self.resolve_delay, lambda: self._resolve(first, second))
            else:
                self._resolve(first, second)
        return True

    def _resolve(self, first: int, second: int):
        a, b = self.cells[first], self.cells[second]
        if a.symbol == b.symbol:
            a.matched = b.matched = True
        a.face_up = b.face_up = False
        self.face_up.clear()

        if all(cell.matched for cell in self.cells):
            self.elapsed = self.total_time - self.time_left
            self._record_best(self.elapsed, self.moves)
            self._finish(Outcome.WIN)

    def _record_best(self, elapsed: int, moves: int):
        """Store time and moves independently, only when strictly lower."""
        prior = self.ledger.get_best(self.difficulty)
        best_time, best_moves = elapsed, moves
        if prior is not None:
            self.new_best_time = elapsed < prior.time
            self.new_best_moves = moves < prior.moves
            best_time = min(elapsed, prior.time)
            best_moves = min(moves, prior.moves)
        else:
            self.new_best_time = self.new_best_moves = True

        if self.new_best_time or self.new_best_moves:
            self.ledger.set_best(self.difficulty, best_time, best_moves)
            logger.info(
                "New matching best on %s: %ss / %s moves",
                self.difficulty.value, best_time, best_moves,
            )
