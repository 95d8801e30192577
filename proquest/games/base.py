"""
Game Engine contract - What every mini-game must provide.

A game instance:
- Is constructed fresh for every challenge attempt
- Reports exactly one terminal outcome through on_outcome (at most once)
- Can be cancelled, after which no callback ever fires
- Never reports a WIN before the player made a decision

All deferred transitions go through the injected Scheduler so that
cancel() can tear them down.
"""

from __future__ import annotations
import logging
import random
from abc import ABC
from enum import Enum
from typing import Callable

from .clock import ManualScheduler, Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Terminal outcome of a game instance."""
    WIN = "win"
    NOT_WIN = "not_win"  # loss, tie or timeout


class Difficulty(Enum):
    """Per-instance difficulty tier."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: Difficulty | str) -> Difficulty:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown difficulty: {value}") from None


class GameEngine(ABC):
    """
    Abstract base class for mini-games.

    Subclasses drive their own state machine and call _finish() once
    they reach a terminal state. Deferred work must be scheduled with
    _schedule() so it is tracked for cancellation.
    """

    variant: str = "game"

    def __init__(
        self,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
    ):
        self.difficulty = Difficulty.parse(difficulty)
        self.scheduler = scheduler or ManualScheduler()
        self.rng = rng or random.Random()
        self.on_outcome: Callable[[Outcome], None] | None = None

        self._outcome: Outcome | None = None
        self._cancelled = False
        self._started = False
        self._player_decisions = 0
        self._handles: list[TimerHandle] = []

    @property
    def outcome(self) -> Outcome | None:
        return self._outcome

    @property
    def finished(self) -> bool:
        return self._outcome is not None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while the game still accepts input."""
        return not (self.finished or self._cancelled)

    def start(self):
        """Begin the game. Turn-based games have nothing to start."""
        self._started = True

    def cancel(self):
        """
        Tear down the instance.

        Every pending deferred transition is cancelled and on_outcome
        will never fire, even if a timer callback races this call.
        """
        if self._cancelled:
            return
        self._cancelled = True
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        logger.debug("%s game cancelled", self.variant)

    def _schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule a deferred transition guarded against cancellation."""

        def guarded():
            if self._cancelled or self.finished:
                return
            callback()

        handle = self.scheduler.call_later(delay, guarded)
        self._handles = [h for h in self._handles if h.active]
        self._handles.append(handle)
        return handle

    def _record_decision(self):
        self._player_decisions += 1

    def _finish(self, outcome: Outcome):
        """Enter the terminal state and report the outcome (once)."""
        if self._cancelled or self.finished:
            return
        if outcome is Outcome.WIN and self._player_decisions == 0:
            raise RuntimeError("A game cannot be won before the player made a move")

        self._outcome = outcome
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

        logger.info("%s game (%s) finished: %s", self.variant, self.difficulty.value, outcome.value)
        if self.on_outcome is not None:
            self.on_outcome(outcome)
