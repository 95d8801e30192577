"""
Heuristic Grid Game - Three in a row against a rule-based opponent.

The player always moves first. After every legal player move:
- player line  -> WIN
- full board   -> NOT_WIN (tie)
- otherwise the opponent answers after opponent_delay seconds;
  opponent line or full board -> NOT_WIN, else back to the player.

Difficulty only changes the opponent policy, never win detection.
"""

from __future__ import annotations
import logging
import random
from enum import Enum
from typing import TYPE_CHECKING

from .. import config
from .base import Difficulty, GameEngine, Outcome
from .board import Mark, board_to_string, empty_board, is_full, winner
from .clock import Scheduler

if TYPE_CHECKING:
    from ..bots.policy import OpponentPolicy

logger = logging.getLogger(__name__)


class Turn(Enum):
    PLAYER = "player"
    OPPONENT = "opponent"


class HeuristicGridGame(GameEngine):
    """
    3x3 grid game, player versus HeuristicOpponent.

    Set opponent_delay to 0 to have the opponent answer synchronously
    inside play() (headless use).
    """

    variant = "grid"

    def __init__(
        self,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        opponent: OpponentPolicy | None = None,
        opponent_delay: float | None = None,
    ):
        super().__init__(difficulty, scheduler=scheduler, rng=rng)
        if opponent is None:
            from ..bots.policy import HeuristicOpponent
            opponent = HeuristicOpponent(self.difficulty, rng=self.rng)
        self.opponent = opponent
        self.opponent_delay = config.OPPONENT_DELAY if opponent_delay is None else opponent_delay

        self.board: list[Mark] = empty_board()
        self.turn = Turn.PLAYER
        self.winner: Mark | None = None

    @property
    def terminal(self) -> bool:
        return self.finished

    def can_play(self, index: int) -> bool:
        """Check whether a player move at index would be accepted."""
        return (
            self.active
            and self.turn is Turn.PLAYER
            and 0 <= index < len(self.board)
            and self.board[index] is Mark.EMPTY
        )

    def play(self, index: int) -> bool:
        """
        Apply a player move.

        Returns False, leaving the state untouched, when the move is
        illegal (occupied cell, wrong turn, finished or cancelled game).
        """
        if not self.can_play(index):
            return False

        self._record_decision()
        self.board[index] = Mark.PLAYER

        if winner(self.board) is Mark.PLAYER:
            self.winner = Mark.PLAYER
            self._finish(Outcome.WIN)
            return True

        if is_full(self.board):
            self._finish(Outcome.NOT_WIN)
            return True

        self.turn = Turn.OPPONENT
        if self.opponent_delay > 0:
            self._schedule(self.opponent_delay, self._opponent_move)
        else:
            self._opponent_move()
        return True

    def _opponent_move(self):
        if not self.active or self.turn is not Turn.OPPONENT:
            return

        decision = self.opponent.select_move(self.board)
        self.board[decision.cell] = Mark.OPPONENT
        logger.debug("Opponent played %d (%s)", decision.cell, decision.reason)

        if winner(self.board) is Mark.OPPONENT:
            self.winner = Mark.OPPONENT
            self._finish(Outcome.NOT_WIN)
        elif is_full(self.board):
            self._finish(Outcome.NOT_WIN)
        else:
            self.turn = Turn.PLAYER

    def render(self) -> str:
        return board_to_string(self.board)
