"""
Opponent Policy - Move selection for the grid opponent.

Given a board and a difficulty tier, the policy returns the cell the
opponent plays. Priority, first match wins:
1. Complete a line for the opponent
2. Block a line the player would complete next turn (not on easy)
3. Positional preference from the difficulty profile

Win and block candidates are scanned in ascending cell order, so the
hard tier is fully deterministic. Randomness on easy/medium comes from
an injected random.Random so games can be replayed with a seed.
"""

from __future__ import annotations
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..games.base import Difficulty
from ..games.board import Board, Mark, available_cells, winner
from .difficulty import (
    PREFERENCE_ORDER,
    STRATEGIC_CELLS,
    PositionalStrategy,
    get_profile,
)


@dataclass
class MoveDecision:
    """
    A move chosen by an opponent policy.

    The reason is kept for logs and debugging only.
    """
    cell: int
    reason: str = ""
    candidates: int = 0


class OpponentPolicy(ABC):
    """
    Abstract base class for grid opponents.

    Called only on the opponent's turn with at least one empty cell.
    """

    @abstractmethod
    def select_move(self, board: Board) -> MoveDecision:
        """
        Select the opponent's next move.

        Args:
            board: Current nine cells

        Returns:
            MoveDecision with the chosen cell
        """
        pass

    def get_name(self) -> str:
        """Get the policy's name/identifier."""
        return self.__class__.__name__


def find_completing_move(board: Board, mark: Mark) -> int | None:
    """Return the lowest empty cell that completes a line for mark."""
    for cell in available_cells(board):
        trial = list(board)
        trial[cell] = mark
        if winner(trial) is mark:
            return cell
    return None


class HeuristicOpponent(OpponentPolicy):
    """
    Rule-based opponent parameterized by a difficulty profile.

    Usage:
        opponent = HeuristicOpponent(Difficulty.HARD)
        decision = opponent.select_move(board)
    """

    def __init__(
        self,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        rng: random.Random | None = None,
    ):
        self.difficulty = Difficulty.parse(difficulty)
        self.profile = get_profile(self.difficulty)
        self.rng = rng or random.Random()

    def select_move(self, board: Board) -> MoveDecision:
        available = available_cells(board)
        if not available:
            raise ValueError("No empty cells available")

        win = find_completing_move(board, Mark.OPPONENT)
        if win is not None:
            return MoveDecision(cell=win, reason="win", candidates=len(available))

        if self.profile.blocks_threats:
            block = find_completing_move(board, Mark.PLAYER)
            if block is not None:
                return MoveDecision(cell=block, reason="block", candidates=len(available))

        return self._positional_move(available)

    def _positional_move(self, available: list[int]) -> MoveDecision:
        strategy = self.profile.strategy

        if strategy is PositionalStrategy.ORDERED:
            cell = next(c for c in PREFERENCE_ORDER if c in available)
            return MoveDecision(cell=cell, reason="preferred", candidates=len(available))

        if strategy is PositionalStrategy.WEIGHTED:
            strategic = [c for c in available if c in STRATEGIC_CELLS]
            if strategic and self.rng.random() < self.profile.strategic_probability:
                return MoveDecision(
                    cell=self.rng.choice(strategic),
                    reason="strategic",
                    candidates=len(strategic),
                )

        return MoveDecision(
            cell=self.rng.choice(available),
            reason="random",
            candidates=len(available),
        )


def decide(
    board: Board,
    difficulty: Difficulty | str,
    rng: random.Random | None = None,
) -> int:
    """
    Return the opponent's next cell for the given board.

    Pure apart from the random source; pass a seeded random.Random
    for reproducible easy/medium play.
    """
    return HeuristicOpponent(difficulty, rng=rng).select_move(board).cell
