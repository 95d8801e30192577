"""
Difficulty Profiles - How strong the grid opponent plays per tier.

Profiles adjust:
- Whether the opponent blocks the player's immediate wins
- How the opponent picks a cell when nothing is urgent
- How often the medium tier plays a strategic cell
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from ..games.base import Difficulty
from ..games.board import CENTER, CORNERS, EDGES


class PositionalStrategy(Enum):
    """How a free cell is chosen when there is no win or block."""
    ORDERED = "ordered"  # first available in preference order
    WEIGHTED = "weighted"  # strategic cells with some probability
    UNIFORM = "uniform"  # any available cell


PREFERENCE_ORDER: tuple[int, ...] = (CENTER, *CORNERS, *EDGES)
STRATEGIC_CELLS: frozenset[int] = frozenset((CENTER, *CORNERS))


@dataclass(frozen=True)
class DifficultyProfile:
    """
    Opponent parameters for one difficulty tier.

    Only the opponent is affected; win detection is the same for
    every tier.
    """
    name: str
    description: str = ""
    blocks_threats: bool = True
    strategy: PositionalStrategy = PositionalStrategy.UNIFORM
    strategic_probability: float = 0.0


EASY = DifficultyProfile(
    name="Easy",
    description="Takes a win when it sees one, otherwise plays anywhere",
    blocks_threats=False,
    strategy=PositionalStrategy.UNIFORM,
)


MEDIUM = DifficultyProfile(
    name="Medium",
    description="Blocks threats and usually prefers the center and corners",
    blocks_threats=True,
    strategy=PositionalStrategy.WEIGHTED,
    strategic_probability=0.7,
)


HARD = DifficultyProfile(
    name="Hard",
    description="Blocks threats and always plays center, then corners, then edges",
    blocks_threats=True,
    strategy=PositionalStrategy.ORDERED,
)


DIFFICULTY_PROFILES: dict[Difficulty, DifficultyProfile] = {
    Difficulty.EASY: EASY,
    Difficulty.MEDIUM: MEDIUM,
    Difficulty.HARD: HARD,
}


def get_profile(difficulty: Difficulty | str) -> DifficultyProfile:
    return DIFFICULTY_PROFILES[Difficulty.parse(difficulty)]
