"""
Grid board primitives shared by the grid game and its opponent policy.

Cells are indexed row-major:

    0 | 1 | 2
    3 | 4 | 5
    6 | 7 | 8
"""

from __future__ import annotations
from enum import Enum
from typing import Sequence


class Mark(Enum):
    """Content of a grid cell."""
    EMPTY = "empty"
    PLAYER = "player"
    OPPONENT = "opponent"


BOARD_SIZE = 9
CENTER = 4
CORNERS = (0, 2, 6, 8)
EDGES = (1, 3, 5, 7)

LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

Board = Sequence[Mark]


def empty_board() -> list[Mark]:
    return [Mark.EMPTY] * BOARD_SIZE


def winner(board: Board) -> Mark | None:
    """Return the mark occupying a full line, or None."""
    for a, b, c in LINES:
        if board[a] is not Mark.EMPTY and board[a] is board[b] is board[c]:
            return board[a]
    return None


def available_cells(board: Board) -> list[int]:
    """Indices of empty cells, ascending."""
    return [i for i, mark in enumerate(board) if mark is Mark.EMPTY]


def is_full(board: Board) -> bool:
    return all(mark is not Mark.EMPTY for mark in board)


def board_from_string(layout: str) -> list[Mark]:
    """
    Build a board from a 9-character layout.

    ``X`` is the player, ``O`` the opponent, anything else is empty.
    Whitespace and ``|`` separators are ignored.
    """
    cells = [ch for ch in layout if ch not in " |\n"]
    if len(cells) != BOARD_SIZE:
        raise ValueError(f"Board layout needs {BOARD_SIZE} cells, got {len(cells)}")
    symbols = {"X": Mark.PLAYER, "O": Mark.OPPONENT}
    return [symbols.get(ch.upper(), Mark.EMPTY) for ch in cells]


def board_to_string(board: Board) -> str:
    symbols = {Mark.PLAYER: "X", Mark.OPPONENT: "O", Mark.EMPTY: "."}
    rows = ["".join(symbols[m] for m in board[r:r + 3]) for r in (0, 3, 6)]
    return "\n".join(rows)
