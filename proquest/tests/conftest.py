"""
Pytest fixtures for ProQuest tests.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from ..games.clock import ManualScheduler
from ..progression.engine import ProgressionEngine
from ..progression.state import UserProgress


class FakeClock:
    """Settable replacement for utcnow()."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


# Player moves that beat the hard opponent: it answers 4, 2, then blocks 3.
HARD_GRID_WIN = (0, 8, 6, 7)

# Player moves that lose to the hard opponent on its fourth move.
HARD_GRID_LOSS = (1, 2, 8, 6)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def progress() -> UserProgress:
    return UserProgress()


@pytest.fixture
def snapshots() -> list:
    """Snapshots handed to on_change, as dicts."""
    return []


@pytest.fixture
def engine(progress, scheduler, rng, clock, snapshots) -> ProgressionEngine:
    """Engine on virtual time with a seeded random source."""
    return ProgressionEngine(
        progress,
        scheduler=scheduler,
        rng=rng,
        now=clock,
        on_change=lambda p: snapshots.append(p.to_dict()),
    )


def play_grid(game, moves, scheduler):
    """Play moves in order, letting the opponent answer after each one."""
    for cell in moves:
        if not game.active:
            break
        assert game.play(cell), f"move {cell} rejected"
        scheduler.run_pending()
    return game


def win_task(engine, task_id):
    """Complete a task by beating the hard grid opponent."""
    game = engine.request_completion(task_id, variant="grid", difficulty="hard")
    return play_grid(game, HARD_GRID_WIN, engine.scheduler)


def pair_positions(game) -> dict:
    """symbol -> [cell ids] of a matching game."""
    positions = {}
    for cell in game.cells:
        positions.setdefault(cell.symbol, []).append(cell.cell_id)
    return positions


def solve_matching(game, scheduler, mismatches=0):
    """
    Match every pair, after flipping `mismatches` wrong pairs first.

    Each pair resolves after the game's resolve delay.
    """
    pairs = list(pair_positions(game).values())
    for i in range(mismatches):
        first = pairs[i % len(pairs)][0]
        second = pairs[(i + 1) % len(pairs)][0]
        assert game.flip(first) and game.flip(second)
        scheduler.advance(game.resolve_delay)
    for first, second in pairs:
        assert game.flip(first) and game.flip(second)
        scheduler.advance(game.resolve_delay)
    return game
