"""
Games module - Mini-games that gate task completion.

Built-in variants:
- grid: HeuristicGridGame (three in a row against a heuristic opponent)
- matching: TimedMatchingGame (pair matching against a countdown)
"""

from .base import GameEngine, Outcome, Difficulty
from .board import Mark
from .clock import Scheduler, TimerHandle, ManualScheduler, AsyncioScheduler
from .grid import HeuristicGridGame
from .matching import TimedMatchingGame, MatchCell
from .ledger import BestScore, BestScoreLedger, InMemoryBestScoreLedger, ProgressBestScoreLedger
from .registry import GameRegistry, GameVariant, UnknownVariantError

__all__ = [
    "GameEngine",
    "Outcome",
    "Difficulty",
    "Mark",
    "Scheduler",
    "TimerHandle",
    "ManualScheduler",
    "AsyncioScheduler",
    "HeuristicGridGame",
    "TimedMatchingGame",
    "MatchCell",
    "BestScore",
    "BestScoreLedger",
    "InMemoryBestScoreLedger",
    "ProgressBestScoreLedger",
    "GameRegistry",
    "GameVariant",
    "UnknownVariantError",
]
