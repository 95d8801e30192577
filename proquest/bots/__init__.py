"""
Bots module - Opponent implementations for the mini-games.

Provides:
- OpponentPolicy: Interface for opponent decision-making
- HeuristicOpponent: Win / block / positional grid opponent
- decide: Functional entry point for a single move
- DifficultyProfile: Per-tier opponent parameters
"""

from .policy import OpponentPolicy, MoveDecision, HeuristicOpponent, decide, find_completing_move
from .difficulty import DifficultyProfile, DIFFICULTY_PROFILES, PositionalStrategy, get_profile

__all__ = [
    "OpponentPolicy",
    "MoveDecision",
    "HeuristicOpponent",
    "decide",
    "find_completing_move",
    "DifficultyProfile",
    "DIFFICULTY_PROFILES",
    "PositionalStrategy",
    "get_profile",
]
