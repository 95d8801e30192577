"""
Progression - Tasks, experience, levels, streaks and achievements.

The engine is the only writer of a user's progress:
1. Tasks are added with a fixed xp value
2. Completion is gated behind a game challenge
3. Wins commit xp and counters; reversals clamp at zero
4. Level and achievements are recomputed after every change
"""

from .state import (
    Priority,
    PRIORITY_XP,
    Task,
    Achievement,
    ACHIEVEMENT_DEFINITIONS,
    PendingChallenge,
    UserProgress,
    level_for_xp,
)
from .achievements import evaluate_achievements, ACHIEVEMENT_RULES
from .errors import (
    ProgressionError,
    ValidationError,
    NotFoundError,
    NoOpError,
    ChallengeInProgressError,
)
from .engine import ProgressionEngine

__all__ = [
    "Priority",
    "PRIORITY_XP",
    "Task",
    "Achievement",
    "ACHIEVEMENT_DEFINITIONS",
    "PendingChallenge",
    "UserProgress",
    "level_for_xp",
    "evaluate_achievements",
    "ACHIEVEMENT_RULES",
    "ProgressionError",
    "ValidationError",
    "NotFoundError",
    "NoOpError",
    "ChallengeInProgressError",
    "ProgressionEngine",
]
