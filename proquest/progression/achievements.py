"""
Achievement Evaluator - Predicates over the current progress.

Evaluation is a latch: an achievement that is already unlocked stays
unlocked even if its predicate no longer holds.
"""

from __future__ import annotations
import logging
from typing import Callable

from .state import UserProgress

logger = logging.getLogger(__name__)

AchievementPredicate = Callable[[UserProgress], bool]

ACHIEVEMENT_RULES: dict[str, AchievementPredicate] = {
    "first-task": lambda p: any(t.completed for t in p.tasks),
    "streak-3": lambda p: p.streak >= 3,
    "tasks-10": lambda p: p.tasks_completed_today >= 10,
    "level-5": lambda p: p.level >= 5,
}


def evaluate_achievements(progress: UserProgress) -> list[str]:
    """
    Unlock every achievement whose predicate now holds.

    Returns the ids unlocked by this call.
    """
    unlocked = []
    for achievement in progress.achievements:
        if achievement.unlocked:
            continue
        rule = ACHIEVEMENT_RULES.get(achievement.achievement_id)
        if rule is not None and rule(progress):
            achievement.unlocked = True
            unlocked.append(achievement.achievement_id)
            logger.info("Achievement unlocked: %s", achievement.name)
    return unlocked
