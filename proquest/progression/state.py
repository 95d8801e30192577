"""
Progress State - Tasks, achievements and the per-user progress snapshot.

Design principles:
- Explicit: one UserProgress value per user, owned by the engine
- Derived fields (level) are recomputed, never incremented
- Serializable: to_dict()/from_dict() give the snapshot the store saves
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

XP_PER_LEVEL = 100


class Priority(Enum):
    """Task priority, which fixes the task's experience value."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_XP: dict[Priority, int] = {
    Priority.LOW: 10,
    Priority.MEDIUM: 20,
    Priority.HIGH: 30,
}


def level_for_xp(xp: int) -> int:
    """Level is floor(xp / 100) + 1."""
    return max(0, xp) // XP_PER_LEVEL + 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class Task:
    """
    A user-defined task.

    xp is fixed from the priority at creation. completed_at is set
    if and only if completed is true.
    """
    task_id: str
    text: str
    priority: Priority = Priority.MEDIUM
    xp: int = 20
    completed: bool = False
    created_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None

    @classmethod
    def create(cls, task_id: str, text: str, priority: Priority, created_at: datetime) -> Task:
        return cls(
            task_id=task_id,
            text=text,
            priority=priority,
            xp=PRIORITY_XP[priority],
            created_at=created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.task_id,
            "text": self.text,
            "priority": self.priority.value,
            "xp": self.xp,
            "completed": self.completed,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        priority = Priority(data.get("priority", Priority.MEDIUM.value))
        completed = bool(data.get("completed", False))
        created_at = _parse_datetime(data.get("created_at")) or utcnow()
        completed_at = None
        if completed:
            # snapshots without a timestamp fall back to the creation time
            completed_at = _parse_datetime(data.get("completed_at")) or created_at
        return cls(
            task_id=str(data["id"]),
            text=data["text"],
            priority=priority,
            xp=int(data.get("xp", PRIORITY_XP[priority])),
            completed=completed,
            created_at=created_at,
            completed_at=completed_at,
        )


@dataclass
class Achievement:
    """An achievement; only unlocked ever changes."""
    achievement_id: str
    name: str
    description: str
    unlocked: bool = False


ACHIEVEMENT_DEFINITIONS: tuple[tuple[str, str, str], ...] = (
    ("first-task", "Getting Started", "Complete your first task"),
    ("streak-3", "On Fire", "Maintain a 3-day streak"),
    ("tasks-10", "Productive", "Complete 10 tasks in one day"),
    ("level-5", "Level Master", "Reach level 5"),
)


def default_achievements() -> list[Achievement]:
    return [Achievement(aid, name, desc) for aid, name, desc in ACHIEVEMENT_DEFINITIONS]


@dataclass
class PendingChallenge:
    """
    A completion waiting on a game result.

    At most one per user. Never persisted.
    """
    task_id: str
    game_variant: str
    difficulty: str
    attempts: int = 1


@dataclass
class UserProgress:
    """
    Complete progress of one user.

    This is the snapshot the session store loads and saves.
    """
    xp: int = 0
    level: int = 1
    streak: int = 0
    tasks_completed_today: int = 0
    games_won: int = 0
    tasks: list[Task] = field(default_factory=list)
    achievements: list[Achievement] = field(default_factory=default_achievements)

    # game -> difficulty -> {"time": int, "moves": int}
    best_scores: dict[str, dict[str, dict[str, int]]] = field(default_factory=dict)
    last_completion_date: date | None = None

    def get_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.task_id == task_id:
                return task
        return None

    def get_achievement(self, achievement_id: str) -> Achievement | None:
        for achievement in self.achievements:
            if achievement.achievement_id == achievement_id:
                return achievement
        return None

    @property
    def completed_tasks(self) -> list[Task]:
        return [t for t in self.tasks if t.completed]

    @property
    def unlocked_achievements(self) -> list[Achievement]:
        return [a for a in self.achievements if a.unlocked]

    @property
    def xp_into_level(self) -> int:
        """Experience earned inside the current level."""
        return self.xp % XP_PER_LEVEL

    @property
    def xp_to_next_level(self) -> int:
        return self.level * XP_PER_LEVEL

    def recompute_level(self):
        self.level = level_for_xp(self.xp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "xp": self.xp,
            "level": self.level,
            "streak": self.streak,
            "tasks_completed_today": self.tasks_completed_today,
            "games_won": self.games_won,
            "tasks": [t.to_dict() for t in self.tasks],
            "achievements": [
                {"id": a.achievement_id, "unlocked": a.unlocked}
                for a in self.achievements
            ],
            "best_scores": {
                game: {difficulty: dict(score) for difficulty, score in scores.items()}
                for game, scores in self.best_scores.items()
            },
            "last_completion_date": (
                self.last_completion_date.isoformat() if self.last_completion_date else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserProgress:
        """
        Rebuild progress from a snapshot.

        Achievement definitions always come from ACHIEVEMENT_DEFINITIONS;
        the snapshot only contributes unlocked flags. Unknown ids are
        ignored and missing ones load locked.
        """
        unlocked = {
            entry["id"]
            for entry in data.get("achievements", [])
            if entry.get("unlocked")
        }
        achievements = default_achievements()
        for achievement in achievements:
            achievement.unlocked = achievement.achievement_id in unlocked

        last_date = data.get("last_completion_date")
        progress = cls(
            xp=max(0, int(data.get("xp", 0))),
            streak=max(0, int(data.get("streak", 0))),
            tasks_completed_today=max(0, int(data.get("tasks_completed_today", 0))),
            games_won=max(0, int(data.get("games_won", 0))),
            tasks=[Task.from_dict(t) for t in data.get("tasks", [])],
            achievements=achievements,
            best_scores=dict(data.get("best_scores", {})),
            last_completion_date=date.fromisoformat(last_date) if last_date else None,
        )
        progress.recompute_level()
        return progress
