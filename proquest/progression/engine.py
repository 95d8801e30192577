"""
Progression Engine - Couples the task lifecycle to game outcomes.

LIFECYCLE:
1. add_task() creates an incomplete task with xp fixed by priority
2. request_completion() opens a PendingChallenge and starts a game
3. The game reports its outcome:
   - WIN: on_game_win() commits the completion (xp, counters, streak)
     and keeps the finished challenge as last_challenge / last_game
   - NOT_WIN: nothing changes; the challenge stays open for a retry
4. on_game_abandon() drops the challenge without side effects
5. uncomplete() / delete_task() reverse a completion, clamped at zero

Every committed mutation ends with the same step: recompute level,
evaluate achievements, hand the snapshot to on_change (persistence).
"""

from __future__ import annotations
import logging
import random
import uuid
from datetime import date, datetime, timedelta
from functools import partial
from typing import Any, Callable

from ..games.base import Difficulty, GameEngine, Outcome
from ..games.clock import ManualScheduler, Scheduler
from ..games.ledger import ProgressBestScoreLedger
from ..games.registry import GameRegistry
from .achievements import evaluate_achievements
from .errors import ChallengeInProgressError, NoOpError, NotFoundError, ValidationError
from .state import PendingChallenge, Priority, Task, UserProgress, utcnow

logger = logging.getLogger(__name__)


class ProgressionEngine:
    """
    Owns one user's progress for the duration of a session.

    Usage:
        engine = ProgressionEngine(progress, on_change=store_snapshot)
        task = engine.add_task("Write report", "high")
        game = engine.request_completion(task.task_id)
        game.play(4)  # WIN commits the completion
    """

    def __init__(
        self,
        progress: UserProgress,
        registry: GameRegistry | None = None,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        now: Callable[[], datetime] | None = None,
        on_change: Callable[[UserProgress], Any] | None = None,
        variant: str = "grid",
        difficulty: Difficulty | str = Difficulty.MEDIUM,
    ):
        self.progress = progress
        self.registry = registry or GameRegistry.with_defaults()
        self.scheduler = scheduler or ManualScheduler()
        self.rng = rng or random.Random()
        self.on_change = on_change
        self._now = now or utcnow

        self.variant = variant
        self.difficulty = Difficulty.parse(difficulty)

        self.pending: PendingChallenge | None = None
        self.game: GameEngine | None = None
        self.last_outcome: Outcome | None = None
        self.last_unlocked: list[str] = []

        # Most recently won challenge, kept after the commit clears pending
        self.last_challenge: PendingChallenge | None = None
        self.last_game: GameEngine | None = None
        self.last_challenge_unlocked: list[str] = []

    # =========================================================================
    # Game selection
    # =========================================================================

    def select_variant(self, name: str, difficulty: Difficulty | str | None = None):
        """Choose the game used for the next challenge."""
        if name not in self.registry:
            raise NotFoundError("game", name)
        if difficulty is not None:
            self.difficulty = self._parse_difficulty(difficulty)
        self.variant = name

    # =========================================================================
    # Tasks
    # =========================================================================

    def add_task(self, text: str, priority: Priority | str = Priority.MEDIUM) -> Task:
        """
        Append a new incomplete task.

        Raises ValidationError for blank text or an unknown priority.
        """
        if not text or not text.strip():
            raise ValidationError("Task text must not be empty")
        try:
            priority = priority if isinstance(priority, Priority) else Priority(str(priority).lower())
        except ValueError:
            raise ValidationError(f"Unknown priority: {priority}") from None

        task = Task.create(
            task_id=self._new_task_id(),
            text=text.strip(),
            priority=priority,
            created_at=self._now(),
        )
        self.progress.tasks.append(task)
        logger.debug("Task added: %s (%s, %d xp)", task.task_id, priority.value, task.xp)
        self._commit()
        return task

    def uncomplete(self, task_id: str) -> Task:
        """Reverse a completion. Raises NoOpError if the task is not completed."""
        task = self._require_task(task_id)
        if not task.completed:
            raise NoOpError(f"Task {task_id} is not completed")

        self._reverse_completion(task)
        task.completed = False
        task.completed_at = None
        if self.last_challenge and self.last_challenge.task_id == task_id:
            self._forget_last_challenge()
        self._commit()
        return task

    def delete_task(self, task_id: str) -> Task:
        """Remove a task, reversing its completion first if needed."""
        task = self._require_task(task_id)
        if task.completed:
            self._reverse_completion(task)

        if self.pending and self.pending.task_id == task_id:
            self._close_challenge()
        if self.last_challenge and self.last_challenge.task_id == task_id:
            self._forget_last_challenge()

        self.progress.tasks.remove(task)
        logger.debug("Task deleted: %s", task_id)
        self._commit()
        return task

    def toggle_task(self, task_id: str) -> GameEngine | None:
        """
        Checkbox behaviour: uncomplete a completed task, otherwise
        start a challenge for it.
        """
        task = self._require_task(task_id)
        if task.completed:
            self.uncomplete(task_id)
            return None
        return self.request_completion(task_id)

    # =========================================================================
    # Challenges
    # =========================================================================

    def request_completion(
        self,
        task_id: str,
        variant: str | None = None,
        difficulty: Difficulty | str | None = None,
    ) -> GameEngine:
        """
        Open a challenge for an incomplete task and start its game.

        Raises:
            NotFoundError: unknown task or game variant
            NoOpError: task already completed
            ChallengeInProgressError: another challenge is pending
        """
        task = self._require_task(task_id)
        if task.completed:
            raise NoOpError(f"Task {task_id} is already completed")
        if self.pending is not None:
            raise ChallengeInProgressError(self.pending.task_id)

        variant = variant or self.variant
        if variant not in self.registry:
            raise NotFoundError("game", variant)
        difficulty = self._parse_difficulty(difficulty) if difficulty else self.difficulty

        self.pending = PendingChallenge(
            task_id=task_id,
            game_variant=variant,
            difficulty=difficulty.value,
        )
        self.last_outcome = None
        self._forget_last_challenge()
        logger.info("Challenge opened for task %s: %s (%s)", task_id, variant, difficulty.value)
        return self._spawn_game()

    def retry_challenge(self) -> GameEngine:
        """Start a fresh game for the pending challenge after a NOT_WIN."""
        if self.pending is None:
            raise NoOpError("No challenge is pending")
        if self.game is not None and self.game.active:
            raise ChallengeInProgressError(self.pending.task_id)

        self.pending.attempts += 1
        self.last_outcome = None
        return self._spawn_game()

    def on_game_win(self, task_id: str) -> bool:
        """
        Commit a won challenge.

        Idempotent: if the task is gone or already completed nothing
        happens and False is returned.
        """
        task = self.progress.get_task(task_id)
        if task is None or task.completed:
            logger.debug("Ignoring win for task %s (missing or already completed)", task_id)
            return False

        now = self._now()
        task.completed = True
        task.completed_at = max(now, task.created_at)

        self.progress.xp += task.xp
        self.progress.tasks_completed_today += 1
        self.progress.games_won += 1
        self._update_streak(now.date())

        won_here = self.pending is not None and self.pending.task_id == task_id
        if won_here:
            self.last_challenge = self.pending
            self.last_game = self.game
            self._close_challenge()

        logger.info("Task %s completed (+%d xp)", task_id, task.xp)
        self._commit()
        if won_here:
            self.last_challenge_unlocked = list(self.last_unlocked)
        return True

    def on_game_abandon(self) -> bool:
        """Drop the pending challenge. Returns False if there was none."""
        if self.pending is None:
            return False
        logger.info("Challenge for task %s abandoned", self.pending.task_id)
        self._close_challenge()
        return True

    def _spawn_game(self) -> GameEngine:
        challenge = self.pending
        game = self.registry.create(
            challenge.game_variant,
            challenge.difficulty,
            scheduler=self.scheduler,
            rng=self.rng,
            ledger=ProgressBestScoreLedger(self.progress, challenge.game_variant),
        )
        game.on_outcome = partial(self._handle_outcome, game, challenge.task_id)
        self.game = game
        game.start()
        return game

    def _handle_outcome(self, game: GameEngine, task_id: str, outcome: Outcome):
        if game is not self.game:
            return
        self.last_outcome = outcome
        if outcome is Outcome.WIN:
            self.on_game_win(task_id)
        else:
            logger.info("Challenge for task %s not won; task left open", task_id)

    def _close_challenge(self):
        if self.game is not None and self.game.active:
            self.game.cancel()
        self.game = None
        self.pending = None

    def _forget_last_challenge(self):
        self.last_challenge = None
        self.last_game = None
        self.last_challenge_unlocked = []

    # =========================================================================
    # Days and streaks
    # =========================================================================

    def start_day(self, today: date | None = None) -> bool:
        """
        Roll daily counters over at session start.

        tasks_completed_today resets unless the last completion was
        today; the streak resets unless it was today or yesterday.
        """
        today = today or self._now().date()
        last = self.progress.last_completion_date
        changed = False

        if last != today and self.progress.tasks_completed_today:
            self.progress.tasks_completed_today = 0
            changed = True
        if (last is None or today - last > timedelta(days=1)) and self.progress.streak:
            self.progress.streak = 0
            changed = True

        if changed:
            self._commit()
        return changed

    def _update_streak(self, today: date):
        last = self.progress.last_completion_date
        if last == today:
            return
        if last is not None and today - last == timedelta(days=1):
            self.progress.streak += 1
        else:
            self.progress.streak = 1
        self.progress.last_completion_date = today

    # =========================================================================
    # Queries
    # =========================================================================

    def stats(self) -> dict[str, Any]:
        total = len(self.progress.tasks)
        completed = len(self.progress.completed_tasks)
        return {
            "total_tasks": total,
            "completed_tasks": completed,
            "completion_rate": completed / total if total else 0.0,
            "achievements_unlocked": len(self.progress.unlocked_achievements),
            "achievements_total": len(self.progress.achievements),
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_task(self, task_id: str) -> Task:
        task = self.progress.get_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def _reverse_completion(self, task: Task):
        self.progress.xp = max(0, self.progress.xp - task.xp)
        self.progress.tasks_completed_today = max(0, self.progress.tasks_completed_today - 1)
        logger.info("Completion of task %s reversed (-%d xp)", task.task_id, task.xp)

    def _new_task_id(self) -> str:
        while True:
            task_id = uuid.uuid4().hex[:12]
            if self.progress.get_task(task_id) is None:
                return task_id

    def _parse_difficulty(self, difficulty: Difficulty | str) -> Difficulty:
        try:
            return Difficulty.parse(difficulty)
        except ValueError as e:
            raise ValidationError(str(e)) from None

    def _commit(self):
        """Recompute derived fields, evaluate achievements, persist."""
        self.progress.recompute_level()
        self.last_unlocked = evaluate_achievements(self.progress)
        if self.on_change is not None:
            self.on_change(self.progress)
