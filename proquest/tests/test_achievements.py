"""
Tests for achievement evaluation.

Achievements latch: once unlocked they stay unlocked, even when the
progress that earned them is reversed.
"""

from ..progression import ACHIEVEMENT_DEFINITIONS, UserProgress, evaluate_achievements
from .conftest import win_task


def unlocked_ids(progress):
    return {a.achievement_id for a in progress.unlocked_achievements}


class TestDefinitions:
    """Tests for the fixed achievement set."""

    def test_all_locked_at_start(self):
        progress = UserProgress()
        assert [a.achievement_id for a in progress.achievements] == [
            "first-task", "streak-3", "tasks-10", "level-5",
        ]
        assert not progress.unlocked_achievements

    def test_names(self):
        names = {aid: name for aid, name, _ in ACHIEVEMENT_DEFINITIONS}
        assert names["first-task"] == "Getting Started"
        assert names["level-5"] == "Level Master"


class TestEvaluation:
    """Tests for unlocking."""

    def test_first_task(self, engine, progress):
        win_task(engine, engine.add_task("Read").task_id)

        assert unlocked_ids(progress) == {"first-task"}
        assert engine.last_unlocked == ["first-task"]

    def test_reported_only_once(self, engine):
        win_task(engine, engine.add_task("Read").task_id)
        win_task(engine, engine.add_task("Write").task_id)
        assert engine.last_unlocked == []

    def test_latch_survives_uncomplete(self, engine, progress):
        task = engine.add_task("Read")
        win_task(engine, task.task_id)
        engine.uncomplete(task.task_id)

        assert not progress.completed_tasks
        assert "first-task" in unlocked_ids(progress)

    def test_latch_survives_delete(self, engine, progress):
        task = engine.add_task("Read")
        win_task(engine, task.task_id)
        engine.delete_task(task.task_id)
        assert "first-task" in unlocked_ids(progress)

    def test_streak_three(self, engine, progress, clock):
        for day in range(3):
            win_task(engine, engine.add_task(f"Day {day}").task_id)
            clock.advance(days=1)
        assert "streak-3" in unlocked_ids(progress)

    def test_ten_in_one_day(self, engine, progress):
        for i in range(9):
            win_task(engine, engine.add_task(f"Task {i}", "low").task_id)
        assert "tasks-10" not in unlocked_ids(progress)

        win_task(engine, engine.add_task("Task 9", "low").task_id)
        assert "tasks-10" in unlocked_ids(progress)

    def test_level_five_in_same_commit(self, engine, progress):
        """Level is recomputed before achievements are checked."""
        progress.xp = 390
        win_task(engine, engine.add_task("Big one", "high").task_id)

        assert progress.level == 5
        assert "level-5" in engine.last_unlocked

    def test_evaluate_returns_new_ids(self):
        progress = UserProgress(xp=500, level=6)
        assert evaluate_achievements(progress) == ["level-5"]
        assert evaluate_achievements(progress) == []
