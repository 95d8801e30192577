"""
Tests for game plumbing: the registry, the scheduler and best-score ledgers.
"""

import asyncio

import pytest

from ..games import (
    AsyncioScheduler,
    BestScore,
    Difficulty,
    GameRegistry,
    GameVariant,
    HeuristicGridGame,
    InMemoryBestScoreLedger,
    ManualScheduler,
    ProgressBestScoreLedger,
    TimedMatchingGame,
    UnknownVariantError,
)
from ..progression.state import UserProgress


class TestRegistry:
    """Tests for GameRegistry."""

    def test_defaults(self):
        registry = GameRegistry.with_defaults()
        assert "grid" in registry
        assert "matching" in registry
        assert registry.get_variant("grid").title == "Tic Tac Toe"

    def test_unknown_variant(self):
        with pytest.raises(UnknownVariantError):
            GameRegistry.with_defaults().get_variant("chess")

    def test_create_fresh_instances(self):
        registry = GameRegistry.with_defaults()
        a = registry.create("grid", "easy")
        b = registry.create("grid", "easy")
        assert isinstance(a, HeuristicGridGame)
        assert a is not b
        assert a.difficulty is Difficulty.EASY

    def test_ledger_only_for_games_that_use_it(self):
        registry = GameRegistry.with_defaults()
        ledger = InMemoryBestScoreLedger()

        matching = registry.create("matching", "easy", ledger=ledger)
        assert isinstance(matching, TimedMatchingGame)
        assert matching.ledger is ledger

        # grid does not take a ledger argument
        registry.create("grid", "easy", ledger=ledger)

    def test_custom_variant_difficulties(self):
        registry = GameRegistry()
        registry.register_variant(GameVariant(
            name="sprint",
            title="Sprint",
            factory=HeuristicGridGame,
            difficulties=(Difficulty.EASY,),
        ))

        assert [v.name for v in registry.list_variants()] == ["sprint"]
        registry.create("sprint", "easy")
        with pytest.raises(ValueError):
            registry.create("sprint", "hard")


class TestManualScheduler:
    """Tests for virtual time."""

    def test_runs_in_due_order(self):
        scheduler = ManualScheduler()
        ran = []
        scheduler.call_later(2, lambda: ran.append("b"))
        scheduler.call_later(1, lambda: ran.append("a"))
        scheduler.call_later(2, lambda: ran.append("c"))

        assert scheduler.advance(1) == 1
        assert scheduler.advance(1) == 2
        assert ran == ["a", "b", "c"]
        assert scheduler.now == 2

    def test_cancelled_handle_never_runs(self):
        scheduler = ManualScheduler()
        ran = []
        handle = scheduler.call_later(1, lambda: ran.append(1))
        handle.cancel()

        assert scheduler.pending == 0
        assert scheduler.advance(5) == 0
        assert ran == []

    def test_nested_scheduling_within_window(self):
        scheduler = ManualScheduler()
        ran = []
        scheduler.call_later(1, lambda: scheduler.call_later(1, lambda: ran.append("inner")))

        scheduler.advance(2)
        assert ran == ["inner"]

    def test_run_pending(self):
        scheduler = ManualScheduler()
        scheduler.call_later(30, lambda: None)
        assert scheduler.run_pending() == 1
        assert scheduler.now == 30


class TestAsyncioScheduler:
    """Tests for real-time scheduling on an event loop."""

    @pytest.fixture
    def loop(self):
        loop = asyncio.new_event_loop()
        try:
            yield loop
        finally:
            loop.close()

    def test_callback_runs_on_loop(self, loop):
        scheduler = AsyncioScheduler(loop)
        ran = []
        handle = scheduler.call_later(0.01, lambda: ran.append(1))

        loop.run_until_complete(asyncio.sleep(0.05))
        assert ran == [1]
        assert handle.fired
        assert not handle.active

    def test_cancel_stops_loop_timer(self, loop):
        scheduler = AsyncioScheduler(loop)
        ran = []
        handle = scheduler.call_later(0.01, lambda: ran.append(1))
        handle.cancel()

        assert handle.cancelled
        assert handle.loop_handle.cancelled()
        loop.run_until_complete(asyncio.sleep(0.05))
        assert ran == []


class TestLedgers:
    """Tests for best-score storage."""

    def test_in_memory(self):
        ledger = InMemoryBestScoreLedger()
        assert ledger.get_best("easy") is None
        ledger.set_best(Difficulty.EASY, 30, 8)
        assert ledger.get_best("easy") == BestScore(time=30, moves=8)

    def test_stored_in_progress(self):
        progress = UserProgress()
        ledger = ProgressBestScoreLedger(progress, "matching")
        ledger.set_best("hard", 55, 20)

        assert progress.best_scores == {"matching": {"hard": {"time": 55, "moves": 20}}}
        assert ledger.get_best(Difficulty.HARD) == BestScore(55, 20)
        assert ledger.get_best(Difficulty.EASY) is None
