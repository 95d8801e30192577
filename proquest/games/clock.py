"""
Clock - Scheduling of deferred game transitions.

Games never sleep or start threads. Anything that happens "later"
(opponent answer, countdown tick, pair resolution) is handed to a
Scheduler, which returns a handle that can be cancelled.

Two schedulers are provided:
- ManualScheduler: virtual time, advanced explicitly (tests, CLI, headless)
- AsyncioScheduler: real time on a running asyncio event loop (HTTP app)
"""

from __future__ import annotations
import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Any, Callable


class TimerHandle:
    """
    Handle for a scheduled callback.

    Cancelling is idempotent. A cancelled handle never runs.
    """

    def __init__(self, when: float, callback: Callable[[], Any]):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def _run(self):
        if not self.active:
            return
        self.fired = True
        self.callback()


class LoopTimerHandle(TimerHandle):
    """TimerHandle that also cancels its asyncio loop timer."""

    loop_handle: asyncio.TimerHandle | None = None

    def cancel(self):
        super().cancel()
        if self.loop_handle is not None:
            self.loop_handle.cancel()


class Scheduler(ABC):
    """Interface for deferring a callback by a number of seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        """Schedule callback to run after delay seconds."""
        pass


class ManualScheduler(Scheduler):
    """
    Virtual-time scheduler.

    Nothing runs until advance() or run_pending() is called. Callbacks
    run in due-time order; ties run in scheduling order. Callbacks that
    schedule new work inside the advanced window run in the same call.

    Usage:
        scheduler = ManualScheduler()
        game = HeuristicGridGame(scheduler=scheduler)
        game.play(0)
        scheduler.advance(0.5)  # opponent answers
    """

    def __init__(self):
        self.now = 0.0
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        handle = TimerHandle(self.now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (handle.when, next(self._counter), handle))
        return handle

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run everything that became due.

        Returns the number of callbacks that ran.
        """
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self.now = max(self.now, when)
            if handle.active:
                handle._run()
                ran += 1
        self.now = target
        return ran

    def run_pending(self) -> int:
        """Run every queued callback, advancing time as far as needed."""
        ran = 0
        while self._queue:
            when, _, handle = heapq.heappop(self._queue)
            self.now = max(self.now, when)
            if handle.active:
                handle._run()
                ran += 1
        return ran

    @property
    def pending(self) -> int:
        """Number of live (not cancelled, not fired) handles."""
        return sum(1 for _, _, h in self._queue if h.active)


class AsyncioScheduler(Scheduler):
    """
    Real-time scheduler backed by an asyncio event loop.

    When no loop is given, the running loop is looked up on each call,
    so this must be used from inside a coroutine or loop callback.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        handle = LoopTimerHandle(loop.time() + delay, callback)
        handle.loop_handle = loop.call_later(delay, handle._run)
        return handle
