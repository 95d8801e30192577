"""
Session Manager - Logs users in and out of their progress.

LIFECYCLE:
1. register() creates and saves an empty progress snapshot
2. login() loads the snapshot and wraps it in a ProgressionEngine
3. During the session every committed mutation is saved
   (fire-and-forget: a StoreError is logged, never rolled back)
4. logout() cancels any live game and drops the in-memory state;
   persisted data is left untouched

Achievement latches are scoped to the session: what survives a logout
is exactly what the last saved snapshot contains.
"""

from __future__ import annotations
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from ..games.clock import Scheduler
from ..games.registry import GameRegistry
from ..progression.engine import ProgressionEngine
from ..progression.state import UserProgress
from .store import SessionStore, SnapshotNotFound, StoreError, InMemorySessionStore

logger = logging.getLogger(__name__)


@dataclass
class UserSession:
    """
    A logged-in user.

    Holds the engine that owns the user's progress. Destroyed at logout.
    """
    user_key: str
    engine: ProgressionEngine
    created_at: float
    last_saved_at: float | None = None
    save_failures: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def progress(self) -> UserProgress:
        return self.engine.progress


class SessionManager:
    """
    Tracks logged-in users and persists their progress.

    Usage:
        manager = SessionManager(store=JsonFileSessionStore())
        session = manager.login("ada@example.com", create=True)
        session.engine.add_task("Water plants", "low")
        manager.logout("ada@example.com")
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        registry: GameRegistry | None = None,
        scheduler_factory: Callable[[], Scheduler] | None = None,
        rng_factory: Callable[[], random.Random] | None = None,
    ):
        self.store = store or InMemorySessionStore()
        self.registry = registry or GameRegistry.with_defaults()
        self.scheduler_factory = scheduler_factory
        self.rng_factory = rng_factory or random.Random
        self._sessions: dict[str, UserSession] = {}

    def register(self, user_key: str) -> UserProgress:
        """Create and save an empty snapshot for a new user."""
        progress = UserProgress()
        self.store.save(user_key, progress)
        logger.info("Registered %s", user_key)
        return progress

    def login(self, user_key: str, create: bool = False) -> UserSession:
        """
        Load a user's snapshot and open a session.

        Logging in twice returns the already open session.

        Raises:
            SnapshotNotFound: unknown user and create is False
            StoreError: the snapshot could not be read
        """
        existing = self._sessions.get(user_key)
        if existing is not None:
            return existing

        try:
            progress = self.store.load(user_key)
        except SnapshotNotFound:
            if not create:
                raise
            progress = self.register(user_key)

        engine = ProgressionEngine(
            progress,
            registry=self.registry,
            scheduler=self.scheduler_factory() if self.scheduler_factory else None,
            rng=self.rng_factory(),
            on_change=lambda p: self._persist(user_key, p),
        )
        session = UserSession(user_key=user_key, engine=engine, created_at=time.time())
        self._sessions[user_key] = session
        engine.start_day()

        logger.info("Logged in %s (level %d, %d xp)", user_key, progress.level, progress.xp)
        return session

    def get_session(self, user_key: str) -> UserSession | None:
        return self._sessions.get(user_key)

    def logout(self, user_key: str) -> bool:
        """
        End a session.

        Any live game is cancelled; nothing is written or deleted.
        """
        session = self._sessions.pop(user_key, None)
        if session is None:
            return False
        session.engine.on_game_abandon()
        logger.info("Logged out %s", user_key)
        return True

    def list_active_sessions(self) -> list[str]:
        return list(self._sessions)

    def _persist(self, user_key: str, progress: UserProgress):
        session = self._sessions.get(user_key)
        try:
            self.store.save(user_key, progress)
        except StoreError as e:
            logger.error("Saving progress for %s failed: %s", user_key, e)
            if session is not None:
                session.save_failures += 1
            return
        if session is not None:
            session.last_saved_at = time.time()
