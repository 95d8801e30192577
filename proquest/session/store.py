"""
Session Store - Loads and saves user progress snapshots.

The store:
- Is keyed by an opaque user key (e.g. an email address)
- Holds whole snapshots only, never partial updates
- Is best-effort: the engine never waits on or rolls back for a save

Design decisions:
- Simple file-based storage, one JSON file per user
- File name is a truncated SHA-256 of the user key
- Writes go to a temp file first, then replace the target
"""

from __future__ import annotations
import hashlib
import json
import os
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any

from ..progression.state import UserProgress


class StoreError(Exception):
    """Raised when a snapshot cannot be read or written."""


class SnapshotNotFound(KeyError):
    """Raised when no snapshot exists for a user key."""

    def __init__(self, user_key: str):
        self.user_key = user_key
        super().__init__(user_key)


class SessionStore(ABC):
    """Interface for progress persistence."""

    @abstractmethod
    def load(self, user_key: str) -> UserProgress:
        """
        Load the full snapshot for a user.

        Raises:
            SnapshotNotFound: no snapshot stored for user_key
            StoreError: the snapshot exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, user_key: str, progress: UserProgress):
        """
        Save the full snapshot for a user.

        Raises:
            StoreError: the snapshot could not be written
        """
        pass

    def exists(self, user_key: str) -> bool:
        try:
            self.load(user_key)
        except SnapshotNotFound:
            return False
        return True


class InMemorySessionStore(SessionStore):
    """
    Store that keeps serialized snapshots in a dict.

    Snapshots are stored as dicts (not live objects) so later in-memory
    mutations never leak into the stored copy.
    """

    def __init__(self):
        self._snapshots: dict[str, dict[str, Any]] = {}

    def load(self, user_key: str) -> UserProgress:
        if user_key not in self._snapshots:
            raise SnapshotNotFound(user_key)
        return UserProgress.from_dict(deepcopy(self._snapshots[user_key]))

    def save(self, user_key: str, progress: UserProgress):
        self._snapshots[user_key] = progress.to_dict()

    def exists(self, user_key: str) -> bool:
        return user_key in self._snapshots

    def list_users(self) -> list[str]:
        return list(self._snapshots)


class JsonFileSessionStore(SessionStore):
    """
    File-based store, one JSON document per user.

    Usage:
        store = JsonFileSessionStore(data_dir="~/.proquest/users")
        store.save("ada@example.com", progress)
        progress = store.load("ada@example.com")
    """

    def __init__(self, data_dir: str | Path | None = None):
        if data_dir is None:
            data_dir = Path.home() / ".proquest" / "users"
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def load(self, user_key: str) -> UserProgress:
        path = self._get_path(user_key)
        if not path.exists():
            raise SnapshotNotFound(user_key)

        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
            return UserProgress.from_dict(document["progress"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Cannot read snapshot for {user_key}: {e}") from e

    def save(self, user_key: str, progress: UserProgress):
        path = self._get_path(user_key)
        tmp_path = path.with_suffix(".json.tmp")
        document = {"user_key": user_key, "progress": progress.to_dict()}

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StoreError(f"Cannot write snapshot for {user_key}: {e}") from e

    def exists(self, user_key: str) -> bool:
        return self._get_path(user_key).exists()

    def _hash_key(self, user_key: str) -> str:
        """SHA-256 of the user key, truncated to 16 chars."""
        return hashlib.sha256(user_key.encode("utf-8")).hexdigest()[:16]

    def _get_path(self, user_key: str) -> Path:
        return self.data_dir / f"{self._hash_key(user_key)}.json"
