"""
Session Module - Loading, tracking and saving user progress.

A session represents one logged-in user:
- Created at login from the stored snapshot
- Holds the ProgressionEngine for that user
- Saves the snapshot after every committed mutation
- Destroyed at logout (persisted data stays)
"""

from .manager import SessionManager, UserSession
from .store import (
    SessionStore,
    InMemorySessionStore,
    JsonFileSessionStore,
    StoreError,
    SnapshotNotFound,
)

__all__ = [
    "SessionManager",
    "UserSession",
    "SessionStore",
    "InMemorySessionStore",
    "JsonFileSessionStore",
    "StoreError",
    "SnapshotNotFound",
]
