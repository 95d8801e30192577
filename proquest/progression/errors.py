"""
Progression errors.

ValidationError and NotFoundError abort an operation with no state
change. NoOpError marks a redundant request; callers treat it as a
successful no-op.
"""


class ProgressionError(Exception):
    """Base class for progression engine errors."""


class ValidationError(ProgressionError):
    """Raised when input is rejected (e.g. blank task text)."""


class NotFoundError(ProgressionError):
    """Raised when an operation references an unknown task or game."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class NoOpError(ProgressionError):
    """Raised when an operation would not change anything."""


class ChallengeInProgressError(NoOpError):
    """Raised when a challenge is requested while another one is pending."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"A challenge is already pending for task {task_id}")
