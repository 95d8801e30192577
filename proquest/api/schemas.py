"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between clients and the engine.

Error Codes:
- VALIDATION_ERROR: Input rejected (blank task text, unknown priority)
- TASK_NOT_FOUND: Task id does not exist for this user
- SESSION_NOT_FOUND: User is not logged in / has no stored progress
- CHALLENGE_IN_PROGRESS: Another challenge is already pending
- NO_CHALLENGE: Operation needs a pending challenge
- ALREADY_COMPLETED: Challenge requested for a completed task
- INVALID_MOVE: Move targets a game of another variant
- UNKNOWN_VARIANT: No game registered under that name
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    CHALLENGE_IN_PROGRESS = "CHALLENGE_IN_PROGRESS"
    NO_CHALLENGE = "NO_CHALLENGE"
    ALREADY_COMPLETED = "ALREADY_COMPLETED"
    INVALID_MOVE = "INVALID_MOVE"
    UNKNOWN_VARIANT = "UNKNOWN_VARIANT"
    STORE_ERROR = "STORE_ERROR"


class PriorityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DifficultyLevel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ChallengeStatus(str, Enum):
    """Status of the game behind a challenge."""
    ACTIVE = "active"
    WON = "won"
    NOT_WON = "not_won"
    ABANDONED = "abandoned"


# =============================================================================
# Requests
# =============================================================================

class LoginRequest(BaseModel):
    """Open a session for a user."""
    user_key: str = Field(min_length=1, description="Opaque user key, e.g. an email")
    create: bool = Field(default=False, description="Register the user if unknown")


class AddTaskRequest(BaseModel):
    text: str = Field(description="Task text; must not be blank")
    priority: PriorityLevel = PriorityLevel.MEDIUM


class ChallengeRequest(BaseModel):
    """Start a game challenge for a task."""
    game: Optional[str] = Field(default=None, description="Game variant, defaults to the selected one")
    difficulty: Optional[DifficultyLevel] = None


# =============================================================================
# Shared Models
# =============================================================================

class TaskInfo(BaseModel):
    task_id: str
    text: str
    priority: PriorityLevel
    xp: int
    completed: bool
    created_at: str
    completed_at: Optional[str] = None


class AchievementInfo(BaseModel):
    achievement_id: str
    name: str
    description: str
    unlocked: bool


class BestScoreInfo(BaseModel):
    time: int
    moves: int


class StatsInfo(BaseModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    completion_rate: float = 0.0
    achievements_unlocked: int = 0
    achievements_total: int = 0


class GridInfo(BaseModel):
    """Heuristic grid game board."""
    board: list[str] = Field(description="9 cells: empty, player or opponent")
    turn: str
    winner: Optional[str] = None


class MatchCellInfo(BaseModel):
    cell_id: int
    face_up: bool
    matched: bool
    symbol: Optional[str] = Field(default=None, description="Only visible when face-up or matched")


class MatchingInfo(BaseModel):
    """Timed matching game table."""
    cells: list[MatchCellInfo]
    time_left: int
    total_time: int
    moves: int
    matched_pairs: int
    total_pairs: int
    best: Optional[BestScoreInfo] = None


class ChallengeInfo(BaseModel):
    task_id: str
    game: str
    difficulty: DifficultyLevel
    attempts: int = 1
    status: ChallengeStatus
    unlocked_achievements: list[str] = Field(default_factory=list, description="Unlocked by winning this challenge")
    grid: Optional[GridInfo] = None
    matching: Optional[MatchingInfo] = None


# =============================================================================
# Responses
# =============================================================================

class ProgressResponse(BaseModel):
    """Full progress snapshot of a logged-in user."""
    user_key: str
    xp: int
    level: int
    xp_into_level: int
    xp_to_next_level: int
    streak: int
    tasks_completed_today: int
    games_won: int
    tasks: list[TaskInfo] = Field(default_factory=list)
    achievements: list[AchievementInfo] = Field(default_factory=list)
    best_scores: dict[str, dict[str, BestScoreInfo]] = Field(default_factory=dict)
    stats: StatsInfo = Field(default_factory=StatsInfo)
    challenge: Optional[ChallengeInfo] = None


class MutationResponse(BaseModel):
    """Result of an operation that may be a no-op."""
    changed: bool
    message: Optional[str] = None
    unlocked_achievements: list[str] = Field(default_factory=list)
    progress: ProgressResponse


class MoveResponse(BaseModel):
    """Result of a player move inside a challenge."""
    accepted: bool
    task_completed: bool = False
    challenge: ChallengeInfo
    unlocked_achievements: list[str] = Field(default_factory=list)


class GameVariantInfo(BaseModel):
    name: str
    title: str
    description: str
    difficulties: list[DifficultyLevel]


class GameListResponse(BaseModel):
    games: list[GameVariantInfo]


class EndSessionResponse(BaseModel):
    success: bool
    user_key: str


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    active_sessions: int = 0


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None
