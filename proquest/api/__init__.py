"""
API Module - HTTP interface to the progression engine.

Provides:
- APIService: Framework-agnostic business logic
- create_app: FastAPI application factory
- Pydantic request/response schemas

Run with:
    uvicorn --factory proquest.api.app:create_app
"""

from .service import APIService, SessionNotFoundError, NoChallengeError, WrongGameError
from .schemas import (
    ErrorCode,
    LoginRequest,
    AddTaskRequest,
    ChallengeRequest,
    ProgressResponse,
    ChallengeInfo,
    MoveResponse,
    MutationResponse,
    ErrorResponse,
)

__all__ = [
    "APIService",
    "SessionNotFoundError",
    "NoChallengeError",
    "WrongGameError",
    "ErrorCode",
    "LoginRequest",
    "AddTaskRequest",
    "ChallengeRequest",
    "ProgressResponse",
    "ChallengeInfo",
    "MoveResponse",
    "MutationResponse",
    "ErrorResponse",
]
