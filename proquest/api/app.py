"""
FastAPI Application - REST API for the task client.

Endpoints:
    GET    /api/v1/health                                  Service health
    GET    /api/v1/games                                   Available mini-games
    POST   /api/v1/sessions                                Log in (load progress)
    DELETE /api/v1/sessions/{user}                         Log out
    GET    /api/v1/sessions/{user}/progress                Full progress
    POST   /api/v1/sessions/{user}/tasks                   Add task
    DELETE /api/v1/sessions/{user}/tasks/{task_id}         Delete task
    POST   /api/v1/sessions/{user}/tasks/{task_id}/uncomplete   Reverse completion
    POST   /api/v1/sessions/{user}/tasks/{task_id}/challenge    Start a challenge
    GET    /api/v1/sessions/{user}/challenge               Challenge state
    POST   /api/v1/sessions/{user}/challenge/grid/{cell}   Grid move
    POST   /api/v1/sessions/{user}/challenge/matching/{cell}    Flip a card
    POST   /api/v1/sessions/{user}/challenge/retry         New game after a loss
    DELETE /api/v1/sessions/{user}/challenge               Abandon challenge

Completion flow:
    1. POST /challenge opens a game for an incomplete task
    2. Moves are posted until the game reports an outcome
    3. A win completes the task (MoveResponse.task_completed=true)
    4. After a loss, POST /challenge/retry or DELETE /challenge

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__, config
from ..games.clock import AsyncioScheduler
from ..progression.errors import ChallengeInProgressError, NoOpError, NotFoundError, ValidationError
from ..session import JsonFileSessionStore, SessionManager, SnapshotNotFound, StoreError
from .schemas import (
    AddTaskRequest,
    ChallengeInfo,
    ChallengeRequest,
    EndSessionResponse,
    ErrorCode,
    ErrorResponse,
    GameListResponse,
    HealthResponse,
    LoginRequest,
    MoveResponse,
    MutationResponse,
    ProgressResponse,
    TaskInfo,
)
from .service import APIService, NoChallengeError, SessionNotFoundError, WrongGameError


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates one backed by the
            JSON file store and real-time scheduling if not provided)

    Returns:
        FastAPI application instance
    """
    config.configure_logging()

    app = FastAPI(
        title="ProQuest API",
        description="Complete tasks by winning mini-games; earn xp, levels and achievements.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(
        session_manager=SessionManager(
            store=JsonFileSessionStore(config.PROQUEST_DATA_DIR),
            scheduler_factory=AsyncioScheduler,
        )
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return make_error_response(ErrorCode.VALIDATION_ERROR, str(exc), status_code=422)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        if exc.kind == "game":
            return make_error_response(ErrorCode.UNKNOWN_VARIANT, str(exc), status_code=404)
        return make_error_response(
            ErrorCode.TASK_NOT_FOUND, str(exc), status_code=404, details={"task_id": exc.key},
        )

    @app.exception_handler(ChallengeInProgressError)
    async def handle_challenge_in_progress(request: Request, exc: ChallengeInProgressError):
        return make_error_response(
            ErrorCode.CHALLENGE_IN_PROGRESS, str(exc), status_code=409, details={"task_id": exc.task_id},
        )

    @app.exception_handler(NoOpError)
    async def handle_noop(request: Request, exc: NoOpError):
        return make_error_response(ErrorCode.ALREADY_COMPLETED, str(exc), status_code=409)

    @app.exception_handler(SessionNotFoundError)
    async def handle_session_not_found(request: Request, exc: SessionNotFoundError):
        return make_error_response(ErrorCode.SESSION_NOT_FOUND, f"No session for {exc.user_key}", status_code=404)

    @app.exception_handler(SnapshotNotFound)
    async def handle_snapshot_not_found(request: Request, exc: SnapshotNotFound):
        return make_error_response(ErrorCode.SESSION_NOT_FOUND, f"Unknown user {exc.user_key}", status_code=404)

    @app.exception_handler(NoChallengeError)
    async def handle_no_challenge(request: Request, exc: NoChallengeError):
        return make_error_response(ErrorCode.NO_CHALLENGE, str(exc), status_code=409)

    @app.exception_handler(WrongGameError)
    async def handle_wrong_game(request: Request, exc: WrongGameError):
        return make_error_response(ErrorCode.INVALID_MOVE, str(exc), status_code=400)

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        return make_error_response(ErrorCode.STORE_ERROR, str(exc), status_code=503)

    # =========================================================================
    # Service Endpoints
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Service"])
    async def health() -> HealthResponse:
        return api_service.health()

    @app.get("/api/v1/games", response_model=GameListResponse, tags=["Service"])
    async def list_games() -> GameListResponse:
        """List the mini-games that can gate a task."""
        return api_service.list_games()

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=ProgressResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Log in and load progress",
    )
    async def login(request: LoginRequest) -> ProgressResponse:
        return api_service.login(request)

    @app.delete("/api/v1/sessions/{user_key}", response_model=EndSessionResponse, tags=["Sessions"])
    async def logout(user_key: str) -> EndSessionResponse:
        """End a session. Stored progress is kept."""
        return api_service.logout(user_key)

    @app.get(
        "/api/v1/sessions/{user_key}/progress",
        response_model=ProgressResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
    )
    async def get_progress(user_key: str) -> ProgressResponse:
        return api_service.get_progress(user_key)

    # =========================================================================
    # Task Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{user_key}/tasks",
        response_model=TaskInfo,
        status_code=201,
        responses={422: {"model": ErrorResponse}},
        tags=["Tasks"],
    )
    async def add_task(user_key: str, request: AddTaskRequest) -> TaskInfo:
        return api_service.add_task(user_key, request)

    @app.delete(
        "/api/v1/sessions/{user_key}/tasks/{task_id}",
        response_model=MutationResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Tasks"],
    )
    async def delete_task(user_key: str, task_id: str) -> MutationResponse:
        return api_service.delete_task(user_key, task_id)

    @app.post(
        "/api/v1/sessions/{user_key}/tasks/{task_id}/uncomplete",
        response_model=MutationResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Tasks"],
    )
    async def uncomplete_task(user_key: str, task_id: str) -> MutationResponse:
        return api_service.uncomplete_task(user_key, task_id)

    # =========================================================================
    # Challenge Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{user_key}/tasks/{task_id}/challenge",
        response_model=ChallengeInfo,
        status_code=201,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Challenges"],
        summary="Start a game that completes the task when won",
    )
    async def start_challenge(
        user_key: str,
        task_id: str,
        request: Optional[ChallengeRequest] = None,
    ) -> ChallengeInfo:
        return api_service.start_challenge(user_key, task_id, request or ChallengeRequest())

    @app.get(
        "/api/v1/sessions/{user_key}/challenge",
        response_model=ChallengeInfo,
        responses={409: {"model": ErrorResponse}},
        tags=["Challenges"],
    )
    async def get_challenge(user_key: str) -> ChallengeInfo:
        return api_service.get_challenge(user_key)

    @app.post(
        "/api/v1/sessions/{user_key}/challenge/grid/{cell}",
        response_model=MoveResponse,
        tags=["Challenges"],
    )
    async def grid_move(user_key: str, cell: int) -> MoveResponse:
        return api_service.grid_move(user_key, cell)

    @app.post(
        "/api/v1/sessions/{user_key}/challenge/matching/{cell}",
        response_model=MoveResponse,
        tags=["Challenges"],
    )
    async def matching_flip(user_key: str, cell: int) -> MoveResponse:
        return api_service.matching_flip(user_key, cell)

    @app.post(
        "/api/v1/sessions/{user_key}/challenge/retry",
        response_model=ChallengeInfo,
        responses={409: {"model": ErrorResponse}},
        tags=["Challenges"],
    )
    async def retry_challenge(user_key: str) -> ChallengeInfo:
        return api_service.retry_challenge(user_key)

    @app.delete(
        "/api/v1/sessions/{user_key}/challenge",
        response_model=MutationResponse,
        tags=["Challenges"],
    )
    async def abandon_challenge(user_key: str) -> MutationResponse:
        return api_service.abandon_challenge(user_key)

    return app
