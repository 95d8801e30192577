"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Translates requests to SessionManager / ProgressionEngine calls
2. Turns engine objects into response schemas
3. Lets domain errors propagate; the app maps them to error codes

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .. import __version__
from ..games.base import GameEngine, Outcome
from ..games.grid import HeuristicGridGame
from ..games.matching import TimedMatchingGame
from ..progression.errors import NoOpError
from ..progression.engine import ProgressionEngine
from ..progression.state import PendingChallenge, Task, UserProgress
from ..session import SessionManager, UserSession
from .schemas import (
    AchievementInfo,
    AddTaskRequest,
    BestScoreInfo,
    ChallengeInfo,
    ChallengeRequest,
    ChallengeStatus,
    DifficultyLevel,
    EndSessionResponse,
    GameListResponse,
    GameVariantInfo,
    GridInfo,
    HealthResponse,
    LoginRequest,
    MatchCellInfo,
    MatchingInfo,
    MoveResponse,
    MutationResponse,
    ProgressResponse,
    StatsInfo,
    TaskInfo,
)


class SessionNotFoundError(KeyError):
    """Raised when an operation targets a user that is not logged in."""

    def __init__(self, user_key: str):
        self.user_key = user_key
        super().__init__(user_key)


class NoChallengeError(LookupError):
    """Raised when a game operation is sent without a live challenge."""


class WrongGameError(ValueError):
    """Raised when a move is sent to a game of another variant."""


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        service.login(LoginRequest(user_key="ada@example.com", create=True))
        task = service.add_task("ada@example.com", AddTaskRequest(text="Stretch"))
        service.start_challenge("ada@example.com", task.task_id, ChallengeRequest(game="grid"))
        service.grid_move("ada@example.com", 4)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # =========================================================================
    # Sessions
    # =========================================================================

    def health(self) -> HealthResponse:
        return HealthResponse(
            version=__version__,
            active_sessions=len(self.session_manager.list_active_sessions()),
        )

    def list_games(self) -> GameListResponse:
        return GameListResponse(games=[
            GameVariantInfo(
                name=v.name,
                title=v.title,
                description=v.description,
                difficulties=[DifficultyLevel(d.value) for d in v.difficulties],
            )
            for v in self.session_manager.registry.list_variants()
        ])

    def login(self, request: LoginRequest) -> ProgressResponse:
        session = self.session_manager.login(request.user_key, create=request.create)
        return self._progress_response(session)

    def logout(self, user_key: str) -> EndSessionResponse:
        success = self.session_manager.logout(user_key)
        return EndSessionResponse(success=success, user_key=user_key)

    def get_progress(self, user_key: str) -> ProgressResponse:
        return self._progress_response(self._get_session(user_key))

    # =========================================================================
    # Tasks
    # =========================================================================

    def add_task(self, user_key: str, request: AddTaskRequest) -> TaskInfo:
        engine = self._get_session(user_key).engine
        task = engine.add_task(request.text, request.priority.value)
        return _task_info(task)

    def uncomplete_task(self, user_key: str, task_id: str) -> MutationResponse:
        session = self._get_session(user_key)
        return self._mutate(session, lambda e: e.uncomplete(task_id))

    def delete_task(self, user_key: str, task_id: str) -> MutationResponse:
        session = self._get_session(user_key)
        return self._mutate(session, lambda e: e.delete_task(task_id))

    # =========================================================================
    # Challenges
    # =========================================================================

    def start_challenge(self, user_key: str, task_id: str, request: ChallengeRequest) -> ChallengeInfo:
        engine = self._get_session(user_key).engine
        difficulty = request.difficulty.value if request.difficulty else None
        game = engine.request_completion(task_id, variant=request.game, difficulty=difficulty)
        return _challenge_info(engine.pending, game)

    def get_challenge(self, user_key: str) -> ChallengeInfo:
        """
        State of the pending challenge, or of the last won one.

        A win resolved on a timer (matching pairs) is only visible here.
        """
        engine = self._get_session(user_key).engine
        if engine.pending is not None and engine.game is not None:
            return _challenge_info(engine.pending, engine.game)
        if engine.last_challenge is not None and engine.last_game is not None:
            return _won_challenge_info(engine)
        raise NoChallengeError("No challenge is pending")

    def retry_challenge(self, user_key: str) -> ChallengeInfo:
        engine = self._get_session(user_key).engine
        if engine.pending is None:
            raise NoChallengeError("No challenge is pending")
        game = engine.retry_challenge()
        return _challenge_info(engine.pending, game)

    def abandon_challenge(self, user_key: str) -> MutationResponse:
        session = self._get_session(user_key)
        changed = session.engine.on_game_abandon()
        return MutationResponse(
            changed=changed,
            message=None if changed else "No challenge was pending",
            progress=self._progress_response(session),
        )

    def grid_move(self, user_key: str, cell: int) -> MoveResponse:
        return self._move(user_key, HeuristicGridGame, lambda g: g.play(cell))

    def matching_flip(self, user_key: str, cell: int) -> MoveResponse:
        return self._move(user_key, TimedMatchingGame, lambda g: g.flip(cell))

    def _move(self, user_key: str, game_type: type, apply) -> MoveResponse:
        engine = self._get_session(user_key).engine
        game, challenge = engine.game, engine.pending
        if game is None or challenge is None:
            raise NoChallengeError("No challenge is pending")
        if not isinstance(game, game_type):
            raise WrongGameError(f"The pending challenge is a {challenge.game_variant} game")

        accepted = apply(game)
        if engine.last_game is game:
            info = _won_challenge_info(engine)
            return MoveResponse(
                accepted=accepted,
                task_completed=True,
                challenge=info,
                unlocked_achievements=info.unlocked_achievements,
            )
        return MoveResponse(accepted=accepted, challenge=_challenge_info(challenge, game))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_session(self, user_key: str) -> UserSession:
        session = self.session_manager.get_session(user_key)
        if session is None:
            raise SessionNotFoundError(user_key)
        return session

    def _mutate(self, session: UserSession, operation) -> MutationResponse:
        """Run an engine operation, reporting NoOpError as changed=False."""
        try:
            operation(session.engine)
        except NoOpError as e:
            return MutationResponse(
                changed=False,
                message=str(e),
                progress=self._progress_response(session),
            )
        return MutationResponse(
            changed=True,
            unlocked_achievements=session.engine.last_unlocked,
            progress=self._progress_response(session),
        )

    def _progress_response(self, session: UserSession) -> ProgressResponse:
        engine = session.engine
        progress = engine.progress
        challenge = None
        if engine.pending is not None and engine.game is not None:
            challenge = _challenge_info(engine.pending, engine.game)

        return ProgressResponse(
            user_key=session.user_key,
            xp=progress.xp,
            level=progress.level,
            xp_into_level=progress.xp_into_level,
            xp_to_next_level=progress.xp_to_next_level,
            streak=progress.streak,
            tasks_completed_today=progress.tasks_completed_today,
            games_won=progress.games_won,
            tasks=[_task_info(t) for t in progress.tasks],
            achievements=[
                AchievementInfo(
                    achievement_id=a.achievement_id,
                    name=a.name,
                    description=a.description,
                    unlocked=a.unlocked,
                )
                for a in progress.achievements
            ],
            best_scores=_best_scores(progress),
            stats=StatsInfo(**engine.stats()),
            challenge=challenge,
        )


def _task_info(task: Task) -> TaskInfo:
    return TaskInfo(
        task_id=task.task_id,
        text=task.text,
        priority=task.priority.value,
        xp=task.xp,
        completed=task.completed,
        created_at=task.created_at.isoformat(),
        completed_at=task.completed_at.isoformat() if task.completed_at else None,
    )


def _best_scores(progress: UserProgress) -> dict[str, dict[str, BestScoreInfo]]:
    return {
        game: {difficulty: BestScoreInfo(**score) for difficulty, score in scores.items()}
        for game, scores in progress.best_scores.items()
    }


def _game_status(game: GameEngine) -> ChallengeStatus:
    if game.outcome is Outcome.WIN:
        return ChallengeStatus.WON
    if game.outcome is Outcome.NOT_WIN:
        return ChallengeStatus.NOT_WON
    if game.cancelled:
        return ChallengeStatus.ABANDONED
    return ChallengeStatus.ACTIVE


def _won_challenge_info(engine: ProgressionEngine) -> ChallengeInfo:
    info = _challenge_info(engine.last_challenge, engine.last_game, status=ChallengeStatus.WON)
    info.unlocked_achievements = list(engine.last_challenge_unlocked)
    return info


def _challenge_info(
    challenge: PendingChallenge,
    game: GameEngine,
    status: ChallengeStatus | None = None,
) -> ChallengeInfo:
    info = ChallengeInfo(
        task_id=challenge.task_id,
        game=challenge.game_variant,
        difficulty=challenge.difficulty,
        attempts=challenge.attempts,
        status=status or _game_status(game),
    )

    if isinstance(game, HeuristicGridGame):
        info.grid = GridInfo(
            board=[mark.value for mark in game.board],
            turn=game.turn.value,
            winner=game.winner.value if game.winner else None,
        )
    elif isinstance(game, TimedMatchingGame):
        best = game.best
        info.matching = MatchingInfo(
            cells=[
                MatchCellInfo(
                    cell_id=c.cell_id,
                    face_up=c.face_up,
                    matched=c.matched,
                    symbol=c.symbol if (c.face_up or c.matched) else None,
                )
                for c in game.cells
            ],
            time_left=game.time_left,
            total_time=game.total_time,
            moves=game.moves,
            matched_pairs=game.matched_pairs,
            total_pairs=game.total_pairs,
            best=BestScoreInfo(time=best.time, moves=best.moves) if best else None,
        )
    return info
