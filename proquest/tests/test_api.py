"""
Tests for API layer.

Tests:
- API service methods
- Challenge flow through the service
- HTTP endpoints and error codes
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    AddTaskRequest,
    ChallengeRequest,
    ChallengeStatus,
    DifficultyLevel,
    LoginRequest,
)
from ..api.service import APIService, NoChallengeError, SessionNotFoundError, WrongGameError
from ..games.clock import ManualScheduler
from ..session import SessionManager
from .conftest import HARD_GRID_WIN, pair_positions

USER = "ada@example.com"
API = "/api/v1"


@pytest.fixture
def service():
    """API service on virtual time with in-memory storage."""
    return APIService(session_manager=SessionManager(scheduler_factory=ManualScheduler))


def run_timers(service, user_key=USER):
    service.session_manager.get_session(user_key).engine.scheduler.run_pending()


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def logged_in(self, service):
        service.login(LoginRequest(user_key=USER, create=True))
        return service

    def test_login_returns_progress(self, service):
        response = service.login(LoginRequest(user_key=USER, create=True))

        assert response.user_key == USER
        assert response.level == 1
        assert response.xp_to_next_level == 100
        assert len(response.achievements) == 4
        assert response.challenge is None

    def test_unknown_session(self, service):
        with pytest.raises(SessionNotFoundError):
            service.get_progress(USER)

    def test_list_games(self, service):
        names = [g.name for g in service.list_games().games]
        assert names == ["grid", "matching"]

    def test_health_counts_sessions(self, logged_in):
        assert logged_in.health().active_sessions == 1

    def test_grid_challenge_completes_task(self, logged_in):
        task = logged_in.add_task(USER, AddTaskRequest(text="Write report", priority="high"))
        challenge = logged_in.start_challenge(
            USER, task.task_id, ChallengeRequest(game="grid", difficulty=DifficultyLevel.HARD),
        )
        assert challenge.status is ChallengeStatus.ACTIVE
        assert challenge.grid.board == ["empty"] * 9

        for cell in HARD_GRID_WIN:
            response = logged_in.grid_move(USER, cell)
            assert response.accepted
            run_timers(logged_in)

        assert response.task_completed
        assert response.challenge.status is ChallengeStatus.WON
        assert response.unlocked_achievements == ["first-task"]

        progress = logged_in.get_progress(USER)
        assert progress.xp == 30
        assert progress.tasks[0].completed
        assert progress.challenge is None

    def test_rejected_move(self, logged_in):
        task = logged_in.add_task(USER, AddTaskRequest(text="Read"))
        logged_in.start_challenge(USER, task.task_id, ChallengeRequest())

        assert logged_in.grid_move(USER, 0).accepted
        response = logged_in.grid_move(USER, 0)
        assert not response.accepted
        assert not response.task_completed

    def test_matching_hides_face_down_symbols(self, logged_in):
        task = logged_in.add_task(USER, AddTaskRequest(text="Read"))
        challenge = logged_in.start_challenge(
            USER, task.task_id, ChallengeRequest(game="matching", difficulty=DifficultyLevel.EASY),
        )
        assert all(c.symbol is None for c in challenge.matching.cells)
        assert challenge.matching.total_pairs == 4
        assert challenge.matching.time_left == 120

        response = logged_in.matching_flip(USER, 0)
        assert response.challenge.matching.cells[0].symbol is not None
        assert response.challenge.matching.cells[1].symbol is None

    def test_matching_win_reported_after_pairs_resolve(self, logged_in):
        task = logged_in.add_task(USER, AddTaskRequest(text="Tidy desk", priority="low"))
        logged_in.start_challenge(
            USER, task.task_id, ChallengeRequest(game="matching", difficulty=DifficultyLevel.EASY),
        )
        engine = logged_in.session_manager.get_session(USER).engine
        game = engine.game
        assert game.resolve_delay > 0

        for first, second in pair_positions(game).values():
            assert logged_in.matching_flip(USER, first).accepted
            response = logged_in.matching_flip(USER, second)
            assert response.accepted
            assert not response.task_completed
            engine.scheduler.advance(game.resolve_delay)

        challenge = logged_in.get_challenge(USER)
        assert challenge.task_id == task.task_id
        assert challenge.status is ChallengeStatus.WON
        assert challenge.unlocked_achievements == ["first-task"]
        assert challenge.matching.matched_pairs == 4

        progress = logged_in.get_progress(USER)
        assert progress.xp == 10
        assert progress.tasks[0].completed
        assert progress.challenge is None

    def test_won_challenge_forgotten_on_uncomplete(self, logged_in):
        task = logged_in.add_task(USER, AddTaskRequest(text="Write report"))
        logged_in.start_challenge(
            USER, task.task_id, ChallengeRequest(game="grid", difficulty=DifficultyLevel.HARD),
        )
        for cell in HARD_GRID_WIN:
            logged_in.grid_move(USER, cell)
            run_timers(logged_in)
        assert logged_in.get_challenge(USER).status is ChallengeStatus.WON

        logged_in.uncomplete_task(USER, task.task_id)
        with pytest.raises(NoChallengeError):
            logged_in.get_challenge(USER)

    def test_wrong_game(self, logged_in):
        task = logged_in.add_task(USER, AddTaskRequest(text="Read"))
        logged_in.start_challenge(USER, task.task_id, ChallengeRequest(game="grid"))
        with pytest.raises(WrongGameError):
            logged_in.matching_flip(USER, 0)

    def test_no_challenge(self, logged_in):
        with pytest.raises(NoChallengeError):
            logged_in.get_challenge(USER)
        with pytest.raises(NoChallengeError):
            logged_in.grid_move(USER, 4)
        with pytest.raises(NoChallengeError):
            logged_in.retry_challenge(USER)

    def test_uncomplete_open_task_reports_unchanged(self, logged_in):
        task = logged_in.add_task(USER, AddTaskRequest(text="Read"))
        response = logged_in.uncomplete_task(USER, task.task_id)

        assert not response.changed
        assert response.message

    def test_abandon(self, logged_in):
        task = logged_in.add_task(USER, AddTaskRequest(text="Read"))
        logged_in.start_challenge(USER, task.task_id, ChallengeRequest())

        assert logged_in.abandon_challenge(USER).changed
        assert not logged_in.abandon_challenge(USER).changed

    def test_logout(self, logged_in):
        assert logged_in.logout(USER).success
        assert not logged_in.logout(USER).success


class TestHTTP:
    """Tests for the FastAPI app."""

    @pytest.fixture
    def client(self, service):
        return TestClient(create_app(service=service))

    @pytest.fixture
    def user(self, client):
        response = client.post(f"{API}/sessions", json={"user_key": USER, "create": True})
        assert response.status_code == 200
        return USER

    def add_task(self, client, text="Read", priority="medium"):
        response = client.post(f"{API}/sessions/{USER}/tasks", json={"text": text, "priority": priority})
        assert response.status_code == 201
        return response.json()["task_id"]

    def test_health(self, client):
        response = client.get(f"{API}/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_games(self, client):
        response = client.get(f"{API}/games")
        assert [g["name"] for g in response.json()["games"]] == ["grid", "matching"]

    def test_login_unknown_user(self, client):
        response = client.post(f"{API}/sessions", json={"user_key": USER})
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_progress_without_session(self, client):
        response = client.get(f"{API}/sessions/{USER}/progress")
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_blank_task(self, client, user):
        response = client.post(f"{API}/sessions/{user}/tasks", json={"text": "   "})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_bad_priority(self, client, user):
        response = client.post(f"{API}/sessions/{user}/tasks", json={"text": "Read", "priority": "urgent"})
        assert response.status_code == 422

    def test_add_task(self, client, user):
        response = client.post(f"{API}/sessions/{user}/tasks", json={"text": "Read", "priority": "high"})
        assert response.status_code == 201
        body = response.json()
        assert body["xp"] == 30
        assert body["completed"] is False

    def test_challenge_unknown_task(self, client, user):
        response = client.post(f"{API}/sessions/{user}/tasks/missing/challenge")
        assert response.status_code == 404
        assert response.json()["error_code"] == "TASK_NOT_FOUND"

    def test_challenge_unknown_game(self, client, user):
        task_id = self.add_task(client)
        response = client.post(f"{API}/sessions/{user}/tasks/{task_id}/challenge", json={"game": "chess"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "UNKNOWN_VARIANT"

    def test_second_challenge_conflicts(self, client, user):
        first = self.add_task(client, "Read")
        second = self.add_task(client, "Write")

        response = client.post(f"{API}/sessions/{user}/tasks/{first}/challenge")
        assert response.status_code == 201
        assert response.json()["status"] == "active"

        response = client.post(f"{API}/sessions/{user}/tasks/{second}/challenge")
        assert response.status_code == 409
        assert response.json()["error_code"] == "CHALLENGE_IN_PROGRESS"

    def test_move_to_wrong_game(self, client, user):
        task_id = self.add_task(client)
        client.post(f"{API}/sessions/{user}/tasks/{task_id}/challenge", json={"game": "grid"})

        response = client.post(f"{API}/sessions/{user}/challenge/matching/0")
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_MOVE"

    def test_abandon_then_no_challenge(self, client, user):
        task_id = self.add_task(client)
        client.post(f"{API}/sessions/{user}/tasks/{task_id}/challenge")

        response = client.delete(f"{API}/sessions/{user}/challenge")
        assert response.status_code == 200
        assert response.json()["changed"] is True

        response = client.get(f"{API}/sessions/{user}/challenge")
        assert response.status_code == 409
        assert response.json()["error_code"] == "NO_CHALLENGE"

    def test_win_flow(self, client, service, user):
        task_id = self.add_task(client, "Write report", "low")
        client.post(
            f"{API}/sessions/{user}/tasks/{task_id}/challenge",
            json={"game": "grid", "difficulty": "hard"},
        )

        for cell in HARD_GRID_WIN:
            response = client.post(f"{API}/sessions/{user}/challenge/grid/{cell}")
            assert response.status_code == 200
            run_timers(service)

        assert response.json()["task_completed"] is True

        progress = client.get(f"{API}/sessions/{user}/progress").json()
        assert progress["xp"] == 10
        assert progress["games_won"] == 1
        assert progress["stats"]["completed_tasks"] == 1

        response = client.post(f"{API}/sessions/{user}/tasks/{task_id}/challenge")
        assert response.status_code == 409
        assert response.json()["error_code"] == "ALREADY_COMPLETED"

        response = client.post(f"{API}/sessions/{user}/tasks/{task_id}/uncomplete")
        assert response.json()["changed"] is True
        assert response.json()["progress"]["xp"] == 0

        response = client.post(f"{API}/sessions/{user}/tasks/{task_id}/uncomplete")
        assert response.status_code == 200
        assert response.json()["changed"] is False

    def test_matching_win_visible_on_challenge(self, client, service, user):
        task_id = self.add_task(client, "Tidy desk", "low")
        client.post(
            f"{API}/sessions/{user}/tasks/{task_id}/challenge",
            json={"game": "matching", "difficulty": "easy"},
        )
        engine = service.session_manager.get_session(user).engine
        game = engine.game

        for first, second in pair_positions(game).values():
            client.post(f"{API}/sessions/{user}/challenge/matching/{first}")
            client.post(f"{API}/sessions/{user}/challenge/matching/{second}")
            engine.scheduler.advance(game.resolve_delay)

        response = client.get(f"{API}/sessions/{user}/challenge")
        assert response.status_code == 200
        assert response.json()["status"] == "won"
        assert response.json()["unlocked_achievements"] == ["first-task"]

    def test_delete_task(self, client, user):
        task_id = self.add_task(client)
        response = client.delete(f"{API}/sessions/{user}/tasks/{task_id}")
        assert response.status_code == 200
        assert response.json()["progress"]["tasks"] == []

        response = client.delete(f"{API}/sessions/{user}/tasks/{task_id}")
        assert response.status_code == 404

    def test_logout(self, client, user):
        response = client.delete(f"{API}/sessions/{user}")
        assert response.json() == {"success": True, "user_key": USER}
