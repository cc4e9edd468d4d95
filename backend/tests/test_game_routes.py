from __future__ import annotations

import os
import random
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

os.environ.setdefault("GYMIDLE_DATABASE_URL", "sqlite://")

from gymidle.catalog import load_catalog  # noqa: E402
from gymidle.config import get_settings  # noqa: E402
from gymidle.db.base import Base  # noqa: E402
from gymidle.db.session import build_session_factory  # noqa: E402
from gymidle.errors import ConcurrencyConflictError, GameError, NotFoundError, PreconditionError  # noqa: E402
from gymidle.game_routes import get_game_service, status_for_error  # noqa: E402
from gymidle.game_service import GameService  # noqa: E402
from gymidle.main import app  # noqa: E402

HEADERS = {"X-User-Id": "lifter"}


@pytest.fixture
def client(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'routes.db'}", future=True)
    Base.metadata.create_all(engine)
    service = GameService(
        catalog=load_catalog(),
        session_factory=build_session_factory(engine),
        clock=lambda: datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc),
        rng=random.Random(7),
        daily_reset_hour_utc=0,
    )
    app.dependency_overrides[get_game_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
    engine.dispose()


def test_player_creation_and_duplicate(client: TestClient) -> None:
    created = client.post("/api/game/players", headers=HEADERS)
    assert created.status_code == 201
    assert created.json()["player"]["energy"] == 180.0

    duplicate = client.post("/api/game/players", headers=HEADERS)
    assert duplicate.status_code == 409
    error = duplicate.json()["error"]
    assert error["code"] == "precondition_failed"
    assert error["details"]["condition"] == "player_exists"
    assert error["retryable"] is False


def test_user_header_is_required(client: TestClient) -> None:
    assert client.get("/api/game/progress").status_code == 422
    missing = client.get("/api/game/progress", headers={"X-User-Id": "ghost"})
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "not_found"


def test_workout_round_trip(client: TestClient) -> None:
    client.post("/api/game/players", headers=HEADERS)
    response = client.post("/api/game/workouts", headers=HEADERS, json={"exercise_id": "dumbbell_curls"})
    assert response.status_code == 200
    body = response.json()
    assert body["action"] == "workout"
    assert body["xp_gained"] == 17
    assert body["energy_spent"] == 10
    assert body["stat_gains"]["strength"] == 1

    invalid = client.post("/api/game/workouts", headers=HEADERS, json={"exercise_id": "dumbbell_curls", "intensity": 0})
    assert invalid.status_code == 400
    assert invalid.json()["error"]["code"] == "validation_error"


def test_read_views(client: TestClient) -> None:
    client.post("/api/game/players", headers=HEADERS)

    adventures = client.get("/api/game/adventures", headers=HEADERS).json()
    assert len(adventures) == 6
    shop = client.get("/api/game/shop", headers=HEADERS).json()
    assert sorted(shop) == ["energy_boosters", "special_items", "supplements"]
    assert all(len(items) == 3 for items in shop.values())
    research = client.get("/api/game/research", headers=HEADERS).json()
    assert len(research) == 18
    assert all(len(entry["tiers"]) == 4 for entry in research)
    assert len(client.get("/api/game/proficiencies", headers=HEADERS).json()) == 18
    assert client.get("/api/game/adventures/history", headers=HEADERS).json() == []


def test_exercise_listing(client: TestClient) -> None:
    client.post("/api/game/players", headers=HEADERS)
    response = client.get("/api/game/exercises", headers=HEADERS)
    assert response.status_code == 200
    exercises = {entry["exercise_id"]: entry for entry in response.json()}
    assert len(exercises) == 18
    curls = exercises["dumbbell_curls"]
    assert (curls["category"], curls["stat_type"]) == ("strength", "strength")
    assert (curls["base_xp"], curls["base_energy"], curls["energy_cost"]) == (10, 10, 10)
    assert curls["research_tier"] == 0
    assert curls["can_afford"] is True


def test_adventure_and_shop_routes(client: TestClient) -> None:
    client.post("/api/game/players", headers=HEADERS)
    offers = client.get("/api/game/adventures", headers=HEADERS).json()
    easy = next(offer for offer in offers if offer["difficulty"] == "easy" and offer["meets_requirements"])

    attempt = client.post("/api/game/adventures/attempts", headers=HEADERS, json={"adventure_id": easy["adventure_id"]})
    assert attempt.status_code == 200
    assert attempt.json()["details"]["attempt"]["status"] == "in_progress"
    claim = client.post("/api/game/adventures/claim", headers=HEADERS)
    assert claim.status_code == 200
    assert claim.json()["details"]["claimed"] == []

    item = client.get("/api/game/shop", headers=HEADERS).json()["energy_boosters"][0]
    purchase = client.post("/api/game/shop/purchases", headers=HEADERS, json={"item_id": item["item_id"]})
    assert purchase.status_code == 409
    assert purchase.json()["error"]["details"]["condition"] == "insufficient_cash"

    unlock = client.post("/api/game/research/unlock", headers=HEADERS, json={"exercise_id": "dumbbell_curls", "tier": 1})
    assert unlock.status_code == 409
    assert unlock.json()["error"]["details"]["condition"] == "proficiency_too_low"


def test_daily_reset_route_is_gated(client: TestClient) -> None:
    client.post("/api/game/players", headers=HEADERS)
    assert client.post("/api/game/daily-reset", headers=HEADERS).status_code == 404

    app.dependency_overrides[get_settings] = lambda: get_settings().model_copy(update={"debug_endpoints": True})
    response = client.post("/api/game/daily-reset", headers=HEADERS)
    assert response.status_code == 200
    assert response.json()["daily_reset_occurred"] is True


class _ConflictingService:
    def get_progress(self, user_id: str):
        raise ConcurrencyConflictError("Busy.", details={"action": "get_progress", "attempts": 4})


def test_conflicts_are_retryable() -> None:
    app.dependency_overrides[get_game_service] = lambda: _ConflictingService()
    try:
        response = TestClient(app).get("/api/game/progress", headers=HEADERS)
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 409
    assert response.headers["retry-after"] == "1"
    assert response.json()["error"]["retryable"] is True


def test_status_mapping_follows_error_hierarchy() -> None:
    class ExerciseMissing(NotFoundError):
        pass

    assert status_for_error(ExerciseMissing("gone")) == 404
    assert status_for_error(PreconditionError("rule", "nope")) == 409
    assert status_for_error(GameError("unknown")) == 500
