"""Progression REST endpoints. The player is identified by the ``X-User-Id`` header."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .errors import (
    ConcurrencyConflictError,
    GameError,
    InternalError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from .game_models import (
    ActionResult,
    AdventureAttemptPayload,
    AdventureOfferPayload,
    ExercisePayload,
    ProficiencyPayload,
    ResearchExercisePayload,
    ShopItemPayload,
)
from .game_service import GameService

router = APIRouter(prefix="/api/game", tags=["game"])
logger = logging.getLogger(__name__)

STATUS_BY_ERROR: Dict[type, int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PreconditionError: status.HTTP_409_CONFLICT,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for_error(error: GameError) -> int:
    for error_type in type(error).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    status_code = status_for_error(exc)
    if status_code >= 500:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("Request %s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=status_code,
        content={"error": {**exc.to_payload(), "retryable": exc.retryable}},
        headers=headers,
    )


@lru_cache
def get_game_service() -> GameService:
    return GameService()


def require_user_id(x_user_id: str = Header(..., alias="X-User-Id", min_length=1, max_length=64)) -> str:
    user_id = x_user_id.strip()
    if not user_id:
        raise ValidationError("X-User-Id header must not be blank.")
    return user_id


@router.post("/players", status_code=status.HTTP_201_CREATED, response_model=ActionResult)
def create_player(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> ActionResult:
    return service.create_player(user_id)


@router.get("/progress", response_model=ActionResult)
def get_progress(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> ActionResult:
    return service.get_progress(user_id)


@router.post("/workouts", response_model=ActionResult)
def perform_workout(
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> ActionResult:
    return service.perform_workout(user_id, payload)


@router.get("/exercises", response_model=List[ExercisePayload])
def list_exercises(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> List[ExercisePayload]:
    return service.list_exercises(user_id)


@router.get("/proficiencies", response_model=List[ProficiencyPayload])
def list_proficiencies(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> List[ProficiencyPayload]:
    return service.list_proficiencies(user_id)


@router.get("/research", response_model=List[ResearchExercisePayload])
def research_overview(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> List[ResearchExercisePayload]:
    return service.research_overview(user_id)


@router.post("/research/unlock", response_model=ActionResult)
def unlock_research_tier(
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> ActionResult:
    return service.unlock_research_tier(user_id, payload)


@router.get("/adventures", response_model=List[AdventureOfferPayload])
def offered_adventures(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> List[AdventureOfferPayload]:
    return service.offered_adventures(user_id)


@router.post("/adventures/attempts", response_model=ActionResult)
def attempt_adventure(
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> ActionResult:
    return service.attempt_adventure(user_id, payload)


@router.post("/adventures/claim", response_model=ActionResult)
def claim_adventures(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> ActionResult:
    return service.claim_adventures(user_id)


@router.get("/adventures/history", response_model=List[AdventureAttemptPayload])
def adventure_history(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> List[AdventureAttemptPayload]:
    return service.adventure_history(user_id)


@router.get("/shop", response_model=Dict[str, List[ShopItemPayload]])
def offered_shop_items(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> Dict[str, List[ShopItemPayload]]:
    return service.offered_shop_items(user_id)


@router.post("/shop/purchases", response_model=ActionResult)
def purchase_item(
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
) -> ActionResult:
    return service.purchase_item(user_id, payload)


@router.post("/daily-reset", response_model=ActionResult)
def force_daily_reset(
    user_id: str = Depends(require_user_id),
    service: GameService = Depends(get_game_service),
    settings: Settings = Depends(get_settings),
) -> ActionResult:
    if not settings.debug_endpoints:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return service.force_daily_reset(user_id)


__all__ = [
    "STATUS_BY_ERROR",
    "game_error_handler",
    "get_game_service",
    "router",
    "status_for_error",
]
