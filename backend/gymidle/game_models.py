"""Pydantic request and response models for the progression API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .adventures import AttemptStatus
from .errors import ValidationError
from .proficiency import Grade

ModelT = TypeVar("ModelT", bound=BaseModel)


class WorkoutRequest(BaseModel):
    exercise_id: str = Field(..., min_length=1)
    reps: Optional[int] = Field(default=None, ge=1, le=300)
    intensity: int = Field(default=3, ge=1, le=5)
    grade: Grade = Grade.GOOD


class AdventureAttemptRequest(BaseModel):
    adventure_id: str = Field(..., min_length=1)


class ResearchUnlockRequest(BaseModel):
    exercise_id: str = Field(..., min_length=1)
    tier: int = Field(..., ge=1, le=4)


class PurchaseRequest(BaseModel):
    item_id: str = Field(..., min_length=1)


def parse_action(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate a raw payload, surfacing pydantic failures as game validation errors."""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        issues = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        raise ValidationError(f"Invalid {model.__name__} payload.", details={"issues": issues}) from exc


class StatsPayload(BaseModel):
    strength: int = 0
    stamina: int = 0
    mobility: int = 0


class PlayerSnapshotPayload(BaseModel):
    user_id: str
    energy: float
    energy_display: int
    energy_cap: float
    energy_regen_per_hour: float
    minutes_to_next_energy: int
    xp: int
    level: int
    xp_into_level: int
    xp_for_level: int
    level_progress: float
    is_max_level: bool
    stats: StatsPayload
    cash: int
    proficiency_points: int
    luck_boost_percent: float
    xp_boost_remaining_uses: int
    proficiency_boost_remaining_uses: int
    permanent_xp_gain_percent: float
    adventure_bonus_percent: float
    daily_adventure_attempts_used: int
    daily_adventure_limit: int
    game_day: date
    next_daily_reset_at: datetime


class ProficiencyPayload(BaseModel):
    exercise_id: str
    name: str
    proficiency: int
    daily_energy_spent: int
    daily_stat_gain_events: int
    total_reps_lifetime: int
    research_tier: int = 0


class ExercisePayload(BaseModel):
    """Catalog entry with the costs and per-workout rewards at the player's research tier."""

    exercise_id: str
    name: str
    category: str
    stat_type: str
    base_reps: int
    base_xp: int
    base_energy: int
    energy_cost: int
    stat_gain_amount: int
    cash_per_workout: int = 0
    research_tier: int = 0
    can_afford: bool


class ResearchTierPayload(BaseModel):
    tier: int
    name: str
    benefit_type: str
    value: float
    is_percentage: bool
    cost: int
    unlocked: bool
    can_unlock: bool


class ResearchExercisePayload(BaseModel):
    exercise_id: str
    name: str
    proficiency: int
    current_tier: int
    tiers: List[ResearchTierPayload] = Field(default_factory=list)


class AdventureOfferPayload(BaseModel):
    adventure_id: str
    name: str
    description: str
    difficulty: str
    energy_cost: int
    xp_reward: int
    cash_reward: int
    stat_reward: StatsPayload
    strength_req: int
    stamina_req: int
    mobility_req: int
    duration_minutes: int
    success_chance: float
    meets_requirements: bool
    attempted_today: bool


class AdventureAttemptPayload(BaseModel):
    attempt_id: int
    adventure_id: str
    status: AttemptStatus
    success: bool
    energy_spent: int
    attempted_at: datetime
    completed_at: datetime
    claimed_at: Optional[datetime] = None
    xp_gained: int
    cash_gained: int
    stat_gains: StatsPayload
    bonus_reward_triggered: bool = False
    xp_paid: Optional[int] = None
    cash_paid: Optional[int] = None


class ShopItemPayload(BaseModel):
    item_id: str
    name: str
    description: str
    category: str
    cost: int
    effect_type: str
    effect_value: int
    stat_type: Optional[str] = None
    daily_limit: Optional[int] = None
    purchased_today: int = 0


class ActionResult(BaseModel):
    """Outcome of any action: the fresh snapshot plus what the action paid out."""

    action: str
    player: PlayerSnapshotPayload
    xp_gained: int = 0
    proficiency_gained: int = 0
    proficiency_points_gained: int = 0
    cash_gained: int = 0
    energy_spent: float = 0
    energy_restored: float = 0
    stat_gains: StatsPayload = Field(default_factory=StatsPayload)
    leveled_up: bool = False
    levels_gained: int = 0
    daily_reset_occurred: bool = False
    bonus_reward_triggered: bool = False
    details: Dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "ActionResult",
    "AdventureAttemptPayload",
    "AdventureAttemptRequest",
    "AdventureOfferPayload",
    "ExercisePayload",
    "PlayerSnapshotPayload",
    "ProficiencyPayload",
    "PurchaseRequest",
    "ResearchExercisePayload",
    "ResearchTierPayload",
    "ResearchUnlockRequest",
    "ShopItemPayload",
    "StatsPayload",
    "WorkoutRequest",
    "parse_action",
]
