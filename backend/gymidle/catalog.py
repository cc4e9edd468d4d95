"""Static game catalog: exercises (with research ladders), adventures and shop items."""

from __future__ import annotations

import json
import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .config import get_settings

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"

StatName = Literal["strength", "stamina", "mobility"]
STAT_NAMES: tuple[StatName, ...] = ("strength", "stamina", "mobility")


class BenefitType(str, Enum):
    MONETARY = "monetary"
    ENERGY_DISCOUNT = "energy_discount"
    STAT_BOOST = "stat_boost"
    XP_BOOST = "xp_boost"
    BONUS_MULTIPLIER = "bonus_multiplier"
    ADVENTURE_ATTEMPTS = "adventure_attempts"
    MAX_ENERGY = "max_energy"
    REGEN_RATE = "regen_rate"


class ResearchTierDefinition(BaseModel):
    tier: int = Field(..., ge=1, le=4)
    name: str
    benefit_type: BenefitType
    value: float = Field(..., ge=0)
    is_percentage: bool = False


class Exercise(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    category: Literal["strength", "endurance", "mobility"]
    base_reps: int = Field(..., ge=1)
    base_energy: int = Field(..., ge=1)
    base_xp: int = Field(..., ge=0)
    stat_type: StatName
    stat_gain_amount: int = Field(default=1, ge=0)
    is_active: bool = True
    research_tiers: List[ResearchTierDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_ladder(self) -> "Exercise":
        tiers = [definition.tier for definition in self.research_tiers]
        if tiers and tiers != [1, 2, 3, 4]:
            raise ValueError(f"Exercise {self.id} must define research tiers 1-4 in order, got {tiers}.")
        return self

    def tier_definition(self, tier: int) -> Optional[ResearchTierDefinition]:
        for definition in self.research_tiers:
            if definition.tier == tier:
                return definition
        return None


class StatBlock(BaseModel):
    strength: int = Field(default=0, ge=0)
    stamina: int = Field(default=0, ge=0)
    mobility: int = Field(default=0, ge=0)

    def total(self) -> int:
        return self.strength + self.stamina + self.mobility


class Adventure(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    difficulty: Literal["easy", "medium", "hard", "legendary"]
    energy_cost: int = Field(..., ge=0)
    xp_reward: int = Field(..., ge=0)
    cash_reward: int = Field(default=0, ge=0)
    stat_reward: StatBlock = Field(default_factory=StatBlock)
    strength_req: int = Field(default=0, ge=0)
    stamina_req: int = Field(default=0, ge=0)
    mobility_req: int = Field(default=0, ge=0)
    duration_minutes: int = Field(..., ge=1)
    is_active: bool = True


class ShopEffect(str, Enum):
    ENERGY_RESTORE = "energy_restore"
    FULL_RESTORE = "full_restore"
    STAT_BOOST = "stat_boost"
    MAX_ENERGY = "max_energy"
    XP_BOOST = "xp_boost"
    PROFICIENCY_BOOST = "proficiency_boost"
    LUCK_BOOST = "luck_boost"
    DAILY_RESET = "daily_reset"
    MASTER_PACKAGE = "master_package"


class ShopItem(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    category: Literal["energy_boosters", "supplements", "special_items"]
    cost: int = Field(..., ge=0)
    effect_type: ShopEffect
    effect_value: int = Field(default=0, ge=0)
    stat_type: Optional[StatName] = None
    daily_limit: Optional[int] = Field(default=None, ge=1)
    multiplier: Optional[float] = Field(default=None, gt=1.0)
    is_active: bool = True

    @model_validator(mode="after")
    def _check_effect(self) -> "ShopItem":
        if self.effect_type == ShopEffect.STAT_BOOST and self.stat_type is None:
            raise ValueError(f"Shop item {self.id} boosts a stat but names none.")
        return self


class GameCatalog:
    """Indexed, read-only view over the three catalogs."""

    def __init__(
        self,
        exercises: List[Exercise],
        adventures: List[Adventure],
        shop_items: List[ShopItem],
    ) -> None:
        self.exercises: Dict[str, Exercise] = _index(exercises, "exercise")
        self.adventures: Dict[str, Adventure] = _index(adventures, "adventure")
        self.shop_items: Dict[str, ShopItem] = _index(shop_items, "shop item")

    def exercise(self, exercise_id: str) -> Optional[Exercise]:
        return self.exercises.get(exercise_id)

    def adventure(self, adventure_id: str) -> Optional[Adventure]:
        return self.adventures.get(adventure_id)

    def shop_item(self, item_id: str) -> Optional[ShopItem]:
        return self.shop_items.get(item_id)

    def active_adventures(self) -> List[Adventure]:
        return [adventure for adventure in self.adventures.values() if adventure.is_active]

    def active_shop_items(self) -> List[ShopItem]:
        return [item for item in self.shop_items.values() if item.is_active]


def _index(entries: list, label: str) -> dict:
    indexed: dict = {}
    for entry in entries:
        if entry.id in indexed:
            raise ValueError(f"Duplicate {label} id in catalog: {entry.id}")
        indexed[entry.id] = entry
    return indexed


def load_catalog(data_dir: Path | str | None = None) -> GameCatalog:
    directory = Path(data_dir) if data_dir else DATA_DIR
    exercises = [Exercise.model_validate(item) for item in _read_json(directory / "exercises.json")]
    adventures = [Adventure.model_validate(item) for item in _read_json(directory / "adventures.json")]
    shop_items = [ShopItem.model_validate(item) for item in _read_json(directory / "shop_items.json")]
    logger.info(
        "Loaded catalog from %s: %d exercises, %d adventures, %d shop items",
        directory,
        len(exercises),
        len(adventures),
        len(shop_items),
    )
    return GameCatalog(exercises, adventures, shop_items)


def _read_json(path: Path) -> list:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, list):
        raise ValueError(f"Catalog file {path} must contain a JSON list.")
    return payload


@lru_cache
def get_catalog() -> GameCatalog:
    return load_catalog(get_settings().catalog_dir)


__all__ = [
    "Adventure",
    "BenefitType",
    "Exercise",
    "GameCatalog",
    "ResearchTierDefinition",
    "STAT_NAMES",
    "ShopEffect",
    "ShopItem",
    "StatBlock",
    "StatName",
    "get_catalog",
    "load_catalog",
]
