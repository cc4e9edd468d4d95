"""Research tiers: unlock rules, per-exercise modifiers and account-wide aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from .catalog import BenefitType, Exercise, GameCatalog, ResearchTierDefinition
from .errors import PreconditionError
from .mathutil import round_half_up

MAX_TIER = 4
TIER_COSTS: Dict[int, int] = {1: 2, 2: 4, 3: 6, 4: 8}
REQUIRED_PROFICIENCY = 1000
SOFT_RESET_PROFICIENCY = 700
BASE_DAILY_ADVENTURE_LIMIT = 2


def tier_cost(tier: int) -> int:
    return TIER_COSTS[tier]


def check_unlock(
    exercise: Exercise,
    *,
    current_tier: int,
    requested_tier: int,
    proficiency: int,
    proficiency_points: int,
) -> int:
    """Validate a tier unlock and return its cost.

    Raises ``PreconditionError`` naming the first unmet condition.
    """
    if not exercise.research_tiers:
        raise PreconditionError("no_research_ladder", f"{exercise.name} has no research tiers.")
    if requested_tier <= current_tier:
        raise PreconditionError(
            "tier_already_unlocked",
            f"{exercise.name} is already at research tier {current_tier}.",
            details={"current_tier": current_tier, "requested_tier": requested_tier},
        )
    if requested_tier != current_tier + 1:
        raise PreconditionError(
            "tier_skip",
            f"Research tier {requested_tier} requires tier {requested_tier - 1} first.",
            details={"current_tier": current_tier, "requested_tier": requested_tier},
        )
    if proficiency < REQUIRED_PROFICIENCY:
        raise PreconditionError(
            "proficiency_too_low",
            f"{exercise.name} must reach {REQUIRED_PROFICIENCY} proficiency first.",
            details={"proficiency": proficiency, "required": REQUIRED_PROFICIENCY},
        )
    cost = tier_cost(requested_tier)
    if proficiency_points < cost:
        raise PreconditionError(
            "insufficient_proficiency_points",
            f"Not enough proficiency points. Need {cost}, have {proficiency_points}.",
            details={"cost": cost, "available": proficiency_points},
        )
    return cost


def soft_reset_proficiency(_current: int) -> int:
    # Unconditional: an unlock always lands on exactly 700.
    return SOFT_RESET_PROFICIENCY


def unlocked_tiers(exercise: Exercise, tier: int) -> List[ResearchTierDefinition]:
    return [definition for definition in exercise.research_tiers if definition.tier <= tier]


@dataclass(frozen=True)
class ExerciseModifiers:
    """Benefits that only apply to workouts of the researched exercise."""

    energy_discount_percent: float = 0.0
    stat_bonus: int = 0
    cash_per_workout: int = 0


def exercise_modifiers(exercise: Exercise, tier: int) -> ExerciseModifiers:
    discount = 0.0
    stat_bonus = 0
    cash = 0
    for definition in unlocked_tiers(exercise, tier):
        if definition.benefit_type == BenefitType.ENERGY_DISCOUNT:
            discount += definition.value
        elif definition.benefit_type == BenefitType.STAT_BOOST:
            stat_bonus += int(definition.value)
        elif definition.benefit_type == BenefitType.MONETARY:
            cash += int(definition.value)
    return ExerciseModifiers(
        energy_discount_percent=min(discount, 100.0),
        stat_bonus=stat_bonus,
        cash_per_workout=cash,
    )


def discounted_energy_cost(base_energy: int, discount_percent: float) -> int:
    return max(1, round_half_up(base_energy * (1 - discount_percent / 100)))


@dataclass(frozen=True)
class ResearchAggregates:
    permanent_xp_gain_percent: float = 0.0
    daily_adventure_limit: int = BASE_DAILY_ADVENTURE_LIMIT
    permanent_energy_bonus: float = 0.0
    energy_regen_bonus_percent: float = 0.0
    adventure_bonus_percent: float = 0.0


def compute_aggregates(upgrades: Mapping[str, int], catalog: GameCatalog) -> ResearchAggregates:
    """Sum every unlocked tier across every exercise.

    Always recomputed from the full upgrade set so partial updates never drift.
    """
    xp_percent = 0.0
    extra_adventures = 0
    energy_bonus = 0.0
    regen_percent = 0.0
    bonus_percent = 0.0
    for exercise_id, tier in upgrades.items():
        exercise: Optional[Exercise] = catalog.exercise(exercise_id)
        if exercise is None:
            continue
        for definition in unlocked_tiers(exercise, tier):
            if definition.benefit_type == BenefitType.XP_BOOST:
                xp_percent += definition.value
            elif definition.benefit_type == BenefitType.ADVENTURE_ATTEMPTS:
                extra_adventures += int(definition.value)
            elif definition.benefit_type == BenefitType.MAX_ENERGY:
                energy_bonus += definition.value
            elif definition.benefit_type == BenefitType.REGEN_RATE:
                regen_percent += definition.value
            elif definition.benefit_type == BenefitType.BONUS_MULTIPLIER:
                bonus_percent += definition.value
    return ResearchAggregates(
        permanent_xp_gain_percent=xp_percent,
        daily_adventure_limit=BASE_DAILY_ADVENTURE_LIMIT + extra_adventures,
        permanent_energy_bonus=energy_bonus,
        energy_regen_bonus_percent=regen_percent,
        adventure_bonus_percent=bonus_percent,
    )


__all__ = [
    "BASE_DAILY_ADVENTURE_LIMIT",
    "ExerciseModifiers",
    "MAX_TIER",
    "REQUIRED_PROFICIENCY",
    "ResearchAggregates",
    "SOFT_RESET_PROFICIENCY",
    "TIER_COSTS",
    "check_unlock",
    "compute_aggregates",
    "discounted_energy_cost",
    "exercise_modifiers",
    "soft_reset_proficiency",
    "tier_cost",
    "unlocked_tiers",
]
