"""Adventure success model, reward payout and attempt eligibility."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict

from . import energy as energy_model
from .catalog import Adventure
from .errors import PreconditionError
from .mathutil import clamp, round_half_up

MIN_SUCCESS_CHANCE = 0.30
MAX_SUCCESS_CHANCE = 0.95
FAILURE_XP_RATIO = 0.3
BONUS_XP_MULTIPLIER = 1.5
BONUS_CASH_MULTIPLIER = 1.3
HISTORY_LIMIT = 20
MAX_LUCK_PERCENT = 100.0


class AttemptStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    READY_TO_CLAIM = "ready_to_claim"
    COMPLETED = "completed"


@dataclass(frozen=True)
class PlayerStats:
    strength: int
    stamina: int
    mobility: int


def _ratio(stat: int, requirement: int) -> float:
    if requirement <= 0:
        return 1.0
    return max(stat, 0) / requirement


def success_probability(stats: PlayerStats, adventure: Adventure) -> float:
    """Mean stat/requirement ratio, clamped so nothing is certain or impossible.

    Strength and stamina always count (as 1.0 when unrequired); mobility only
    joins the average when the adventure requires it.
    """
    ratios = [
        _ratio(stats.strength, adventure.strength_req),
        _ratio(stats.stamina, adventure.stamina_req),
    ]
    if adventure.mobility_req > 0:
        ratios.append(_ratio(stats.mobility, adventure.mobility_req))
    return clamp(sum(ratios) / len(ratios), MIN_SUCCESS_CHANCE, MAX_SUCCESS_CHANCE)


def meets_requirements(stats: PlayerStats, adventure: Adventure) -> bool:
    return (
        stats.strength >= adventure.strength_req
        and stats.stamina >= adventure.stamina_req
        and stats.mobility >= adventure.mobility_req
    )


def roll_success(probability: float, rng: random.Random) -> bool:
    return rng.random() < probability


@dataclass(frozen=True)
class RewardBundle:
    xp: int
    cash: int
    stats: Dict[str, int] = field(default_factory=lambda: {"strength": 0, "stamina": 0, "mobility": 0})


def base_rewards(adventure: Adventure, success: bool) -> RewardBundle:
    if success:
        return RewardBundle(
            xp=adventure.xp_reward,
            cash=adventure.cash_reward,
            stats=adventure.stat_reward.model_dump(),
        )
    return RewardBundle(xp=math.floor(adventure.xp_reward * FAILURE_XP_RATIO), cash=0)


def apply_research_bonus(rewards: RewardBundle, bonus_percent: float) -> RewardBundle:
    """Scale XP and cash by the account-wide research bonus. Stats are untouched."""
    if bonus_percent <= 0:
        return rewards
    factor = 1 + bonus_percent / 100
    return replace(
        rewards,
        xp=round_half_up(rewards.xp * factor),
        cash=round_half_up(rewards.cash * factor),
    )


def apply_luck(rewards: RewardBundle, luck_percent: float, rng: random.Random) -> tuple[RewardBundle, bool]:
    """Second, independent draw for the bonus multiplier."""
    chance = clamp(luck_percent, 0.0, MAX_LUCK_PERCENT)
    if chance <= 0 or rng.random() >= chance / 100:
        return rewards, False
    boosted = replace(
        rewards,
        xp=round_half_up(rewards.xp * BONUS_XP_MULTIPLIER),
        cash=round_half_up(rewards.cash * BONUS_CASH_MULTIPLIER),
    )
    return boosted, True


@dataclass(frozen=True)
class AttemptContext:
    """Everything the attempt rules need, read from the locked player state."""

    stats: PlayerStats
    energy: float
    energy_cap: float
    attempts_used: int
    daily_limit: int
    has_in_progress: bool
    attempted_today: bool
    offered_today: bool
    now: datetime
    next_reset: datetime


def completion_time(adventure: Adventure, started_at: datetime) -> datetime:
    return started_at + timedelta(minutes=adventure.duration_minutes)


def check_attempt(adventure: Adventure, context: AttemptContext) -> None:
    if context.has_in_progress:
        raise PreconditionError(
            "adventure_in_progress",
            "You already have an adventure in progress. Complete it before starting another.",
        )
    if context.attempts_used >= context.daily_limit:
        raise PreconditionError(
            "daily_adventure_limit",
            f"You have reached your daily adventure limit ({context.daily_limit} per day).",
            details={"used": context.attempts_used, "limit": context.daily_limit},
        )
    if context.attempted_today:
        raise PreconditionError("adventure_already_attempted", "You have already attempted this adventure today.")
    if not context.offered_today:
        raise PreconditionError("adventure_not_offered", f"{adventure.name} is not offered today.")
    if not energy_model.can_spend(context.energy, adventure.energy_cost, context.energy_cap):
        raise PreconditionError(
            "insufficient_energy",
            "Not enough energy.",
            details={"required": adventure.energy_cost, "available": math.floor(min(context.energy, context.energy_cap))},
        )
    if not meets_requirements(context.stats, adventure):
        raise PreconditionError(
            "stat_requirements_unmet",
            "You do not meet the stat requirements for this adventure.",
            details={
                "strength_req": adventure.strength_req,
                "stamina_req": adventure.stamina_req,
                "mobility_req": adventure.mobility_req,
            },
        )
    finishes_at = completion_time(adventure, context.now)
    if finishes_at > context.next_reset:
        minutes_left = int((context.next_reset - context.now).total_seconds() // 60)
        raise PreconditionError(
            "adventure_spans_reset",
            f"This adventure takes {adventure.duration_minutes} minutes but only {minutes_left} "
            "minutes remain before the daily reset.",
            details={"duration_minutes": adventure.duration_minutes, "minutes_left": minutes_left},
        )


__all__ = [
    "AttemptContext",
    "AttemptStatus",
    "BONUS_CASH_MULTIPLIER",
    "BONUS_XP_MULTIPLIER",
    "FAILURE_XP_RATIO",
    "HISTORY_LIMIT",
    "MAX_LUCK_PERCENT",
    "MAX_SUCCESS_CHANCE",
    "MIN_SUCCESS_CHANCE",
    "PlayerStats",
    "RewardBundle",
    "apply_luck",
    "apply_research_bonus",
    "base_rewards",
    "check_attempt",
    "completion_time",
    "meets_requirements",
    "roll_success",
    "success_probability",
]
