"""Per-exercise proficiency growth with global and per-day diminishing returns."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from .mathutil import round_half_up

K = 2.2
MIN_GAIN = 6
MAX_PROFICIENCY = 1000
DAILY_ENERGY_SOFT_LIMIT = 30
MAX_DAILY_STAT_GAIN_EVENTS = 5


class Grade(str, Enum):
    PERFECT = "perfect"
    GOOD = "good"
    OKAY = "okay"
    MISS = "miss"


GRADE_MULTIPLIERS = {
    Grade.PERFECT: 1.2,
    Grade.GOOD: 1.0,
    Grade.OKAY: 0.8,
    Grade.MISS: 0.4,
}


def intensity_multiplier(intensity: int) -> float:
    if intensity < 1 or intensity > 5:
        raise ValueError(f"Intensity must be between 1 and 5, got {intensity}.")
    return 1 + 0.25 * (intensity - 1)


def grade_multiplier(grade: Grade | str) -> float:
    return GRADE_MULTIPLIERS[Grade(grade)]


def global_diminishing_returns(proficiency: float) -> float:
    ratio = min(max(proficiency, 0), MAX_PROFICIENCY) / MAX_PROFICIENCY
    return 1 - ratio**0.8


def daily_diminishing_returns(daily_energy_spent: float) -> float:
    if daily_energy_spent <= DAILY_ENERGY_SOFT_LIMIT:
        return 1.0
    return math.sqrt(DAILY_ENERGY_SOFT_LIMIT / daily_energy_spent)


def proficiency_gain(
    energy_spent: float,
    *,
    intensity: int = 3,
    grade: Grade | str = Grade.GOOD,
    current_proficiency: float = 0,
    daily_energy_spent: float = 0,
) -> int:
    raw = (
        K
        * energy_spent
        * intensity_multiplier(intensity)
        * grade_multiplier(grade)
        * global_diminishing_returns(current_proficiency)
        * daily_diminishing_returns(daily_energy_spent)
    )
    return round_half_up(max(MIN_GAIN, raw))


@dataclass(frozen=True)
class ProficiencyUpdate:
    previous: int
    proficiency: int
    gained: int
    daily_energy_spent: int
    daily_reset: bool


def apply_workout(
    current_proficiency: int,
    daily_energy_spent: int,
    energy_spent: int,
    *,
    intensity: int = 3,
    grade: Grade | str = Grade.GOOD,
    new_day: bool = False,
    boost_multiplier: float = 1.0,
) -> ProficiencyUpdate:
    """Apply one workout to an exercise's proficiency.

    On the first workout of a new day the daily counter restarts at the amount
    just spent. ``gained`` reports the applied increase after the 1000 clamp.
    """
    counted_daily = 0 if new_day else daily_energy_spent
    gain = proficiency_gain(
        energy_spent,
        intensity=intensity,
        grade=grade,
        current_proficiency=current_proficiency,
        daily_energy_spent=counted_daily,
    )
    if boost_multiplier != 1.0:
        gain = round_half_up(gain * boost_multiplier)
    updated = min(MAX_PROFICIENCY, current_proficiency + gain)
    return ProficiencyUpdate(
        previous=current_proficiency,
        proficiency=updated,
        gained=updated - current_proficiency,
        daily_energy_spent=counted_daily + energy_spent,
        daily_reset=new_day,
    )


__all__ = [
    "DAILY_ENERGY_SOFT_LIMIT",
    "GRADE_MULTIPLIERS",
    "Grade",
    "K",
    "MAX_DAILY_STAT_GAIN_EVENTS",
    "MAX_PROFICIENCY",
    "MIN_GAIN",
    "ProficiencyUpdate",
    "apply_workout",
    "daily_diminishing_returns",
    "global_diminishing_returns",
    "grade_multiplier",
    "intensity_multiplier",
    "proficiency_gain",
]
