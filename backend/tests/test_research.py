from __future__ import annotations

import pytest

from gymidle import research
from gymidle.catalog import Exercise, GameCatalog
from gymidle.errors import PreconditionError


def _exercise(exercise_id: str, tiers: list[tuple[str, float]]) -> Exercise:
    return Exercise(
        id=exercise_id,
        name=exercise_id.title(),
        category="strength",
        base_reps=10,
        base_energy=10,
        base_xp=12,
        stat_type="strength",
        research_tiers=[
            {"tier": index, "name": f"Tier {index}", "benefit_type": benefit, "value": value}
            for index, (benefit, value) in enumerate(tiers, start=1)
        ],
    )


CURLS = _exercise(
    "curls",
    [("monetary", 10), ("energy_discount", 15), ("stat_boost", 1), ("energy_discount", 30)],
)
RUN = _exercise(
    "run",
    [("xp_boost", 10), ("max_energy", 20), ("regen_rate", 20), ("bonus_multiplier", 10)],
)
ROW = _exercise(
    "row",
    [("adventure_attempts", 1), ("xp_boost", 5), ("adventure_attempts", 1), ("max_energy", 10)],
)
CATALOG = GameCatalog([CURLS, RUN, ROW], [], [])


def _conditions(**overrides) -> str:
    kwargs = {"current_tier": 0, "requested_tier": 1, "proficiency": 1000, "proficiency_points": 10}
    kwargs.update(overrides)
    with pytest.raises(PreconditionError) as excinfo:
        research.check_unlock(CURLS, **kwargs)
    return excinfo.value.condition


def test_tier_costs() -> None:
    assert [research.tier_cost(tier) for tier in range(1, 5)] == [2, 4, 6, 8]


def test_unlock_returns_cost_when_allowed() -> None:
    assert research.check_unlock(CURLS, current_tier=0, requested_tier=1, proficiency=1000, proficiency_points=2) == 2
    assert research.check_unlock(CURLS, current_tier=2, requested_tier=3, proficiency=1000, proficiency_points=6) == 6


def test_unlock_rejections_name_the_rule() -> None:
    assert _conditions(current_tier=1, requested_tier=1) == "tier_already_unlocked"
    assert _conditions(requested_tier=2) == "tier_skip"
    assert _conditions(proficiency=999) == "proficiency_too_low"
    assert _conditions(proficiency_points=1) == "insufficient_proficiency_points"


def test_soft_reset_is_exactly_seven_hundred() -> None:
    assert research.soft_reset_proficiency(1000) == 700


def test_exercise_modifiers_accumulate_over_unlocked_tiers() -> None:
    assert research.exercise_modifiers(CURLS, 0) == research.ExerciseModifiers()
    modifiers = research.exercise_modifiers(CURLS, 4)
    assert modifiers.cash_per_workout == 10
    assert modifiers.energy_discount_percent == 45
    assert modifiers.stat_bonus == 1


def test_discounted_energy_never_below_one() -> None:
    assert research.discounted_energy_cost(10, 15) == 9
    assert research.discounted_energy_cost(2, 90) == 1
    assert research.discounted_energy_cost(10, 100) == 1


def test_aggregates_are_recomputed_from_every_upgrade() -> None:
    aggregates = research.compute_aggregates({"run": 4, "row": 3, "curls": 2}, CATALOG)
    assert aggregates.permanent_xp_gain_percent == 15
    assert aggregates.daily_adventure_limit == 4
    assert aggregates.permanent_energy_bonus == 20
    assert aggregates.energy_regen_bonus_percent == 20
    assert aggregates.adventure_bonus_percent == 10


def test_aggregates_without_upgrades_are_baseline() -> None:
    assert research.compute_aggregates({}, CATALOG) == research.ResearchAggregates()
    assert research.compute_aggregates({"unknown": 4}, CATALOG).daily_adventure_limit == 2
