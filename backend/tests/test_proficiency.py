from __future__ import annotations

import pytest

from gymidle import proficiency
from gymidle.proficiency import Grade


def test_intensity_multiplier_range() -> None:
    assert proficiency.intensity_multiplier(1) == 1.0
    assert proficiency.intensity_multiplier(3) == 1.5
    assert proficiency.intensity_multiplier(5) == 2.0
    with pytest.raises(ValueError):
        proficiency.intensity_multiplier(0)
    with pytest.raises(ValueError):
        proficiency.intensity_multiplier(6)


def test_fresh_exercise_gain() -> None:
    assert proficiency.proficiency_gain(20, intensity=1) == 44
    assert proficiency.proficiency_gain(20, intensity=3) == 66


def test_minimum_gain_floor() -> None:
    assert proficiency.proficiency_gain(1, intensity=1, grade=Grade.MISS) == proficiency.MIN_GAIN
    assert proficiency.proficiency_gain(50, current_proficiency=1000) == proficiency.MIN_GAIN


def test_grade_multipliers_order_gains() -> None:
    gains = [proficiency.proficiency_gain(20, grade=grade) for grade in ("perfect", "good", "okay", "miss")]
    assert gains == sorted(gains, reverse=True)


def test_diminishing_returns() -> None:
    assert proficiency.global_diminishing_returns(0) == 1.0
    assert proficiency.global_diminishing_returns(1000) == 0.0
    assert proficiency.daily_diminishing_returns(30) == 1.0
    assert proficiency.daily_diminishing_returns(120) == pytest.approx(0.5)


def test_gain_never_rises_with_proficiency() -> None:
    gains = [proficiency.proficiency_gain(20, current_proficiency=level) for level in range(0, 1001, 25)]
    assert all(later <= earlier for earlier, later in zip(gains, gains[1:]))
    assert gains[0] > gains[-1]


def test_gain_never_rises_past_the_daily_soft_limit() -> None:
    spent = range(proficiency.DAILY_ENERGY_SOFT_LIMIT, 601, 10)
    gains = [proficiency.proficiency_gain(20, daily_energy_spent=amount) for amount in spent]
    assert all(later <= earlier for earlier, later in zip(gains, gains[1:]))
    assert gains[0] > gains[-1]


def test_near_cap_clamps_and_reports_applied_gain() -> None:
    update = proficiency.apply_workout(995, 0, 1, intensity=1, grade=Grade.MISS)
    assert update.proficiency == 1000
    assert update.gained == 5


def test_daily_counter_restarts_on_new_day() -> None:
    same_day = proficiency.apply_workout(100, 50, 10)
    new_day = proficiency.apply_workout(100, 50, 10, new_day=True)
    assert same_day.daily_energy_spent == 60
    assert new_day.daily_energy_spent == 10
    assert new_day.daily_reset
    assert new_day.gained >= same_day.gained


def test_boost_multiplies_gain() -> None:
    update = proficiency.apply_workout(0, 0, 20, intensity=1, boost_multiplier=2.0)
    assert update.gained == 88
