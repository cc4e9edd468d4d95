"""Continuous energy regeneration and the soft cap / overcap presentations."""

from __future__ import annotations

import math
from datetime import datetime

from .mathutil import round_half_up

ENERGY_RATE_PER_HOUR = 5.0
ENERGY_CAP = 180.0
OVERCAP_BUFFER = 20.0
MAX_ENERGY_WITH_OVERFLOW = ENERGY_CAP + OVERCAP_BUFFER

# XP pacing: 200 XP per day against 120 energy per day at the base rate.
DAILY_XP_TARGET = 200
ENERGY_PER_DAY = 24 * ENERGY_RATE_PER_HOUR
XP_ENERGY_SCALE = DAILY_XP_TARGET / ENERGY_PER_DAY

_SECONDS_PER_HOUR = 3600.0


def regen_rate_per_hour(bonus_percent: float = 0.0) -> float:
    return ENERGY_RATE_PER_HOUR * (1.0 + max(0.0, bonus_percent) / 100.0)


def compute_energy_float(
    previous: float,
    last_update: datetime,
    now: datetime,
    *,
    rate_per_hour: float = ENERGY_RATE_PER_HOUR,
) -> float:
    """Return ``previous`` plus regen for the elapsed time; clock skew counts as zero."""
    elapsed_hours = max(0.0, (now - last_update).total_seconds() / _SECONDS_PER_HOUR)
    return previous + rate_per_hour * elapsed_hours


def soft_capped(energy: float, cap: float = ENERGY_CAP) -> float:
    return min(cap, energy)


def overcapped(energy: float, cap: float = ENERGY_CAP, buffer: float = OVERCAP_BUFFER) -> float:
    return min(cap + buffer, energy)


def tick_stored_energy(
    previous: float,
    last_update: datetime,
    now: datetime,
    *,
    cap: float = ENERGY_CAP,
    rate_per_hour: float = ENERGY_RATE_PER_HOUR,
) -> float:
    """Value to persist after passive regen.

    Regen stops at the soft cap, but an overflow that is already above the cap
    (from a refill or an energy item) is kept as is.
    """
    if previous >= cap:
        return previous
    current = compute_energy_float(previous, last_update, now, rate_per_hour=rate_per_hour)
    return soft_capped(current, cap)


def can_spend(energy: float, cost: float, cap: float = ENERGY_CAP) -> bool:
    return math.floor(soft_capped(energy, cap)) >= cost


def restore_energy(energy: float, amount: float, cap: float = ENERGY_CAP, buffer: float = OVERCAP_BUFFER) -> float:
    return overcapped(energy + max(0.0, amount), cap, buffer)


def refill_energy(energy: float, cap: float = ENERGY_CAP, buffer: float = OVERCAP_BUFFER) -> float:
    """Fill to the soft cap, keeping any overflow up to the overcap ceiling."""
    return overcapped(max(energy, cap), cap, buffer)


def minutes_to_next_energy(energy: float, rate_per_hour: float = ENERGY_RATE_PER_HOUR) -> int:
    minutes_per_point = 60.0 / rate_per_hour
    fractional = energy % 1
    if fractional == 0:
        return math.ceil(minutes_per_point)
    return math.ceil((1 - fractional) * minutes_per_point)


def scale_xp_reward(raw_xp: float) -> int:
    return max(1, round_half_up(raw_xp * XP_ENERGY_SCALE))


__all__ = [
    "ENERGY_CAP",
    "ENERGY_RATE_PER_HOUR",
    "MAX_ENERGY_WITH_OVERFLOW",
    "OVERCAP_BUFFER",
    "XP_ENERGY_SCALE",
    "can_spend",
    "compute_energy_float",
    "minutes_to_next_energy",
    "overcapped",
    "refill_energy",
    "regen_rate_per_hour",
    "restore_energy",
    "scale_xp_reward",
    "soft_capped",
    "tick_stored_energy",
]
