"""Player-level helpers shared by every action: caps, XP payout and level-ups."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from . import energy as energy_model
from .daily_cycle import as_utc
from .xp_curve import level_from_xp, pp_gained_between


def energy_cap(player) -> float:
    """Soft cap: base maximum plus research ``max_energy`` benefits."""
    return float(player.max_energy) + float(player.permanent_energy_bonus or 0.0)


def regen_rate(player) -> float:
    return energy_model.regen_rate_per_hour(player.energy_regen_bonus_percent or 0.0)


def tick_energy(player, now: datetime) -> bool:
    """Persist passive regen up to ``now``. Returns True when anything changed."""
    last = as_utc(player.last_energy_update_at) if player.last_energy_update_at is not None else None
    if last is not None and now <= last:
        return False
    if last is None:
        player.last_energy_update_at = now
        return True
    player.energy = energy_model.tick_stored_energy(
        player.energy,
        last,
        now,
        cap=energy_cap(player),
        rate_per_hour=regen_rate(player),
    )
    player.last_energy_update_at = now
    return True


def spend_energy(player, amount: float) -> None:
    """Deduct from the stored (uncapped) value, floored at zero.

    Overflow above the soft cap is therefore used up before the capped portion.
    """
    player.energy = max(0.0, float(player.energy) - amount)


def restore(player, amount: float) -> None:
    player.energy = energy_model.restore_energy(player.energy, amount, energy_cap(player))


def refill(player) -> None:
    player.energy = energy_model.refill_energy(player.energy, energy_cap(player))


@dataclass(frozen=True)
class XpAward:
    xp_gained: int
    previous_level: int
    level: int
    proficiency_points_gained: int

    @property
    def leveled_up(self) -> bool:
        return self.level > self.previous_level


def award_xp(player, amount: int) -> XpAward:
    """Add XP, recompute the cached level and pay out every level crossed.

    A level-up refills energy to the soft cap without clipping overflow.
    """
    amount = max(0, int(amount))
    previous_level = player.level
    player.xp = int(player.xp) + amount
    new_level = level_from_xp(player.xp)
    gained_points = 0
    if new_level > previous_level:
        gained_points = pp_gained_between(previous_level, new_level)
        player.proficiency_points += gained_points
        player.level = new_level
        refill(player)
    return XpAward(
        xp_gained=amount,
        previous_level=previous_level,
        level=player.level,
        proficiency_points_gained=gained_points,
    )


def add_stat(player, stat: str, amount: int) -> int:
    """Stats never decrease; negative amounts are ignored."""
    amount = max(0, int(amount))
    setattr(player, stat, getattr(player, stat) + amount)
    return amount


__all__ = [
    "XpAward",
    "add_stat",
    "award_xp",
    "energy_cap",
    "refill",
    "regen_rate",
    "restore",
    "spend_energy",
    "tick_energy",
]
