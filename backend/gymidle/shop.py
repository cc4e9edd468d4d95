"""Shop purchases: eligibility checks and item effects on the player aggregate."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from . import progress
from .adventures import MAX_LUCK_PERCENT
from .catalog import STAT_NAMES, ShopEffect, ShopItem
from .errors import PreconditionError
from .progress import XpAward

logger = logging.getLogger(__name__)

MASTER_PACKAGE_STATS = 3
MASTER_PACKAGE_ENERGY = 25
MASTER_PACKAGE_XP = 150
DEFAULT_BOOST_MULTIPLIER = 2.0


def check_purchase(
    item: ShopItem,
    *,
    cash: int,
    purchased_today: int,
    offered_today: bool,
) -> None:
    if not item.is_active:
        raise PreconditionError("item_inactive", f"{item.name} is no longer sold.")
    if not offered_today:
        raise PreconditionError("item_not_offered", f"{item.name} is not in today's shop.")
    if item.daily_limit is not None and purchased_today >= item.daily_limit:
        raise PreconditionError(
            "daily_purchase_limit",
            f"{item.name} can only be bought {item.daily_limit} time(s) per day.",
            details={"limit": item.daily_limit, "purchased": purchased_today},
        )
    if cash < item.cost:
        raise PreconditionError(
            "insufficient_cash",
            f"Not enough cash. Need {item.cost}, have {cash}.",
            details={"cost": item.cost, "available": cash},
        )


@dataclass
class PurchaseOutcome:
    item_id: str
    effect: ShopEffect
    cash_spent: int
    energy_restored: float = 0.0
    stat_gains: Dict[str, int] = field(default_factory=dict)
    max_energy_gained: int = 0
    boost_uses_added: int = 0
    luck_percent: Optional[float] = None
    stat_counters_reset: int = 0
    xp_award: Optional[XpAward] = None


def apply_purchase(player, item: ShopItem, proficiencies: Iterable = ()) -> PurchaseOutcome:
    """Deduct the cost and apply ``item``'s effect to ``player`` in place.

    ``proficiencies`` are the player's per-exercise rows; only the
    ``daily_reset`` effect touches them.
    """
    player.cash -= item.cost
    outcome = PurchaseOutcome(item_id=item.id, effect=item.effect_type, cash_spent=item.cost)
    before = float(player.energy)
    effect = item.effect_type

    if effect == ShopEffect.ENERGY_RESTORE:
        progress.restore(player, item.effect_value)
    elif effect == ShopEffect.FULL_RESTORE:
        progress.refill(player)
    elif effect == ShopEffect.STAT_BOOST:
        outcome.stat_gains[item.stat_type] = progress.add_stat(player, item.stat_type, item.effect_value)
    elif effect == ShopEffect.MAX_ENERGY:
        player.max_energy = float(player.max_energy) + item.effect_value
        outcome.max_energy_gained = item.effect_value
        progress.refill(player)
    elif effect == ShopEffect.XP_BOOST:
        player.xp_boost_remaining_uses += item.effect_value
        player.xp_boost_multiplier = item.multiplier or DEFAULT_BOOST_MULTIPLIER
        outcome.boost_uses_added = item.effect_value
    elif effect == ShopEffect.PROFICIENCY_BOOST:
        player.proficiency_boost_remaining_uses += item.effect_value
        player.proficiency_boost_multiplier = item.multiplier or DEFAULT_BOOST_MULTIPLIER
        outcome.boost_uses_added = item.effect_value
    elif effect == ShopEffect.LUCK_BOOST:
        player.luck_boost_percent = min(MAX_LUCK_PERCENT, float(player.luck_boost_percent) + item.effect_value)
        outcome.luck_percent = player.luck_boost_percent
    elif effect == ShopEffect.DAILY_RESET:
        for record in proficiencies:
            if record.daily_stat_gain_events:
                outcome.stat_counters_reset += 1
            record.daily_stat_gain_events = 0
    elif effect == ShopEffect.MASTER_PACKAGE:
        for stat in STAT_NAMES:
            outcome.stat_gains[stat] = progress.add_stat(player, stat, MASTER_PACKAGE_STATS)
        progress.restore(player, MASTER_PACKAGE_ENERGY)
        outcome.xp_award = progress.award_xp(player, MASTER_PACKAGE_XP)
    else:  # pragma: no cover - ShopEffect is exhaustive
        raise ValueError(f"Unhandled shop effect {effect}")

    outcome.energy_restored = round(float(player.energy) - before, 4)
    logger.debug("Applied %s (%s) for player %s", item.id, effect.value, getattr(player, "user_id", "?"))
    return outcome


__all__ = [
    "MASTER_PACKAGE_ENERGY",
    "MASTER_PACKAGE_STATS",
    "MASTER_PACKAGE_XP",
    "PurchaseOutcome",
    "apply_purchase",
    "check_purchase",
]
