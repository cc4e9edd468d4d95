"""Daily boundary detection and content rotation.

The boundary is detected lazily: every read of a player compares the stored
reset date with the current game day. There is no scheduler, so each player's
reset happens on their next request after the boundary.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from .catalog import Adventure, ShopItem

T = TypeVar("T")

ROTATION_SEED_RANGE = 1_000_000
ADVENTURE_DISTRIBUTION: Sequence[tuple[str, int]] = (
    ("easy", 2),
    ("medium", 2),
    ("hard", 1),
    ("legendary", 1),
)
SHOP_CATEGORIES: Sequence[str] = ("energy_boosters", "supplements", "special_items")
SHOP_ITEMS_PER_CATEGORY = 3


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and normalise aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def game_day(now: datetime, reset_hour_utc: int = 0) -> date:
    return (as_utc(now) - timedelta(hours=reset_hour_utc)).date()


def next_reset_at(now: datetime, reset_hour_utc: int = 0) -> datetime:
    following = game_day(now, reset_hour_utc) + timedelta(days=1)
    return datetime.combine(following, time(hour=reset_hour_utc), tzinfo=timezone.utc)


def needs_reset(last_reset: Optional[date], today: date) -> bool:
    return last_reset is None or last_reset != today


def new_rotation_seed(rng: random.Random) -> int:
    return rng.randrange(ROTATION_SEED_RANGE)


@dataclass(frozen=True)
class DailyResetOutcome:
    game_day: date
    proficiencies_reset: int
    shop_rotation_seed: int
    adventure_rotation_seed: int


def apply_daily_reset(player, proficiencies: Iterable, today: date, rng: random.Random) -> DailyResetOutcome:
    """Reset daily-scoped counters and rotate seeds in place.

    Energy and its timestamp are not touched.
    Purchase records are removed by the repository.
    """
    count = 0
    for record in proficiencies:
        record.daily_energy_spent = 0
        record.daily_stat_gain_events = 0
        record.last_daily_reset_date = today
        count += 1
    player.daily_adventure_attempts_used = 0
    player.shop_rotation_seed = new_rotation_seed(rng)
    player.adventure_rotation_seed = new_rotation_seed(rng)
    player.last_daily_reset_date = today
    return DailyResetOutcome(
        game_day=today,
        proficiencies_reset=count,
        shop_rotation_seed=player.shop_rotation_seed,
        adventure_rotation_seed=player.adventure_rotation_seed,
    )


def rotate_items(items: Sequence[T], seed: int, count: int) -> List[T]:
    """Deterministic seeded shuffle, keeping the first ``count`` entries."""
    if len(items) <= count:
        return list(items)
    shuffled = list(items)
    for index in range(len(shuffled) - 1, 0, -1):
        swap = (seed + index) % (index + 1)
        shuffled[index], shuffled[swap] = shuffled[swap], shuffled[index]
    return shuffled[:count]


def select_daily_adventures(adventures: Iterable[Adventure], seed: int) -> List[Adventure]:
    by_difficulty: Dict[str, List[Adventure]] = {}
    for adventure in sorted(adventures, key=lambda entry: entry.id):
        by_difficulty.setdefault(adventure.difficulty, []).append(adventure)

    selected: List[Adventure] = []
    for difficulty, count in ADVENTURE_DISTRIBUTION:
        pool = by_difficulty.get(difficulty, [])
        if not pool:
            continue
        offset = (seed * count) % len(pool)
        picks = min(count, len(pool))
        for step in range(picks):
            selected.append(pool[(offset + step) % len(pool)])
    return selected


def select_daily_shop_items(items: Iterable[ShopItem], seed: int) -> Dict[str, List[ShopItem]]:
    by_category: Dict[str, List[ShopItem]] = {category: [] for category in SHOP_CATEGORIES}
    for item in sorted(items, key=lambda entry: entry.id):
        by_category.setdefault(item.category, []).append(item)
    return {
        category: rotate_items(pool, seed, SHOP_ITEMS_PER_CATEGORY)
        for category, pool in by_category.items()
    }


__all__ = [
    "ADVENTURE_DISTRIBUTION",
    "DailyResetOutcome",
    "SHOP_ITEMS_PER_CATEGORY",
    "apply_daily_reset",
    "as_utc",
    "game_day",
    "needs_reset",
    "new_rotation_seed",
    "next_reset_at",
    "rotate_items",
    "select_daily_adventures",
    "select_daily_shop_items",
]
