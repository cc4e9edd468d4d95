from __future__ import annotations

from types import SimpleNamespace

import pytest

from gymidle import progress, shop
from gymidle.catalog import ShopItem
from gymidle.errors import PreconditionError
from gymidle.xp_curve import level_from_xp, pp_gained_between


def _player(**overrides) -> SimpleNamespace:
    fields = {
        "user_id": "lifter",
        "cash": 500,
        "energy": 100.0,
        "max_energy": 180.0,
        "permanent_energy_bonus": 0.0,
        "strength": 1,
        "stamina": 1,
        "mobility": 1,
        "xp": 0,
        "level": 1,
        "proficiency_points": 0,
        "xp_boost_remaining_uses": 0,
        "xp_boost_multiplier": 1.0,
        "proficiency_boost_remaining_uses": 0,
        "proficiency_boost_multiplier": 1.0,
        "luck_boost_percent": 0.0,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _item(effect: str, value: int = 0, **extra) -> ShopItem:
    category = extra.pop("category", "special_items")
    return ShopItem(id=f"{effect}_item", name=effect.title(), category=category, cost=50, effect_type=effect, effect_value=value, **extra)


def test_energy_restore_respects_overcap() -> None:
    player = _player(energy=190.0)
    outcome = shop.apply_purchase(player, _item("energy_restore", 25, category="energy_boosters"))
    assert player.energy == 200.0
    assert outcome.energy_restored == 10.0
    assert player.cash == 450


def test_spending_draws_down_overflow_first() -> None:
    player = _player(energy=195.0)
    progress.spend_energy(player, 10)
    assert player.energy == 185.0
    progress.spend_energy(player, 200)
    assert player.energy == 0.0


def test_full_restore_fills_soft_cap() -> None:
    player = _player(energy=50.0)
    shop.apply_purchase(player, _item("full_restore", 100))
    assert player.energy == 180.0


def test_max_energy_raises_cap_and_refills() -> None:
    player = _player(energy=20.0)
    outcome = shop.apply_purchase(player, _item("max_energy", 15))
    assert player.max_energy == 195.0
    assert player.energy == 195.0
    assert outcome.max_energy_gained == 15


def test_stat_boost_targets_one_stat() -> None:
    player = _player()
    outcome = shop.apply_purchase(player, _item("stat_boost", 2, stat_type="stamina", category="supplements"))
    assert (player.strength, player.stamina, player.mobility) == (1, 3, 1)
    assert outcome.stat_gains == {"stamina": 2}


def test_boost_items_add_uses_at_their_multiplier() -> None:
    player = _player()
    shop.apply_purchase(player, _item("xp_boost", 3, multiplier=3.0))
    shop.apply_purchase(player, _item("proficiency_boost", 5))
    assert (player.xp_boost_remaining_uses, player.xp_boost_multiplier) == (3, 3.0)
    assert (player.proficiency_boost_remaining_uses, player.proficiency_boost_multiplier) == (5, 2.0)


def test_luck_boost_is_capped() -> None:
    player = _player(luck_boost_percent=95.0)
    shop.apply_purchase(player, _item("luck_boost", 15))
    assert player.luck_boost_percent == 100.0


def test_daily_reset_item_clears_stat_gain_counters() -> None:
    records = [SimpleNamespace(daily_stat_gain_events=5), SimpleNamespace(daily_stat_gain_events=0)]
    outcome = shop.apply_purchase(_player(), _item("daily_reset", 1), records)
    assert [record.daily_stat_gain_events for record in records] == [0, 0]
    assert outcome.stat_counters_reset == 1


def test_master_package_grants_stats_energy_and_xp() -> None:
    player = _player(energy=100.0)
    outcome = shop.apply_purchase(player, _item("master_package", 1))
    assert (player.strength, player.stamina, player.mobility) == (4, 4, 4)
    assert player.xp == shop.MASTER_PACKAGE_XP
    assert player.level == level_from_xp(shop.MASTER_PACKAGE_XP)
    assert player.proficiency_points == pp_gained_between(1, player.level)
    assert outcome.xp_award.leveled_up
    # level-up refill lands on the soft cap after the +25
    assert player.energy == 180.0


@pytest.mark.parametrize(
    ("kwargs", "condition"),
    [
        ({"cash": 500, "purchased_today": 0, "offered_today": False}, "item_not_offered"),
        ({"cash": 500, "purchased_today": 1, "offered_today": True}, "daily_purchase_limit"),
        ({"cash": 10, "purchased_today": 0, "offered_today": True}, "insufficient_cash"),
    ],
)
def test_purchase_rejections(kwargs, condition) -> None:
    item = _item("luck_boost", 15, daily_limit=1)
    with pytest.raises(PreconditionError) as excinfo:
        shop.check_purchase(item, **kwargs)
    assert excinfo.value.condition == condition


def test_unlimited_items_ignore_purchase_count() -> None:
    item = _item("energy_restore", 15, category="energy_boosters")
    shop.check_purchase(item, cash=50, purchased_today=25, offered_today=True)
