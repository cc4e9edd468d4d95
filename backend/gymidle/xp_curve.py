"""Geometric XP curve and the proficiency points awarded on level-up.

These are the authoritative constants. Any client-side estimate of level
progress is cosmetic and must be refreshed from the values returned here.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import List

from .mathutil import round_half_up

LMAX = 100
BASE_REQ = 20
GROWTH = 1.0489


def xp_to_next(level: int) -> int:
    """XP needed to go from ``level`` to ``level + 1``."""
    return round_half_up(BASE_REQ * GROWTH ** (level - 1))


def total_xp_to(level: int) -> int:
    """Closed-form cumulative XP of the first ``level`` levels (``total_xp_to(0) == 0``)."""
    if level <= 0:
        return 0
    return round_half_up(BASE_REQ * (GROWTH**level - 1) / (GROWTH - 1))


# _LEVEL_STARTS[i] is the cumulative XP at which level i + 1 begins.
_LEVEL_STARTS: List[int] = [total_xp_to(level - 1) for level in range(1, LMAX + 1)]


def level_from_xp(total_xp: int) -> int:
    """Largest level L with ``total_xp_to(L - 1) <= total_xp``, capped at ``LMAX``."""
    if total_xp <= 0:
        return 1
    return max(1, bisect_right(_LEVEL_STARTS, total_xp))


@dataclass(frozen=True)
class LevelProgress:
    level: int
    xp_into_level: int
    xp_for_level: int
    is_max_level: bool

    @property
    def fraction(self) -> float:
        if self.xp_for_level <= 0:
            return 1.0
        return min(1.0, self.xp_into_level / self.xp_for_level)


def level_progress(total_xp: int) -> LevelProgress:
    level = level_from_xp(total_xp)
    return LevelProgress(
        level=level,
        xp_into_level=max(0, total_xp - total_xp_to(level - 1)),
        xp_for_level=xp_to_next(level),
        is_max_level=level >= LMAX,
    )


def pp_for_level(level: int) -> int:
    """Proficiency points granted on reaching ``level`` (1 per bracket of ten)."""
    if level <= 1:
        return 0
    return 1 + (level - 1) // 10


def pp_gained_between(old_level: int, new_level: int) -> int:
    """Sum of points for every level reached by a single jump."""
    return sum(pp_for_level(level) for level in range(old_level + 1, new_level + 1))


__all__ = [
    "BASE_REQ",
    "GROWTH",
    "LMAX",
    "LevelProgress",
    "level_from_xp",
    "level_progress",
    "pp_for_level",
    "pp_gained_between",
    "total_xp_to",
    "xp_to_next",
]
