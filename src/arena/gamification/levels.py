"""Level curve and XP-to-level computation.

The curve is ordered by min_xp; level 1 always starts at 0 XP.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass

from arena.errors import InvalidAmount


@dataclass(frozen=True)
class LevelDefinition:
    level: int
    min_xp: int
    title: str


@dataclass(frozen=True)
class LevelInfo:
    level: int
    title: str
    xp_into_level: int
    xp_to_next_level: int | None
    next_level: int | None = None


LEVEL_DEFINITIONS: tuple[LevelDefinition, ...] = (
    LevelDefinition(1, 0, "Novice"),
    LevelDefinition(2, 100, "Apprentice"),
    LevelDefinition(3, 300, "Learner"),
    LevelDefinition(4, 600, "Scholar"),
    LevelDefinition(5, 1000, "Adept"),
    LevelDefinition(6, 1500, "Expert"),
    LevelDefinition(7, 2200, "Master"),
    LevelDefinition(8, 3000, "Grandmaster"),
    LevelDefinition(9, 4000, "Sage"),
    LevelDefinition(10, 5500, "Luminary"),
    LevelDefinition(15, 10000, "Polymath"),
    LevelDefinition(20, 20000, "Legend"),
)


def validate_levels(levels: Sequence[LevelDefinition]) -> tuple[LevelDefinition, ...]:
    """Check a level curve and return it as a tuple.

    Raises ValueError if the curve is empty, does not start at level 1
    with 0 XP, or min_xp / level are not strictly increasing.
    """
    if not levels:
        msg = "Level curve must not be empty"
        raise ValueError(msg)
    first = levels[0]
    if first.level != 1 or first.min_xp != 0:
        msg = "Level curve must start at level 1 with min_xp 0"
        raise ValueError(msg)
    for prev, cur in zip(levels, levels[1:]):
        if cur.min_xp <= prev.min_xp:
            msg = f"min_xp must be strictly increasing (level {cur.level})"
            raise ValueError(msg)
        if cur.level <= prev.level:
            msg = f"level numbers must be strictly increasing (level {cur.level})"
            raise ValueError(msg)
    return tuple(levels)


validate_levels(LEVEL_DEFINITIONS)


def level_for(total_xp: int, levels: Sequence[LevelDefinition] = LEVEL_DEFINITIONS) -> LevelInfo:
    """Compute level info from total XP.

    xp_to_next_level is None once the last level is reached.
    """
    if isinstance(total_xp, bool) or not isinstance(total_xp, int) or total_xp < 0:
        msg = "total_xp must be a non-negative integer"
        raise InvalidAmount(msg, field="total_xp")

    idx = bisect_right([lvl.min_xp for lvl in levels], total_xp) - 1
    current = levels[idx]
    nxt = levels[idx + 1] if idx + 1 < len(levels) else None

    return LevelInfo(
        level=current.level,
        title=current.title,
        xp_into_level=total_xp - current.min_xp,
        xp_to_next_level=nxt.min_xp - total_xp if nxt else None,
        next_level=nxt.level if nxt else None,
    )
