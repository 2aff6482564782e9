"""Ability score rolls and display modifiers."""

import random

from kotodama.config import STARTING_HP
from kotodama.models import HitPoints

ABILITIES = ("STR", "DEX", "CON", "INT", "WIS", "CHA")


def roll_3d6(rng: random.Random | None = None) -> int:
    rng = rng or random
    return sum(rng.randint(1, 6) for _ in range(3))


def generate_stats(rng: random.Random | None = None) -> dict[str, int | HitPoints]:
    """Fresh character sheet: fixed HP pool plus six 3d6 ability scores."""
    stats: dict[str, int | HitPoints] = {
        "HP": HitPoints(current=STARTING_HP, max=STARTING_HP),
    }
    for ability in ABILITIES:
        stats[ability] = roll_3d6(rng)
    return stats


def calculate_modifier(value: int) -> str:
    """D&D-style modifier: 10 -> "", 12 -> "+1", 8 -> "-1"."""
    modifier = (value - 10) // 2
    if modifier == 0:
        return ""
    return f"+{modifier}" if modifier > 0 else str(modifier)
