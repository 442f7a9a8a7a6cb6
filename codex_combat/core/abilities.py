"""
Ability score helpers for Pathfinder stat blocks.

Handles:
- Ability modifiers from loosely typed scores (14, "14", "Str 14", "-")
- Signed formatting used everywhere in stat blocks (+3, -1, +0)
- Leading signed integer extraction for string-typed fields
"""
import math
import re
from typing import Any, Optional


# Short names as they appear in stat blocks, in stat block order
ABILITIES = ("Str", "Dex", "Con", "Int", "Wis", "Cha")

ABILITY_FULL_NAMES = {
    "Str": "Strength",
    "Dex": "Dexterity",
    "Con": "Constitution",
    "Int": "Intelligence",
    "Wis": "Wisdom",
    "Cha": "Charisma",
}

DEFAULT_ABILITY_SCORE = 10

_SIGNED_INT = re.compile(r"[+-]?\d+")


def parse_leading_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """
    Extract the first signed integer from a number or a descriptive string.

    Examples: 15 -> 15, "15, touch 12" -> 15, "+8" -> 8, "Fort -1" -> -1

    Args:
        value: Raw field value (int, float, str or None)
        default: Returned when no integer can be found

    Returns:
        The integer, or default
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        return int(value)
    match = _SIGNED_INT.search(str(value))
    if not match:
        return default
    return int(match.group())


def get_ability_modifier_as_number(score: Any) -> int:
    """
    Calculate the ability modifier from an ability score.

    The modifier is (score - 10) // 2, floored.
    Examples: 10 -> +0, 14 -> +2, 8 -> -1, 20 -> +5

    Input without a number (None, "-", "garbage") counts as a score of 10,
    so the modifier is 0.
    """
    number = parse_leading_int(score, DEFAULT_ABILITY_SCORE)
    return (number - 10) // 2


def format_modifier(value: int) -> str:
    """Render an integer with an explicit sign: 3 -> '+3', -1 -> '-1', 0 -> '+0'."""
    return f"+{value}" if value >= 0 else str(value)


def get_ability_modifier(score: Any) -> str:
    """Ability modifier as a signed display string."""
    return format_modifier(get_ability_modifier_as_number(score))
