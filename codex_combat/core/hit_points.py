"""
Hit point bookkeeping for the combat tracker.

Temporary hit points absorb damage first; healing restores regular hit
points only and never exceeds the maximum.
"""
from typing import Any, Optional

from codex_combat.config import get_settings
from codex_combat.core.dice import HpMethod, compute_hp_from_string


def initial_hit_points(hp_text: Any, method: Optional[HpMethod] = None) -> int:
    """
    Hit points for a monster joining a fight.

    Uses MONSTER_HP_METHOD (average, rolled or max dice) unless a method is given.
    """
    if method is None:
        method = get_settings().MONSTER_HP_METHOD
    return compute_hp_from_string(hp_text, method)


def apply_damage(current_hp: int, damage: int, temp_hp: int = 0) -> tuple[int, int]:
    """
    Apply damage to a combatant.

    Args:
        current_hp: Current hit points
        damage: Damage to apply (zero or less does nothing)
        temp_hp: Temporary hit points, spent first

    Returns:
        Tuple of (new_hp, new_temp_hp). Hit points may drop below zero.
    """
    if damage <= 0:
        return current_hp, temp_hp

    absorbed = min(max(temp_hp, 0), damage)
    return current_hp - (damage - absorbed), temp_hp - absorbed


def apply_healing(current_hp: int, max_hp: int, healing: int) -> tuple[int, int]:
    """
    Apply healing to a combatant.

    Args:
        current_hp: Current hit points
        max_hp: Maximum hit points
        healing: Amount of healing

    Returns:
        Tuple of (new_hp, actual_healing_received)
    """
    if healing <= 0:
        return current_hp, 0
    new_hp = max(current_hp, min(max_hp, current_hp + healing))
    return new_hp, new_hp - current_hp
