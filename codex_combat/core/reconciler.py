"""
Derived-Stat Reconciler.

Applies net bonuses to a normalized stat block and propagates ability
score changes into the stats derived from them:

1. Net bonuses on raw numeric fields are added directly
2. Saves take Saves/Fort/Ref/Will bonuses plus Con/Dex/Wis modifier deltas
3. AC follows the Dex modifier delta, capped by armor max Dex; touch AC
   follows the uncapped delta; flat-footed only takes direct bonuses
4. Max HP follows the Con modifier delta times level
5. Speed takes numeric bonuses, then each "half" token halves it
6. Initiative is the current Dex modifier plus Initiative bonuses
"""
import copy
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from codex_combat.core.abilities import ABILITIES, parse_leading_int
from codex_combat.core.equipment import get_armor_max_dex
from codex_combat.core.stacking import StackedBonuses
from codex_combat.core.tables import (
    FEAT_IMPROVED_INITIATIVE,
    IMPROVED_INITIATIVE_BONUS,
    STAT_AC,
    STAT_BAB,
    STAT_CMB,
    STAT_CMD,
    STAT_FLAT_FOOTED,
    STAT_FORT,
    STAT_INITIATIVE,
    STAT_MAX_HP,
    STAT_REF,
    STAT_SAVES,
    STAT_SPEED,
    STAT_TOUCH,
    STAT_WILL,
)
from codex_combat.models.combatant import FeatSet, Item
from codex_combat.models.stats import BaseStats, EffectiveStats, Saves

if TYPE_CHECKING:
    from codex_combat.models.combatant import Combatant

logger = logging.getLogger(__name__)


# Stats handled by dedicated steps rather than as literal fields
_SAVE_TARGETS = {STAT_SAVES, STAT_FORT, STAT_REF, STAT_WILL}
_FIELD_TARGETS = {STAT_AC, STAT_TOUCH, STAT_FLAT_FOOTED, STAT_BAB, STAT_CMB, STAT_CMD, STAT_SPEED, STAT_MAX_HP}


def _apply_to_extras(extra: Dict[str, Any], bonuses: StackedBonuses, skip: Iterable[str]) -> Dict[str, Any]:
    """Add net bonuses to numeric extra fields, matching keys case-insensitively."""
    updated = dict(extra)
    by_lower = {key.lower(): key for key in updated}
    for stat, bonus in bonuses.net.items():
        if stat in skip:
            continue
        key = by_lower.get(stat.lower())
        if key is None:
            continue
        base_value = parse_leading_int(updated[key])
        if base_value is None:
            logger.debug("Extra field %r=%r is not numeric; ignoring %+d", key, updated[key], bonus)
            continue
        updated[key] = base_value + bonus
    return updated


def _apply_saves(base: BaseStats, bonuses: StackedBonuses, deltas: Dict[str, int]) -> Saves:
    all_saves = bonuses.get(STAT_SAVES)
    return Saves(
        fort=base.saves.fort + all_saves + bonuses.get(STAT_FORT) + deltas["Con"],
        ref=base.saves.ref + all_saves + bonuses.get(STAT_REF) + deltas["Dex"],
        will=base.saves.will + all_saves + bonuses.get(STAT_WILL) + deltas["Wis"],
    )


def _apply_speed(base_speed: int, bonuses: StackedBonuses) -> int:
    speed = base_speed + bonuses.get(STAT_SPEED)
    for token in bonuses.tokens(STAT_SPEED):
        if token.startswith("half"):
            speed //= 2
    return max(0, speed)


def reconcile(
    base: BaseStats,
    bonuses: StackedBonuses,
    combatant: Optional["Combatant"] = None,
    items: Optional[Iterable[Item]] = None,
    feats: Optional[FeatSet] = None,
) -> EffectiveStats:
    """
    Build the effective stat block.

    Args:
        base: Normalized stats
        bonuses: Net bonuses after stacking
        combatant: Source of the tracked max HP, when there is one
        items: Equipped items (for the armor max Dex cap)
        feats: Feats the combatant possesses

    Returns:
        EffectiveStats; base is never modified
    """
    items = list(items or [])
    feats = feats or FeatSet()

    ability_bonuses = {ability: bonuses.get(ability) for ability in ABILITIES}
    abilities = base.abilities.with_bonuses(ability_bonuses)
    deltas = {
        ability: abilities.modifier(ability) - base.abilities.modifier(ability)
        for ability in ABILITIES
    }

    saves = _apply_saves(base, bonuses, deltas)

    # Dex to AC is capped by armor; touch AC never is
    armor_max_dex = get_armor_max_dex(items)
    current_dex = abilities.modifier("Dex")
    base_dex = base.abilities.modifier("Dex")
    if armor_max_dex is not None:
        capped_delta = min(current_dex, armor_max_dex) - min(base_dex, armor_max_dex)
    else:
        capped_delta = current_dex - base_dex

    ac = copy.copy(base.ac)
    ac.total = base.ac.total + bonuses.get(STAT_AC) + capped_delta
    ac.touch = base.ac.touch + bonuses.get(STAT_TOUCH) + deltas["Dex"]
    ac.flat_footed = base.ac.flat_footed + bonuses.get(STAT_FLAT_FOOTED)

    tracked_max_hp = combatant.max_hp if combatant is not None and combatant.max_hp else None
    max_hp = (tracked_max_hp or base.max_hp) + bonuses.get(STAT_MAX_HP)
    if deltas["Con"]:
        max_hp += deltas["Con"] * base.effective_level
    max_hp = max(1, max_hp)

    initiative = current_dex + bonuses.get(STAT_INITIATIVE)
    if feats.has(FEAT_IMPROVED_INITIATIVE):
        initiative += IMPROVED_INITIATIVE_BONUS

    skip = set(ABILITIES) | _SAVE_TARGETS | _FIELD_TARGETS
    return EffectiveStats(
        abilities=abilities,
        ac=ac,
        saves=saves,
        bab=base.bab + bonuses.get(STAT_BAB),
        cmb=base.cmb + bonuses.get(STAT_CMB),
        cmd=base.cmd + bonuses.get(STAT_CMD),
        max_hp=max_hp,
        speed=_apply_speed(base.speed, bonuses),
        size=base.size,
        level=base.level,
        hit_dice=base.hit_dice,
        creature_type=base.creature_type,
        feats=list(base.feats),
        skills=dict(base.skills) if base.skills is not None else None,
        skills_text=base.skills_text,
        melee=base.melee,
        ranged=base.ranged,
        extra=_apply_to_extras(base.extra, bonuses, skip),
        initiative_mod=initiative,
    )
