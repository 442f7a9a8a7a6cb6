"""
Attack Synthesizer.

Builds a combatant's attack list, in order:
1. Natural attacks parsed from the Melee and Ranged lines
2. One attack per equipped weapon
3. An unarmed strike, unless one is already listed

Secondary natural attacks take -5 to hit (-2 with Multiattack) and half
Strength to damage. Weapon attacks account for Weapon Finesse, enhancement,
Power Attack and two-weapon fighting. Size modifies every weapon and
unarmed attack roll.
"""
import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from codex_combat.core.abilities import format_modifier
from codex_combat.core.equipment import (
    enhancement_bonus,
    is_composite,
    is_light_weapon,
    is_ranged_weapon,
    is_thrown_weapon,
    weapon_damage_dice,
)
from codex_combat.core.size import get_size_data
from codex_combat.core.stacking import StackedBonuses
from codex_combat.core.tables import (
    FEAT_DOUBLE_SLICE,
    FEAT_IMPROVED_UNARMED_STRIKE,
    FEAT_MULTIATTACK,
    FEAT_POWER_ATTACK,
    FEAT_TWO_WEAPON_FIGHTING,
    FEAT_WEAPON_FINESSE,
    MULTIATTACK_SECONDARY_PENALTY,
    POWER_ATTACK_TIERS,
    SECONDARY_ATTACK_PENALTY,
    STAT_ATTACK,
    STAT_DAMAGE,
    TWO_WEAPON_PENALTIES,
    UNARMED_STRIKE_DAMAGE,
    NaturalAttackType,
    classify_natural_attack,
)
from codex_combat.models.combatant import FeatSet, Item
from codex_combat.models.stats import BaseStats

logger = logging.getLogger(__name__)


_ATTACK_PATTERN = re.compile(r"(.+?)\s*([+-]\d+(?:/[+-]\d+)*)\s*\((.+?)\)")
_LEADING_SEPARATORS = re.compile(r"^[\s,;)]*(?:(?:and|or)\s+)?", re.IGNORECASE)
_DAMAGE_DICE = re.compile(r"^(\d+d\d+)([+-]\d+)?(.*)$", re.IGNORECASE)

UNARMED_STRIKE = "Unarmed Strike"


@dataclass(frozen=True)
class Attack:
    """One line of the attack list."""
    name: str
    to_hit: str
    damage: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "to_hit": self.to_hit, "damage": self.damage}


def _signed_suffix(value: int) -> str:
    """Signed bonus to append to dice (+3, -1), empty for zero."""
    return format_modifier(value) if value else ""


def shift_bonus_chain(chain: str, delta: int) -> str:
    """Apply a delta to every bonus in an iterative chain: "+6/+1", -5 -> "+1/-4"."""
    return "/".join(format_modifier(int(part) + delta) for part in chain.split("/"))


def parse_attacks(text: Optional[str]) -> List[Attack]:
    """
    Parse a stat block attack line.

    "bite +5 (1d6+3), 2 claws +3 (1d4+1)" yields two attacks. Text that does
    not match the <name> <bonus> (<damage>) shape is ignored.
    """
    if not text:
        return []
    attacks = []
    for match in _ATTACK_PATTERN.finditer(str(text)):
        name = _LEADING_SEPARATORS.sub("", match.group(1)).strip()
        if not name:
            continue
        attacks.append(Attack(name=name, to_hit=match.group(2).strip(), damage=match.group(3).strip()))
    if not attacks:
        logger.debug("No attacks parsed from %r", text)
    return attacks


def _secondary_attack(attack: Attack, penalty: int, str_mod: int) -> Attack:
    damage = attack.damage
    if str_mod > 0:
        match = _DAMAGE_DICE.match(damage)
        if match:
            damage = f"{match.group(1)}{_signed_suffix(max(0, str_mod // 2))}{match.group(3)}"
    return Attack(
        name=f"{attack.name} (Secondary)",
        to_hit=shift_bonus_chain(attack.to_hit, penalty),
        damage=damage,
    )


def natural_attacks(base: BaseStats, str_mod: int, feats: FeatSet) -> List[Attack]:
    """Natural attacks with secondary penalties applied. The first attack is never secondary."""
    parsed = parse_attacks(base.melee) + parse_attacks(base.ranged)
    penalty = MULTIATTACK_SECONDARY_PENALTY if feats.has(FEAT_MULTIATTACK) else SECONDARY_ATTACK_PENALTY

    attacks = []
    for index, attack in enumerate(parsed):
        if index > 0 and classify_natural_attack(attack.name) == NaturalAttackType.SECONDARY:
            attacks.append(_secondary_attack(attack, penalty, str_mod))
        else:
            attacks.append(attack)
    return attacks


def power_attack_penalty(bab: int) -> int:
    """Attack penalty for Power Attack at a given BAB (-1 to -4)."""
    for minimum_bab, penalty in POWER_ATTACK_TIERS:
        if bab >= minimum_bab:
            return penalty
    return POWER_ATTACK_TIERS[-1][1]


def weapon_attacks(
    stats: BaseStats,
    items: Iterable[Item],
    bonuses: StackedBonuses,
    feats: FeatSet,
) -> List[Attack]:
    """One attack per equipped weapon."""
    weapons = [item for item in items if item.is_weapon and item.equipped]
    melee_weapons = [w for w in weapons if not is_ranged_weapon(w)]
    two_weapon = len(melee_weapons) >= 2

    str_mod = stats.abilities.modifier("Str")
    dex_mod = stats.abilities.modifier("Dex")
    size_mod = get_size_data(stats.size).mod
    power_attack = feats.is_active(FEAT_POWER_ATTACK)
    finesse = feats.has(FEAT_WEAPON_FINESSE)

    off_hand_ids = {id(w) for w in melee_weapons[1:]}
    if two_weapon:
        off_hand_light = is_light_weapon(melee_weapons[1])
        primary_penalty, off_hand_penalty = TWO_WEAPON_PENALTIES[
            (feats.has_matching(FEAT_TWO_WEAPON_FIGHTING), off_hand_light)
        ]

    attacks = []
    for weapon in weapons:
        ranged = is_ranged_weapon(weapon)
        light = is_light_weapon(weapon)

        attack_mod = str_mod
        damage_mod = str_mod
        if ranged and not is_thrown_weapon(weapon):
            attack_mod = dex_mod
            damage_mod = str_mod if is_composite(weapon) else 0
        elif finesse and light:
            attack_mod = dex_mod

        enhancement = enhancement_bonus(weapon.name)

        pa_attack = pa_damage = 0
        if power_attack and not ranged:
            pa_attack = power_attack_penalty(stats.bab)
            pa_damage = abs(pa_attack) * 2

        twf_penalty = 0
        off_hand = False
        if two_weapon and not ranged:
            off_hand = id(weapon) in off_hand_ids
            twf_penalty = off_hand_penalty if off_hand else primary_penalty
            if off_hand and not feats.has(FEAT_DOUBLE_SLICE) and damage_mod > 0:
                damage_mod //= 2

        to_hit = (
            stats.bab + attack_mod + enhancement + pa_attack + twf_penalty
            + bonuses.get(STAT_ATTACK) + size_mod
        )
        damage_bonus = damage_mod + enhancement + pa_damage + bonuses.get(STAT_DAMAGE)
        damage = weapon_damage_dice(weapon, stats.size) + _signed_suffix(damage_bonus)
        if weapon.critical:
            damage += f" ({weapon.critical})"

        attacks.append(Attack(
            name=f"{weapon.name} (Off-Hand)" if off_hand else weapon.name,
            to_hit=format_modifier(to_hit),
            damage=damage,
        ))
    return attacks


def unarmed_strike(stats: BaseStats, bonuses: StackedBonuses, feats: FeatSet) -> Attack:
    str_mod = stats.abilities.modifier("Str")
    to_hit = stats.bab + str_mod + bonuses.get(STAT_ATTACK) + get_size_data(stats.size).mod
    damage = UNARMED_STRIKE_DAMAGE + _signed_suffix(str_mod + bonuses.get(STAT_DAMAGE))
    if not feats.has(FEAT_IMPROVED_UNARMED_STRIKE):
        damage += " (nonlethal)"
    return Attack(name=UNARMED_STRIKE, to_hit=format_modifier(to_hit), damage=damage)


def synthesize_attacks(
    stats: BaseStats,
    bonuses: StackedBonuses,
    items: Optional[Iterable[Item]] = None,
    feats: Optional[FeatSet] = None,
) -> List[Attack]:
    """
    Full attack list for a combatant.

    Args:
        stats: Effective stats (current ability scores, BAB and size)
        bonuses: Net bonuses; Attack and Damage apply to weapon and unarmed attacks
        items: Equipped items
        feats: Feats the combatant possesses, with toggled-on ones marked active

    Returns:
        Natural attacks, then weapon attacks, then an unarmed strike if none is listed
    """
    feats = feats or FeatSet()
    str_mod = stats.abilities.modifier("Str")

    attacks = natural_attacks(stats, str_mod, feats)
    attacks.extend(weapon_attacks(stats, items or [], bonuses, feats))

    if not any(UNARMED_STRIKE.lower() in attack.name.lower() for attack in attacks):
        attacks.append(unarmed_strike(stats, bonuses, feats))
    return attacks
