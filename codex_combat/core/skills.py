"""
Skill Resolver.

Produces one numeric skill map from either shape a stat block may carry:
- a structured {skill: bonus} map
- legacy text such as "Perception +8, Stealth +3"

Both shapes pick up the current ability modifiers, the Stealth/Fly size
corrections, per-skill bonuses and the generic "Skill Checks" bonus.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from codex_combat.core.normalizer import split_list_text
from codex_combat.core.size import SizeCategory, get_size_data
from codex_combat.core.stacking import StackedBonuses
from codex_combat.core.tables import (
    CLASS_SKILL_BONUS,
    STAT_SKILL_CHECKS,
    canonical_skill_name,
    get_skill_ability,
)
from codex_combat.models.stats import BaseStats

logger = logging.getLogger(__name__)


_SKILL_ENTRY = re.compile(r"^(.*?)\s*([+-]\d+)")


def calculate_skill_bonus(
    skill_name: str,
    ranks: int,
    ability_mod: int,
    class_skills: Optional[Iterable[str]] = None,
) -> int:
    """
    Skill bonus from ranks and ability modifier.

    A class skill with at least one rank gets +3.
    """
    total = ranks + ability_mod
    lowered = skill_name.strip().lower()
    if ranks >= 1 and any(cs.strip().lower() == lowered for cs in (class_skills or [])):
        total += CLASS_SKILL_BONUS
    return total


def size_skill_modifier(skill_name: str, size: SizeCategory) -> int:
    """Stealth and Fly corrections for a size category; zero for other skills."""
    canonical = canonical_skill_name(skill_name)
    if canonical == "Stealth":
        return get_size_data(size).stealth
    if canonical == "Fly":
        return get_size_data(size).fly
    return 0


def parse_skill_string(text: Optional[str]) -> List[Tuple[str, int]]:
    """
    Split legacy skill text into (name, bonus) pairs.

    "Knowledge (arcana, planes) +9, Stealth +3" -> [("Knowledge (arcana, planes)", 9), ("Stealth", 3)]
    Entries without a signed bonus are skipped.
    """
    entries = []
    for part in split_list_text(text):
        match = _SKILL_ENTRY.match(part)
        if not match or not match.group(1).strip():
            logger.debug("Skipping unparseable skill entry %r", part)
            continue
        entries.append((match.group(1).strip(), int(match.group(2))))
    return entries


def _resolve_structured(
    skills: Dict[str, int],
    effective: BaseStats,
    bonuses: StackedBonuses,
) -> Dict[str, int]:
    dex_mod = effective.abilities.modifier("Dex")
    generic = bonuses.get(STAT_SKILL_CHECKS)

    resolved = {}
    for name, value in skills.items():
        final = value
        if get_skill_ability(name) == "Dex":
            final += dex_mod
        final += size_skill_modifier(name, effective.size)
        final += bonuses.get(name) + generic
        resolved[name] = final
    return resolved


def _resolve_legacy(
    text: str,
    base: BaseStats,
    effective: BaseStats,
    bonuses: StackedBonuses,
) -> Dict[str, int]:
    generic = bonuses.get(STAT_SKILL_CHECKS)

    resolved = {}
    for name, original in parse_skill_string(text):
        ability = get_skill_ability(name)
        if ability is None:
            resolved[name] = original
            continue
        ranks_and_misc = original - base.abilities.modifier(ability)
        resolved[name] = (
            ranks_and_misc
            + effective.abilities.modifier(ability)
            + generic
            + size_skill_modifier(name, effective.size)
            + bonuses.get(name)
        )
    return resolved


def resolve_skills(
    base: BaseStats,
    effective: BaseStats,
    bonuses: StackedBonuses,
) -> Dict[str, int]:
    """
    Resolve a combatant's skills.

    Args:
        base: Normalized stats (original ability scores and skill data)
        effective: Reconciled stats (current ability scores and size)
        bonuses: Net bonuses; per-skill targets and "Skill Checks" apply

    Returns:
        Skill name -> final bonus; empty when the stat block lists no skills
    """
    if base.skills:
        return _resolve_structured(base.skills, effective, bonuses)
    if base.skills_text:
        return _resolve_legacy(base.skills_text, base, effective, bonuses)
    return {}
