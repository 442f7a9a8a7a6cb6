"""
Combatant resolution.

Runs the whole pipeline for one combatant:

    normalize -> aggregate -> stack -> reconcile -> attacks, skills

Nothing is cached: every call recomputes from the combatant snapshot and
the read-only catalogs, so resolving an unchanged snapshot twice gives equal
results.
"""
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from codex_combat.config import get_settings
from codex_combat.core.attacks import Attack, synthesize_attacks
from codex_combat.core.equipment import get_armor_check_penalty, resolve_equipped_items
from codex_combat.core.modifiers import aggregate_modifiers
from codex_combat.core.normalizer import NormalizeOptions, normalize_stats
from codex_combat.core.reconciler import reconcile
from codex_combat.core.skills import resolve_skills
from codex_combat.core.stacking import StackedBonuses, resolve_stacking
from codex_combat.models.catalog import CatalogContext
from codex_combat.models.combatant import Combatant, FeatSet, Item
from codex_combat.models.stats import BaseStats, EffectiveStats

logger = logging.getLogger(__name__)


@dataclass
class ResolvedCombatant:
    """Everything the tracker shows for one combatant."""
    name: str
    base_stats: BaseStats
    effective_stats: EffectiveStats
    attacks: List[Attack] = field(default_factory=list)
    skills: Dict[str, int] = field(default_factory=dict)
    bonuses: StackedBonuses = field(default_factory=StackedBonuses)
    feats: List[str] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)
    armor_check_penalty: int = 0

    def to_dict(self) -> Dict[str, Any]:
        bonuses = self.bonuses.to_dict()
        return {
            "name": self.name,
            "base_stats": self.base_stats.to_dict(),
            "effective_stats": self.effective_stats.to_dict(),
            "attacks": [attack.to_dict() for attack in self.attacks],
            "skills": dict(self.skills),
            "net_bonuses": bonuses["net"],
            "qualitative": bonuses["qualitative"],
            "feats": list(self.feats),
            "items": [item.name for item in self.items],
            "armor_check_penalty": self.armor_check_penalty,
        }


def _feat_names(feat_ids: List[str], catalogs: CatalogContext) -> List[str]:
    """Catalog names for feat ids; ids without an entry are taken as names."""
    names = []
    for feat_id in feat_ids:
        definition = catalogs.feat(feat_id)
        names.append(definition.name if definition is not None else feat_id)
    return names


def resolve_combatant(
    combatant: Combatant,
    catalogs: Optional[CatalogContext] = None,
    options: Optional[NormalizeOptions] = None,
) -> ResolvedCombatant:
    """
    Compute a combatant's effective stats, attacks and skills.

    Args:
        combatant: Read-only snapshot from the tracker
        catalogs: Effect, feat and equipment catalogs
        options: Normalization context (creature type, save designations, ...)

    Returns:
        ResolvedCombatant
    """
    catalogs = catalogs or CatalogContext.empty()
    options = options or NormalizeOptions.from_settings(get_settings())

    # A toggled-on feat is also a possessed one
    owned = _feat_names(combatant.feat_ids + combatant.active_feats, catalogs)
    active = _feat_names(combatant.active_feats, catalogs)
    merged = list(options.feats)
    for name in owned:
        if name not in merged:
            merged.append(name)
    options = dataclasses.replace(options, feats=merged)

    base = normalize_stats(combatant.base_stats, options)
    feats = FeatSet(names=base.feats, active_names=active)

    bonuses = resolve_stacking(aggregate_modifiers(combatant, catalogs))
    items = resolve_equipped_items(combatant, catalogs)

    effective = reconcile(base, bonuses, combatant=combatant, items=items, feats=feats)
    attacks = synthesize_attacks(effective, bonuses, items=items, feats=feats)
    skills = resolve_skills(base, effective, bonuses)

    logger.debug(
        "Resolved %s: %d modified stats, %d items, %d attacks",
        combatant.name, len(bonuses.net), len(items), len(attacks),
    )

    return ResolvedCombatant(
        name=combatant.name,
        base_stats=base,
        effective_stats=effective,
        attacks=attacks,
        skills=skills,
        bonuses=bonuses,
        feats=list(feats),
        items=items,
        armor_check_penalty=get_armor_check_penalty(items),
    )
