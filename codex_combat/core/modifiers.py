"""
Modifier Aggregator.

Collects every active modifier affecting a combatant and buckets them by
target stat and bonus type. Sources:
- Effects, looked up by name in the effect catalog
- Temporary adjustments set by the operator (always untyped)
- Toggled-on feats, looked up by id in the feat catalog

Size is structural and never emitted here; the reconciler, skill resolver
and attack synthesizer apply it directly.
"""
import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from codex_combat.core.tables import canonical_stat

if TYPE_CHECKING:
    from codex_combat.models.catalog import CatalogContext
    from codex_combat.models.combatant import Combatant

logger = logging.getLogger(__name__)


# =============================================================================
# BONUS TYPES
# =============================================================================

class BonusType(str, Enum):
    """Known bonus types. Unknown tokens are kept verbatim and stack as typed."""
    DODGE = "dodge"
    UNTYPED = "untyped"
    PENALTY = "penalty"
    CIRCUMSTANCE = "circumstance"
    MORALE = "morale"
    COMPETENCE = "competence"
    ENHANCEMENT = "enhancement"
    SIZE = "size"
    NATURAL_ARMOR = "natural-armor"
    DEFLECTION = "deflection"
    ARMOR = "armor"
    SHIELD = "shield"
    INSIGHT = "insight"
    LUCK = "luck"
    RESISTANCE = "resistance"
    SACRED = "sacred"
    PROFANE = "profane"
    ALCHEMICAL = "alchemical"
    RACIAL = "racial"
    TRAIT = "trait"


# Types whose values always sum. Every other type, known or not, keeps only
# its best positive and worst negative value.
ALWAYS_STACKING_TYPES = frozenset({
    BonusType.DODGE.value,
    BonusType.UNTYPED.value,
    BonusType.PENALTY.value,
    BonusType.CIRCUMSTANCE.value,
    BonusType.MORALE.value,
    BonusType.COMPETENCE.value,
})

_NUMERIC_TOKEN = re.compile(r"^[+-]?\d+$")


def canonical_bonus_type(token: Any) -> str:
    """
    Canonical spelling of a bonus type token.

    "Natural Armor" and "natural_armor" both become "natural-armor".
    A missing token is untyped.
    """
    if token is None:
        return BonusType.UNTYPED.value
    if isinstance(token, BonusType):
        return token.value
    text = re.sub(r"[\s_]+", "-", str(token).strip().lower())
    return text or BonusType.UNTYPED.value


def is_always_stacking(bonus_type: str) -> bool:
    return canonical_bonus_type(bonus_type) in ALWAYS_STACKING_TYPES


def coerce_modifier_value(value: Any) -> Optional[Union[int, str]]:
    """
    Numeric values become ints; numeric-looking strings ("+2") are coerced;
    any other non-empty string is kept as a lower-cased qualitative token.

    Returns None for values that carry nothing (None, booleans, blanks).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return None
    if _NUMERIC_TOKEN.match(text):
        return int(text)
    return text.lower()


# =============================================================================
# MODIFIER
# =============================================================================

@dataclass(frozen=True)
class Modifier:
    """A single (target stat, bonus type, value) triple. Never mutated."""
    target_stat: str
    bonus_type: str
    value: Union[int, str]

    @classmethod
    def create(cls, target_stat: str, bonus_type: Any, value: Any) -> Optional["Modifier"]:
        """Build a modifier with canonical target and type, or None if value is empty."""
        coerced = coerce_modifier_value(value)
        if coerced is None or not target_stat or not str(target_stat).strip():
            return None
        return cls(
            target_stat=canonical_stat(str(target_stat)),
            bonus_type=canonical_bonus_type(bonus_type),
            value=coerced,
        )

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.value, int)


# =============================================================================
# BUCKETS
# =============================================================================

class ModifierBuckets:
    """
    Modifiers grouped as stat -> bonus type -> values.

    Numeric and qualitative values are kept apart: numeric values go through
    the stacking rules, qualitative tokens ("half") are handled per stat.
    """

    def __init__(self):
        self.numeric: Dict[str, Dict[str, List[int]]] = {}
        self.qualitative: Dict[str, Dict[str, List[str]]] = {}

    @classmethod
    def from_modifiers(cls, modifiers: Iterable[Modifier]) -> "ModifierBuckets":
        buckets = cls()
        for modifier in modifiers:
            buckets.add(modifier)
        return buckets

    def add(self, modifier: Modifier) -> None:
        target = self.numeric if modifier.is_numeric else self.qualitative
        by_type = target.setdefault(modifier.target_stat, {})
        by_type.setdefault(modifier.bonus_type, []).append(modifier.value)

    def stats(self) -> List[str]:
        """Every stat with at least one modifier, in first-seen order."""
        seen = list(self.numeric)
        seen.extend(stat for stat in self.qualitative if stat not in self.numeric)
        return seen

    def values(self, stat: str, bonus_type: str) -> List[int]:
        return list(self.numeric.get(stat, {}).get(canonical_bonus_type(bonus_type), []))

    def tokens(self, stat: str) -> List[str]:
        return [
            token
            for tokens in self.qualitative.get(stat, {}).values()
            for token in tokens
        ]

    def __len__(self) -> int:
        return sum(
            len(values)
            for bucket in (self.numeric, self.qualitative)
            for by_type in bucket.values()
            for values in by_type.values()
        )

    def __repr__(self) -> str:
        return f"ModifierBuckets(stats={self.stats()!r}, count={len(self)})"


# =============================================================================
# AGGREGATION
# =============================================================================

def collect_modifiers(combatant: "Combatant", catalogs: "CatalogContext") -> List[Modifier]:
    """
    Flatten every active modifier source for a combatant.

    Missing catalog entries contribute nothing.
    """
    modifiers: List[Modifier] = []

    for effect in combatant.effects:
        definition = catalogs.effect(effect.name)
        if definition is None:
            logger.debug("No catalog entry for effect %r on %s", effect.name, combatant.name)
            continue
        modifiers.extend(definition.to_modifiers())

    for stat, value in combatant.temp_mods.items():
        modifier = Modifier.create(stat, BonusType.UNTYPED, value)
        if modifier is None:
            logger.debug("Ignoring empty temporary adjustment %r=%r", stat, value)
            continue
        modifiers.append(modifier)

    for feat_id in combatant.active_feats:
        definition = catalogs.feat(feat_id)
        if definition is None:
            logger.debug("No catalog entry for active feat %r on %s", feat_id, combatant.name)
            continue
        modifiers.extend(definition.to_modifiers())

    return modifiers


def aggregate_modifiers(combatant: "Combatant", catalogs: "CatalogContext") -> ModifierBuckets:
    """Collect and bucket all modifiers affecting a combatant."""
    return ModifierBuckets.from_modifiers(collect_modifiers(combatant, catalogs))
