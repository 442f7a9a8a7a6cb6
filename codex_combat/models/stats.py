"""
Stat block records.

BaseStats is the canonical form of a creature's raw stat block after
normalization; EffectiveStats is the same shape after every active
modifier has been applied. Both hold plain ints only.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from codex_combat.core.abilities import (
    ABILITIES,
    ABILITY_FULL_NAMES,
    DEFAULT_ABILITY_SCORE,
    format_modifier,
    get_ability_modifier_as_number,
)
from codex_combat.core.size import SizeCategory


@dataclass
class AbilityScores:
    """The six ability scores."""
    strength: int = DEFAULT_ABILITY_SCORE
    dexterity: int = DEFAULT_ABILITY_SCORE
    constitution: int = DEFAULT_ABILITY_SCORE
    intelligence: int = DEFAULT_ABILITY_SCORE
    wisdom: int = DEFAULT_ABILITY_SCORE
    charisma: int = DEFAULT_ABILITY_SCORE

    def get(self, ability: str) -> int:
        """Score by short name ("Str", "Dex", ...)."""
        return getattr(self, ABILITY_FULL_NAMES[ability].lower())

    def modifier(self, ability: str) -> int:
        return get_ability_modifier_as_number(self.get(ability))

    def with_bonuses(self, bonuses: Dict[str, int]) -> "AbilityScores":
        """Copy with per-ability adjustments keyed by short name."""
        values = {
            ABILITY_FULL_NAMES[ability].lower(): self.get(ability) + bonuses.get(ability, 0)
            for ability in ABILITIES
        }
        return AbilityScores(**values)

    def to_dict(self) -> Dict[str, int]:
        return {ability: self.get(ability) for ability in ABILITIES}


@dataclass
class ArmorClass:
    """Armor class triple."""
    total: int = 10
    touch: int = 10
    flat_footed: int = 10

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "touch": self.touch,
            "flat_footed": self.flat_footed,
        }

    def __str__(self) -> str:
        return f"{self.total}, touch {self.touch}, flat-footed {self.flat_footed}"


@dataclass
class Saves:
    """Fortitude, Reflex and Will save bonuses."""
    fort: int = 0
    ref: int = 0
    will: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"fort": self.fort, "ref": self.ref, "will": self.will}

    def __str__(self) -> str:
        return (
            f"Fort {format_modifier(self.fort)}, "
            f"Ref {format_modifier(self.ref)}, "
            f"Will {format_modifier(self.will)}"
        )


@dataclass
class BaseStats:
    """Canonical, fully parsed stat block."""
    abilities: AbilityScores = field(default_factory=AbilityScores)
    ac: ArmorClass = field(default_factory=ArmorClass)
    saves: Saves = field(default_factory=Saves)
    bab: int = 0
    cmb: int = 0
    cmd: int = 10
    max_hp: int = 10
    speed: int = 30
    size: SizeCategory = SizeCategory.MEDIUM

    # Level, or hit dice recovered from the HP entry when no level is given
    level: Optional[int] = None
    hit_dice: Optional[int] = None

    creature_type: str = ""
    feats: List[str] = field(default_factory=list)

    # Structured skill map, or the legacy "Perception +8, Stealth +3" text
    skills: Optional[Dict[str, int]] = None
    skills_text: Optional[str] = None

    # Raw natural attack lines
    melee: str = ""
    ranged: str = ""

    # Every raw key the normalizer did not recognize, as given
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def effective_level(self) -> int:
        """Level used for hit point scaling: Level, else hit dice, else 1."""
        return self.level or self.hit_dice or 1

    def ability_modifier(self, ability: str) -> int:
        return self.abilities.modifier(ability)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "abilities": self.abilities.to_dict(),
            "ac": self.ac.to_dict(),
            "saves": self.saves.to_dict(),
            "bab": self.bab,
            "cmb": self.cmb,
            "cmd": self.cmd,
            "max_hp": self.max_hp,
            "speed": self.speed,
            "size": self.size.value,
            "level": self.level,
            "hit_dice": self.hit_dice,
            "creature_type": self.creature_type,
            "feats": list(self.feats),
            "skills": dict(self.skills) if self.skills is not None else None,
            "skills_text": self.skills_text,
            "melee": self.melee,
            "ranged": self.ranged,
            "extra": dict(self.extra),
        }


@dataclass
class EffectiveStats(BaseStats):
    """Stat block after all active modifiers. Recomputed on every read."""
    initiative_mod: int = 0

    @property
    def saves_display(self) -> str:
        return str(self.saves)

    @property
    def speed_display(self) -> str:
        return f"{self.speed} ft."

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "initiative_mod": self.initiative_mod,
            "saves_display": self.saves_display,
            "speed_display": self.speed_display,
        })
        return data
