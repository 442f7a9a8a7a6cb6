"""
Fixed rules tables.

Save progressions, skill governing abilities, natural attack classes,
light weapons, and the canonical names modifier targets resolve to.
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple


# =============================================================================
# SAVES
# =============================================================================

# Base save bonus by level index (level - 1), clamped to 0..30
GOOD_SAVES = [0, 2, 3, 3, 4, 4, 5, 5, 6, 6, 7, 7, 8, 8, 9, 9, 10, 10, 11, 11,
              12, 12, 13, 13, 14, 14, 15, 15, 16, 16, 17]
POOR_SAVES = [0, 0, 1, 1, 1, 2, 2, 2, 3, 3, 3, 4, 4, 4, 5, 5, 5, 6, 6, 6,
              7, 7, 8, 8, 8, 9, 9, 9, 10, 10, 10]

# Without a class designation, a save is "good" when its ability is this high
GOOD_SAVE_THRESHOLD = 14

# Governing ability for each save
SAVE_ABILITIES = {
    "fort": "Con",
    "ref": "Dex",
    "will": "Wis",
}


def save_table_index(level: int) -> int:
    """Clamp a level to a valid index into the save tables."""
    return max(0, min(level - 1, len(GOOD_SAVES) - 1))


class BabProgression(str, Enum):
    """Base attack bonus progressions."""
    FULL = "full"
    MEDIUM = "medium"
    POOR = "poor"


# =============================================================================
# SKILLS
# =============================================================================

SKILL_ABILITY_MAP: Dict[str, str] = {
    "Acrobatics": "Dex",
    "Appraise": "Int",
    "Bluff": "Cha",
    "Climb": "Str",
    "Craft": "Int",
    "Diplomacy": "Cha",
    "Disable Device": "Dex",
    "Disguise": "Cha",
    "Escape Artist": "Dex",
    "Fly": "Dex",
    "Handle Animal": "Cha",
    "Heal": "Wis",
    "Intimidate": "Cha",
    "Knowledge (arcana)": "Int",
    "Knowledge (dungeoneering)": "Int",
    "Knowledge (engineering)": "Int",
    "Knowledge (geography)": "Int",
    "Knowledge (history)": "Int",
    "Knowledge (local)": "Int",
    "Knowledge (nature)": "Int",
    "Knowledge (nobility)": "Int",
    "Knowledge (planes)": "Int",
    "Knowledge (religion)": "Int",
    "Linguistics": "Int",
    "Perception": "Wis",
    "Perform": "Cha",
    "Profession": "Wis",
    "Ride": "Dex",
    "Sense Motive": "Wis",
    "Sleight of Hand": "Dex",
    "Spellcraft": "Int",
    "Stealth": "Dex",
    "Survival": "Wis",
    "Swim": "Str",
    "Use Magic Device": "Cha",
}

_SKILLS_BY_LOWER = {name.lower(): name for name in SKILL_ABILITY_MAP}

# Trained class skills get a flat bonus
CLASS_SKILL_BONUS = 3


def canonical_skill_name(name: str) -> Optional[str]:
    """Table spelling of a skill name, or None for skills not in the table."""
    return _SKILLS_BY_LOWER.get(name.strip().lower())


def get_skill_ability(skill_name: str) -> Optional[str]:
    """
    Governing ability for a skill.

    Every Knowledge sub-skill is Int; Craft/Perform/Profession specialties
    ("Craft (weapons)") follow their parent skill.
    """
    name = skill_name.strip()
    if name.lower().startswith("knowledge"):
        return "Int"
    canonical = canonical_skill_name(name)
    if canonical:
        return SKILL_ABILITY_MAP[canonical]
    parent = name.split("(")[0].strip()
    canonical = canonical_skill_name(parent)
    return SKILL_ABILITY_MAP[canonical] if canonical else None


# =============================================================================
# MODIFIER TARGETS
# =============================================================================

# Pseudo-stats that modifiers may target besides real stat block fields
STAT_SAVES = "Saves"
STAT_FORT = "Fort"
STAT_REF = "Ref"
STAT_WILL = "Will"
STAT_ATTACK = "Attack"
STAT_DAMAGE = "Damage"
STAT_SKILL_CHECKS = "Skill Checks"
STAT_INITIATIVE = "Initiative"
STAT_SPEED = "Speed"
STAT_AC = "AC"
STAT_TOUCH = "Touch"
STAT_FLAT_FOOTED = "Flat-Footed"
STAT_BAB = "BAB"
STAT_CMB = "CMB"
STAT_CMD = "CMD"
STAT_MAX_HP = "maxHp"

STAT_ALIASES: Dict[str, str] = {
    "str": "Str", "strength": "Str",
    "dex": "Dex", "dexterity": "Dex",
    "con": "Con", "constitution": "Con",
    "int": "Int", "intelligence": "Int",
    "wis": "Wis", "wisdom": "Wis",
    "cha": "Cha", "charisma": "Cha",
    "ac": STAT_AC, "armor class": STAT_AC,
    "touch": STAT_TOUCH, "touch ac": STAT_TOUCH,
    "flat-footed": STAT_FLAT_FOOTED, "flat footed": STAT_FLAT_FOOTED,
    "flatfooted": STAT_FLAT_FOOTED, "flat-footed ac": STAT_FLAT_FOOTED,
    "saves": STAT_SAVES, "saving throws": STAT_SAVES, "all saves": STAT_SAVES,
    "fort": STAT_FORT, "fortitude": STAT_FORT,
    "ref": STAT_REF, "reflex": STAT_REF,
    "will": STAT_WILL,
    "attack": STAT_ATTACK, "attacks": STAT_ATTACK, "attack rolls": STAT_ATTACK,
    "damage": STAT_DAMAGE, "damage rolls": STAT_DAMAGE,
    "skill checks": STAT_SKILL_CHECKS, "skills": STAT_SKILL_CHECKS,
    "initiative": STAT_INITIATIVE, "init": STAT_INITIATIVE,
    "speed": STAT_SPEED,
    "bab": STAT_BAB, "base attack bonus": STAT_BAB,
    "cmb": STAT_CMB, "cmd": STAT_CMD,
    "maxhp": STAT_MAX_HP, "max hp": STAT_MAX_HP, "hp": STAT_MAX_HP,
}


def canonical_stat(name: str) -> str:
    """
    Canonical spelling of a modifier target.

    Aliases collapse ("Reflex" -> "Ref", "strength" -> "Str"), skills take
    their table spelling, and anything else is kept as written.
    """
    stripped = name.strip()
    lowered = stripped.lower()
    if lowered in STAT_ALIASES:
        return STAT_ALIASES[lowered]
    return canonical_skill_name(stripped) or stripped


# =============================================================================
# ATTACKS
# =============================================================================

class NaturalAttackType(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    UNKNOWN = "unknown"


PRIMARY_NATURAL_ATTACKS: Tuple[str, ...] = (
    "bite", "claw", "gore", "slam", "sting", "talon",
)
SECONDARY_NATURAL_ATTACKS: Tuple[str, ...] = (
    "hoof", "hooves", "tentacle", "wing", "pincer", "tail slap", "tail",
)


def classify_natural_attack(name: str) -> NaturalAttackType:
    """Classify a natural attack by the body part named in it."""
    lowered = name.lower()
    if any(word in lowered for word in PRIMARY_NATURAL_ATTACKS):
        return NaturalAttackType.PRIMARY
    if any(word in lowered for word in SECONDARY_NATURAL_ATTACKS):
        return NaturalAttackType.SECONDARY
    return NaturalAttackType.UNKNOWN


LIGHT_WEAPONS: FrozenSet[str] = frozenset({
    "dagger", "punching dagger", "spiked gauntlet", "light mace", "sickle",
    "handaxe", "kukri", "light hammer", "light pick", "sap", "short sword",
    "starknife", "throwing axe", "kama", "nunchaku", "sai", "siangham",
    "gladius", "wakizashi", "unarmed strike", "armor spikes", "light shield",
})

RANGED_WEAPON_WORDS: Tuple[str, ...] = ("bow", "crossbow", "sling")

# Power Attack by BAB tier: (minimum BAB, attack penalty)
POWER_ATTACK_TIERS: Tuple[Tuple[int, int], ...] = ((12, -4), (8, -3), (4, -2), (0, -1))

# Two-weapon fighting penalties: (has feat, off-hand light) -> (primary, off-hand)
TWO_WEAPON_PENALTIES: Dict[Tuple[bool, bool], Tuple[int, int]] = {
    (True, True): (-2, -2),
    (True, False): (-4, -4),
    (False, True): (-4, -4),
    (False, False): (-6, -10),
}

SECONDARY_ATTACK_PENALTY = -5
MULTIATTACK_SECONDARY_PENALTY = -2
UNARMED_STRIKE_DAMAGE = "1d3"
DEFAULT_WEAPON_DAMAGE = "1d6"

IMPROVED_INITIATIVE_BONUS = 4

# Feat names the engine checks for
FEAT_MULTIATTACK = "Multiattack"
FEAT_WEAPON_FINESSE = "Weapon Finesse"
FEAT_POWER_ATTACK = "Power Attack"
FEAT_TWO_WEAPON_FIGHTING = "Two-Weapon Fighting"
FEAT_DOUBLE_SLICE = "Double Slice"
FEAT_IMPROVED_UNARMED_STRIKE = "Improved Unarmed Strike"
FEAT_IMPROVED_INITIATIVE = "Improved Initiative"
FEAT_AGILE_MANEUVERS = "Agile Maneuvers"
