"""
Stat Normalizer.

Turns a loosely typed raw stat block, as typed in by a GM or imported from a
bestiary, into a canonical BaseStats. Keys are matched case-insensitively
exactly once here; nothing downstream ever sees the raw strings again.

Every field parser absorbs malformed input and falls back to a default:
- ability scores: 10
- AC: 10 + Dex mod + size mod
- saves: derived from level (or CR) and the save progression tables
- speed: 30 ft.
- BAB: level, or 0 without one
- max HP: the configured default (10)
"""
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from codex_combat.core.abilities import (
    ABILITIES,
    ABILITY_FULL_NAMES,
    DEFAULT_ABILITY_SCORE,
    parse_leading_int,
)
from codex_combat.core.dice import calculate_average_hp, hit_dice_count
from codex_combat.core.errors import StatParseError
from codex_combat.core.size import (
    CONSTRUCT_HP_BONUS,
    SizeCategory,
    get_size_data,
    is_tiny_or_smaller,
    parse_size,
)
from codex_combat.core.tables import (
    FEAT_AGILE_MANEUVERS,
    GOOD_SAVE_THRESHOLD,
    GOOD_SAVES,
    POOR_SAVES,
    SAVE_ABILITIES,
    BabProgression,
    canonical_skill_name,
    canonical_stat,
    save_table_index,
)
from codex_combat.models.stats import AbilityScores, ArmorClass, BaseStats, Saves

logger = logging.getLogger(__name__)


DEFAULT_SPEED = 30
DEFAULT_MAX_HP = 10
DEFAULT_HP_DICE = "1d8"

_AC_TOTAL = re.compile(r"^\s*(\d+)")
_AC_TOUCH = re.compile(r"touch\s*(\d+)", re.IGNORECASE)
_AC_FLAT_FOOTED = re.compile(r"flat-?\s?footed\s*(\d+)", re.IGNORECASE)

_SAVE_PATTERNS = {
    "fort": re.compile(r"Fort(?:itude)?\s*([+-]?\d+)", re.IGNORECASE),
    "ref": re.compile(r"Ref(?:lex)?\s*([+-]?\d+)", re.IGNORECASE),
    "will": re.compile(r"Will\s*([+-]?\d+)", re.IGNORECASE),
}

_HP_LEADING_DICE = re.compile(r"^\s*\d+d\d+", re.IGNORECASE)
_HP_LEADING_INT = re.compile(r"^\s*(\d+)")
_HP_PAREN_DICE = re.compile(r"\((\s*\d+d\d+\s*(?:[+-]\s*\d+)?\s*)\)", re.IGNORECASE)

# Comma separators that are not inside parentheses
_LIST_SPLIT = re.compile(r",(?![^(]*\))")


@dataclass
class NormalizeOptions:
    """
    Context the raw stat block may not carry itself.

    good_saves names the saves ("fort", "ref", "will") that use the good
    progression; without it each save is good when its ability is 14+.
    """
    creature_type: Optional[str] = None
    feats: List[str] = field(default_factory=list)
    special_abilities: List[str] = field(default_factory=list)
    good_saves: Optional[List[str]] = None
    bab_progression: Optional[BabProgression] = None
    default_max_hp: int = DEFAULT_MAX_HP

    @classmethod
    def from_settings(cls, settings: Any, **kwargs) -> "NormalizeOptions":
        """Options carrying the configured defaults (DEFAULT_MAX_HP)."""
        kwargs.setdefault("default_max_hp", settings.DEFAULT_MAX_HP)
        return cls(**kwargs)


class _RawFields:
    """Case-insensitive view over a raw stat dict that tracks consumed keys."""

    def __init__(self, raw: Dict[str, Any]):
        self._fields: Dict[str, Tuple[str, Any]] = {}
        for key, value in (raw or {}).items():
            self._fields.setdefault(str(key).strip().lower(), (key, value))
        self._used = set()

    def get(self, *names: str) -> Any:
        """Value of the first present key, marking it consumed."""
        for name in names:
            lowered = name.lower()
            if lowered in self._fields:
                self._used.add(lowered)
                return self._fields[lowered][1]
        return None

    def peek(self, *names: str) -> Any:
        """Like get(), but leaves the key in the extras."""
        for name in names:
            entry = self._fields.get(name.lower())
            if entry is not None:
                return entry[1]
        return None

    def leftovers(self) -> Dict[str, Any]:
        return {
            key: value
            for lowered, (key, value) in self._fields.items()
            if lowered not in self._used
        }


# =============================================================================
# FIELD PARSERS
# =============================================================================

def calculate_bab(level: Optional[int], progression: BabProgression = BabProgression.FULL) -> int:
    """
    Base attack bonus for a level.

    full: level, medium: floor(level * 3/4), poor: floor(level / 2)
    """
    if not level or level < 1:
        return 0
    progression = BabProgression(progression)
    if progression == BabProgression.MEDIUM:
        return (level * 3) // 4
    if progression == BabProgression.POOR:
        return level // 2
    return level


def split_list_text(text: Any) -> List[str]:
    """Split "Power Attack, Weapon Focus (longsword, greatsword)" on top-level commas."""
    if text is None:
        return []
    if isinstance(text, (list, tuple)):
        return [str(item).strip() for item in text if str(item).strip()]
    return [part.strip() for part in _LIST_SPLIT.split(str(text)) if part.strip()]


def parse_armor_class(value: Any) -> ArmorClass:
    """
    Parse "15, touch 12, flat-footed 13".

    A missing touch value is the total; a missing flat-footed value is 0
    here and filled in by the caller, which knows the Dex modifier.

    Raises:
        StatParseError: when no leading total can be found
    """
    if isinstance(value, bool) or (isinstance(value, float) and not math.isfinite(value)):
        raise StatParseError("AC", value)
    if isinstance(value, (int, float)):
        total = int(value)
        return ArmorClass(total=total, touch=total, flat_footed=0)

    text = str(value) if value is not None else ""
    match = _AC_TOTAL.match(text)
    if not match:
        raise StatParseError("AC", value)
    total = int(match.group(1))
    touch = _AC_TOUCH.search(text)
    flat_footed = _AC_FLAT_FOOTED.search(text)
    return ArmorClass(
        total=total,
        touch=int(touch.group(1)) if touch else total,
        flat_footed=int(flat_footed.group(1)) if flat_footed else 0,
    )


def parse_saves(value: Any) -> Saves:
    """
    Parse "Fort +5, Ref +3, Will +1" or a {Fort, Ref, Will} mapping.

    A save missing from an otherwise valid entry counts as +0.

    Raises:
        StatParseError: when no save at all can be read
    """
    if isinstance(value, dict):
        lowered = {str(k).strip().lower(): v for k, v in value.items()}
        found = {
            "fort": parse_leading_int(lowered.get("fort", lowered.get("fortitude"))),
            "ref": parse_leading_int(lowered.get("ref", lowered.get("reflex"))),
            "will": parse_leading_int(lowered.get("will")),
        }
    elif isinstance(value, str):
        found = {}
        for save, pattern in _SAVE_PATTERNS.items():
            match = pattern.search(value)
            found[save] = int(match.group(1)) if match else None
    else:
        raise StatParseError("Saves", value)

    if all(v is None for v in found.values()):
        raise StatParseError("Saves", value)
    return Saves(**{save: v or 0 for save, v in found.items()})


def parse_max_hp(value: Any) -> int:
    """
    Max hit points from an HP entry.

    Accepted shapes:
        "2d8"          -> average of the dice (9)
        "25 (3d8+6)"   -> the leading integer (25)
        "(3d8+6)"      -> average of the dice in parentheses (19)

    Raises:
        StatParseError: when nothing usable is found or the result is not positive
    """
    if isinstance(value, bool) or (isinstance(value, float) and not math.isfinite(value)):
        raise StatParseError("HP", value)
    if isinstance(value, (int, float)):
        hp = int(value)
    else:
        text = str(value) if value is not None else ""
        paren = _HP_PAREN_DICE.search(text)
        if _HP_LEADING_DICE.match(text):
            hp = calculate_average_hp(text)
        elif _HP_LEADING_INT.match(text):
            hp = int(_HP_LEADING_INT.match(text).group(1))
        elif paren:
            hp = calculate_average_hp(paren.group(1))
        else:
            raise StatParseError("HP", value)
    if hp <= 0:
        raise StatParseError("HP", value, "hit points must be positive")
    return hp


def derive_saves(
    abilities: AbilityScores,
    level: int,
    creature_type: str = "",
    good_saves: Optional[List[str]] = None,
) -> Saves:
    """
    Saves from the progression tables plus ability modifiers.

    Undead add Cha to Fort; constructs add nothing to Fort.
    """
    index = save_table_index(level)
    creature_type = creature_type.lower()
    designated = None
    if good_saves is not None:
        designated = {canonical_stat(save).lower() for save in good_saves}

    values = {}
    for save, ability in SAVE_ABILITIES.items():
        if designated is not None:
            is_good = save in designated
        else:
            is_good = abilities.get(ability) >= GOOD_SAVE_THRESHOLD
        base = GOOD_SAVES[index] if is_good else POOR_SAVES[index]

        if save == "fort" and "undead" in creature_type:
            ability_mod = abilities.modifier("Cha")
        elif save == "fort" and "construct" in creature_type:
            ability_mod = 0
        else:
            ability_mod = abilities.modifier(ability)
        values[save] = base + ability_mod
    return Saves(**values)


# =============================================================================
# NORMALIZER
# =============================================================================

def _parse_abilities(fields: _RawFields) -> AbilityScores:
    scores = {}
    for ability in ABILITIES:
        full_name = ABILITY_FULL_NAMES[ability]
        raw = fields.get(ability, full_name)
        score = parse_leading_int(raw, DEFAULT_ABILITY_SCORE)
        if raw is not None and parse_leading_int(raw) is None:
            logger.debug("Ability %s=%r has no score, treating as %d", ability, raw, DEFAULT_ABILITY_SCORE)
        scores[full_name.lower()] = score
    return AbilityScores(**scores)


def _parse_skills(value: Any) -> Tuple[Optional[Dict[str, int]], Optional[str]]:
    if isinstance(value, dict):
        skills = {
            canonical_skill_name(str(name)) or str(name).strip(): parse_leading_int(bonus, 0)
            for name, bonus in value.items()
        }
        return skills, None
    if isinstance(value, str) and value.strip():
        return None, value.strip()
    return None, None


def _positive_int(value: Any) -> Optional[int]:
    number = parse_leading_int(value)
    return number if number is not None and number > 0 else None


def normalize_stats(raw: Dict[str, Any], options: Optional[NormalizeOptions] = None) -> BaseStats:
    """
    Normalize a raw stat block.

    Args:
        raw: Stat dict with loosely typed values, e.g. {"AC": "15, touch 12", "HP": "2d8"}
        options: Creature type, feats and save designations not in the block

    Returns:
        BaseStats with every numeric field an int
    """
    options = options or NormalizeOptions()
    fields = _RawFields(raw)

    abilities = _parse_abilities(fields)
    dex_mod = abilities.modifier("Dex")
    str_mod = abilities.modifier("Str")

    size: SizeCategory = parse_size(fields.get("Size"))
    size_data = get_size_data(size)

    raw_type = fields.get("Type", "Creature Type", "creature_type")
    creature_type = str(options.creature_type or raw_type or "")
    is_construct = "construct" in creature_type.lower()

    feats = split_list_text(fields.get("Feats"))
    feats.extend(f for f in options.feats if f not in feats)
    has_agile_maneuvers = any(FEAT_AGILE_MANEUVERS.lower() in f.lower() for f in feats)

    special_text = " ".join(
        str(v) for v in (
            fields.peek("Defensive Abilities"),
            fields.peek("SQ"),
            fields.peek("Special Abilities"),
            fields.peek("Special Qualities"),
        ) if v
    )
    specials = list(options.special_abilities) + [special_text]
    has_uncanny_dodge = any("uncanny dodge" in s.lower() for s in specials)

    level = _positive_int(fields.get("Level"))
    challenge = _positive_int(fields.get("CR"))

    # --- Armor class ---
    raw_ac = fields.get("AC", "Armor Class")
    raw_touch = parse_leading_int(fields.get("Touch", "Touch AC"))
    raw_flat_footed = parse_leading_int(fields.get("Flat-Footed", "FlatFooted", "Flat Footed", "flat_footed"))
    try:
        ac = parse_armor_class(raw_ac)
    except StatParseError as e:
        if raw_ac is not None:
            logger.debug("%s; using 10 + Dex + size", e.message)
        total = 10 + dex_mod + size_data.mod
        ac = ArmorClass(total=total, touch=total, flat_footed=0)
        ac_found = False
    else:
        ac_found = True
    if raw_touch is not None:
        ac.touch = raw_touch
    if raw_flat_footed is not None:
        ac.flat_footed = raw_flat_footed
    elif not (ac_found and _AC_FLAT_FOOTED.search(str(raw_ac))):
        ac.flat_footed = ac.total if has_uncanny_dodge else ac.total - dex_mod

    # --- Saves ---
    raw_saves = fields.get("Saves", "Saving Throws")
    separate = {
        "Fort": fields.get("Fort", "Fortitude"),
        "Ref": fields.get("Ref", "Reflex"),
        "Will": fields.get("Will"),
    }
    if raw_saves is None and any(v is not None for v in separate.values()):
        raw_saves = {k: v for k, v in separate.items() if v is not None}
    try:
        saves = parse_saves(raw_saves)
    except StatParseError as e:
        if raw_saves is not None:
            logger.debug("%s; deriving saves from level", e.message)
        saves = derive_saves(
            abilities,
            level or challenge or 1,
            creature_type=creature_type,
            good_saves=options.good_saves,
        )

    # --- Speed ---
    speed = parse_leading_int(fields.get("Speed"))
    if speed is None:
        speed = DEFAULT_SPEED

    # --- BAB / CMB / CMD ---
    bab = parse_leading_int(fields.get("Base Attack Bonus", "BAB", "Base Atk"))
    if bab is None:
        bab = calculate_bab(level, options.bab_progression or BabProgression.FULL)
    cmb_ability = max(str_mod, dex_mod) if (is_tiny_or_smaller(size) or has_agile_maneuvers) else str_mod
    cmb = parse_leading_int(fields.get("CMB"))
    if cmb is None:
        cmb = bab + cmb_ability + size_data.special_mod
    cmd = parse_leading_int(fields.get("CMD"))
    if cmd is None:
        cmd = 10 + bab + str_mod + dex_mod + size_data.special_mod

    # --- Hit points ---
    raw_hp = fields.get("HP", "Hit Points")
    raw_max_hp = _positive_int(fields.get("maxHp", "Max HP", "max_hp"))
    hp_text = raw_hp if raw_hp is not None else DEFAULT_HP_DICE
    if raw_max_hp is not None:
        max_hp = raw_max_hp
    else:
        try:
            max_hp = parse_max_hp(hp_text)
        except StatParseError as e:
            logger.debug("%s; using default of %d", e.message, options.default_max_hp)
            max_hp = options.default_max_hp
        if is_construct:
            max_hp += CONSTRUCT_HP_BONUS[size]
    hit_dice = hit_dice_count(raw_hp)

    skills, skills_text = _parse_skills(fields.get("Skills"))
    melee = fields.get("Melee")
    ranged = fields.get("Ranged")

    return BaseStats(
        abilities=abilities,
        ac=ac,
        saves=saves,
        bab=bab,
        cmb=cmb,
        cmd=cmd,
        max_hp=max(1, max_hp),
        speed=speed,
        size=size,
        level=level,
        hit_dice=hit_dice,
        creature_type=creature_type,
        feats=feats,
        skills=skills,
        skills_text=skills_text,
        melee=str(melee) if melee else "",
        ranged=str(ranged) if ranged else "",
        extra=fields.leftovers(),
    )
