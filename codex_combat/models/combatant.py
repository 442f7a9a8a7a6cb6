"""
Combatant snapshot records.

A Combatant is owned by the combat tracker; the engine only ever reads it.
from_dict() accepts the tracker's document shape (camelCase keys,
"_id", "remainingRounds", ...) as well as snake_case keys.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from codex_combat.core.abilities import parse_leading_int


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present, non-None value among several spellings of a key."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


@dataclass
class Effect:
    """A named effect applied to a combatant (Haste, Shaken, ...)."""
    name: str
    duration: int = 0
    unit: str = "rounds"  # rounds, minutes, hours, days, permanent
    remaining_rounds: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Effect":
        return cls(
            name=data.get("name", ""),
            duration=int(data.get("duration") or 0),
            unit=data.get("unit", "rounds"),
            remaining_rounds=int(_first(data, "remaining_rounds", "remainingRounds", default=0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "duration": self.duration,
            "unit": self.unit,
            "remaining_rounds": self.remaining_rounds,
        }


@dataclass
class Item:
    """
    A weapon, armor or other item from the equipment catalogs.

    damage_by_size maps a size name ("medium", "small") to a dice string.
    max_dex is the armor's Dex cap, None when it imposes none.
    """
    id: str
    name: str
    item_type: str = "misc"  # weapon, armor, shield, misc
    damage_by_size: Dict[str, str] = field(default_factory=dict)
    critical: Optional[str] = None
    range_increment: Optional[int] = None
    light: bool = False
    max_dex: Optional[int] = None
    armor_check_penalty: int = 0
    equipped: bool = True
    is_magic: bool = False

    @property
    def is_weapon(self) -> bool:
        return self.item_type == "weapon"

    @property
    def is_armor(self) -> bool:
        return self.item_type in ("armor", "shield")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        """Create an Item from a catalog document, flat or with a properties block."""
        props = dict(data.get("properties") or {})
        merged = {**props, **{k: v for k, v in data.items() if k != "properties"}}

        damage_by_size = dict(merged.get("damage_by_size") or {})
        if merged.get("damage_m"):
            damage_by_size.setdefault("medium", merged["damage_m"])
        if merged.get("damage_s"):
            damage_by_size.setdefault("small", merged["damage_s"])

        max_dex = _first(merged, "max_dex", "maxDex")
        range_increment = _first(merged, "range_increment", "range")

        return cls(
            id=str(_first(merged, "id", "_id", default="")),
            name=merged.get("name", "Unknown Item"),
            item_type=_first(merged, "item_type", "type", default="misc"),
            damage_by_size=damage_by_size,
            critical=merged.get("critical"),
            range_increment=parse_leading_int(range_increment),
            light=bool(merged.get("light", False)),
            max_dex=parse_leading_int(max_dex),
            armor_check_penalty=parse_leading_int(
                _first(merged, "armor_check_penalty", "armorCheckPenalty")
            ) or 0,
            equipped=merged.get("equipped", True) is not False,
            is_magic=bool(_first(merged, "is_magic", "isMagic", default=False)),
        )


@dataclass
class FeatSet:
    """
    Feats a combatant possesses, and which of them are toggled on.

    Names compare case-insensitively.
    """
    names: List[str] = field(default_factory=list)
    active_names: List[str] = field(default_factory=list)

    def __post_init__(self):
        self._lower = {name.strip().lower() for name in self.names}
        self._active_lower = {name.strip().lower() for name in self.active_names}

    def has(self, name: str) -> bool:
        return name.strip().lower() in self._lower

    def is_active(self, name: str) -> bool:
        """True when the feat is possessed and currently toggled on."""
        key = name.strip().lower()
        return key in self._lower and key in self._active_lower

    def has_matching(self, fragment: str) -> bool:
        """True when any possessed feat name contains the fragment."""
        fragment = fragment.lower()
        return any(fragment in name for name in self._lower)

    def __iter__(self):
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)


@dataclass
class Combatant:
    """Read-only snapshot of one participant in a fight."""
    name: str
    base_stats: Dict[str, Any] = field(default_factory=dict)
    effects: List[Effect] = field(default_factory=list)
    temp_mods: Dict[str, Any] = field(default_factory=dict)

    # Feat ids toggled on by the operator, and every feat the creature has
    active_feats: List[str] = field(default_factory=list)
    feat_ids: List[str] = field(default_factory=list)

    # Catalog ids; magic items override mundane entries with the same id
    equipment_ids: List[str] = field(default_factory=list)
    magic_item_ids: List[str] = field(default_factory=list)
    equipped_items: List[Item] = field(default_factory=list)

    hp: Optional[int] = None
    max_hp: Optional[int] = None
    temp_hp: int = 0
    initiative: Optional[int] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Combatant":
        """Create a Combatant from a tracker document."""
        effects = [
            effect if isinstance(effect, Effect) else Effect.from_dict(effect)
            for effect in (data.get("effects") or [])
        ]
        items = [
            item if isinstance(item, Item) else Item.from_dict(item)
            for item in (_first(data, "equipped_items", "equippedItems", default=[]))
        ]
        return cls(
            name=data.get("name", "Unknown"),
            base_stats=dict(_first(data, "base_stats", "baseStats", default={})),
            effects=effects,
            temp_mods=dict(_first(data, "temp_mods", "tempMods", default={})),
            active_feats=list(_first(data, "active_feats", "activeFeats", default=[])),
            feat_ids=list(_first(data, "feat_ids", "featIds", "rules", default=[])),
            equipment_ids=list(_first(data, "equipment_ids", "equipment", default=[])),
            magic_item_ids=list(_first(data, "magic_item_ids", "magicItems", default=[])),
            equipped_items=items,
            hp=parse_leading_int(data.get("hp")),
            max_hp=parse_leading_int(_first(data, "max_hp", "maxHp")),
            temp_hp=parse_leading_int(_first(data, "temp_hp", "tempHp"), 0),
            initiative=data.get("initiative"),
            id=_first(data, "id", "_id"),
        )

    def effect_names(self) -> Iterable[str]:
        return (effect.name for effect in self.effects)
