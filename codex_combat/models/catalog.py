"""
Reference catalog models.

Catalog documents (effects, feats, equipment) are validated with pydantic at
load time. Modifier lists are accepted in either shape found in the data:

    {"AC": {"type": "dodge", "value": 1}}                 # object form
    [{"target": "AC", "type": "dodge", "value": 1}]       # list form
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from codex_combat.core.modifiers import Modifier
from codex_combat.models.combatant import Item


def _modifier_list(raw: Any) -> List[Any]:
    """Turn either modifier-list shape into the list form."""
    if raw is None:
        return []
    if isinstance(raw, dict):
        specs = []
        for stat, spec in raw.items():
            if isinstance(spec, dict):
                specs.append({"target": stat, **spec})
            else:
                specs.append({"target": stat, "value": spec})
        return specs
    return list(raw)


class ModifierSpec(BaseModel):
    """One modifier as written in a catalog."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    target: str = Field(validation_alias=AliasChoices("target", "stat", "targetStat", "target_stat"))
    bonus_type: str = Field(
        default="untyped",
        validation_alias=AliasChoices("type", "bonusType", "bonus_type"),
    )
    value: Union[int, str]

    def to_modifier(self) -> Optional[Modifier]:
        return Modifier.create(self.target, self.bonus_type, self.value)


class _ModifierSource(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    modifiers: List[ModifierSpec] = Field(default_factory=list)

    def to_modifiers(self) -> List[Modifier]:
        built = (spec.to_modifier() for spec in self.modifiers)
        return [modifier for modifier in built if modifier is not None]


class EffectDefinition(_ModifierSource):
    """A named effect and the modifiers it grants."""
    name: str
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Documents cached by the tracker wrap their payload in "data"
        inner = data.get("data")
        if isinstance(inner, dict) and "modifiers" not in data:
            data = {**inner, **{k: v for k, v in data.items() if k != "data"}}
        data["modifiers"] = _modifier_list(data.get("modifiers"))
        return data


class FeatDefinition(_ModifierSource):
    """A feat; toggleable feats carry the modifiers they grant while on."""
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        raw = data.get("modifiers", data.get("effects"))
        data["modifiers"] = _modifier_list(raw)
        data.pop("effects", None)
        return data


class ItemDefinition(BaseModel):
    """An equipment or magic item catalog entry."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    item_type: str = Field(default="misc", validation_alias=AliasChoices("type", "item_type"))
    properties: Dict[str, Any] = Field(default_factory=dict)
    equipped: bool = True
    is_magic: bool = Field(default=False, validation_alias=AliasChoices("is_magic", "isMagic"))

    def to_item(self, is_magic: Optional[bool] = None) -> Item:
        return Item.from_dict({
            "id": self.id,
            "name": self.name,
            "item_type": self.item_type,
            "properties": {**(self.model_extra or {}), **self.properties},
            "equipped": self.equipped,
            "is_magic": self.is_magic if is_magic is None else is_magic,
        })


@dataclass(frozen=True)
class CatalogContext:
    """
    Read-only reference catalogs passed into every resolution.

    effects are keyed by name, feats and items by id.
    """
    effects: Dict[str, EffectDefinition] = field(default_factory=dict)
    feats: Dict[str, FeatDefinition] = field(default_factory=dict)
    items: Dict[str, ItemDefinition] = field(default_factory=dict)
    magic_items: Dict[str, ItemDefinition] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "CatalogContext":
        return cls()

    def effect(self, name: str) -> Optional[EffectDefinition]:
        """Effect by exact name, then case-insensitively."""
        if name in self.effects:
            return self.effects[name]
        lowered = name.strip().lower()
        for key, definition in self.effects.items():
            if key.lower() == lowered:
                return definition
        return None

    def feat(self, feat_id: str) -> Optional[FeatDefinition]:
        """Feat by id, then by name case-insensitively."""
        if feat_id in self.feats:
            return self.feats[feat_id]
        lowered = feat_id.strip().lower()
        for definition in self.feats.values():
            if definition.name.lower() == lowered:
                return definition
        return None

    def item(self, item_id: str) -> Optional[ItemDefinition]:
        return self.items.get(item_id)

    def magic_item(self, item_id: str) -> Optional[ItemDefinition]:
        return self.magic_items.get(item_id)

    def __repr__(self) -> str:
        return (
            f"CatalogContext(effects={len(self.effects)}, feats={len(self.feats)}, "
            f"items={len(self.items)}, magic_items={len(self.magic_items)})"
        )
