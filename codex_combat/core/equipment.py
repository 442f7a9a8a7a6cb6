"""
Equipment helpers.

Resolves a combatant's catalog item ids into Item records and classifies
weapons and armor for the reconciler and the attack synthesizer.
"""
import logging
import re
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from codex_combat.core.size import SizeCategory
from codex_combat.core.tables import DEFAULT_WEAPON_DAMAGE, LIGHT_WEAPONS, RANGED_WEAPON_WORDS
from codex_combat.models.combatant import Item

if TYPE_CHECKING:
    from codex_combat.models.catalog import CatalogContext
    from codex_combat.models.combatant import Combatant

logger = logging.getLogger(__name__)


_ENHANCEMENT_PREFIX = re.compile(r"^\s*\+(\d+)")
_LIGHT_WEAPON_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(name) for name in sorted(LIGHT_WEAPONS, key=len, reverse=True)) + r")s?\b",
    re.IGNORECASE,
)


def resolve_equipped_items(combatant: "Combatant", catalogs: "CatalogContext") -> List[Item]:
    """
    Look up a combatant's equipment and magic item ids.

    A magic item replaces a mundane entry with the same id. Unknown ids are
    skipped, and items marked unequipped are left out.
    """
    by_id: Dict[str, Item] = {}

    for item_id in combatant.equipment_ids:
        definition = catalogs.item(item_id)
        if definition is None:
            logger.debug("No equipment catalog entry for %r on %s", item_id, combatant.name)
            continue
        by_id.setdefault(item_id, definition.to_item(is_magic=False))

    for item_id in combatant.magic_item_ids:
        definition = catalogs.magic_item(item_id) or catalogs.item(item_id)
        if definition is None:
            logger.debug("No magic item catalog entry for %r on %s", item_id, combatant.name)
            continue
        by_id[item_id] = definition.to_item(is_magic=True)

    items = list(by_id.values())
    items.extend(item for item in combatant.equipped_items if item.id not in by_id)
    return [item for item in items if item.equipped]


def get_armor_max_dex(items: Iterable[Item]) -> Optional[int]:
    """Lowest max-Dex cap among equipped items, or None when nothing caps Dex."""
    caps = [item.max_dex for item in items if item.equipped and item.max_dex is not None]
    return min(caps) if caps else None


def get_armor_check_penalty(items: Iterable[Item]) -> int:
    """Total armor check penalty of equipped armor and shields (zero or negative)."""
    return -sum(
        abs(item.armor_check_penalty)
        for item in items
        if item.equipped and item.is_armor
    )


def enhancement_bonus(name: str) -> int:
    """Enhancement bonus from a leading "+N" in the item name ("+1 longsword" -> 1)."""
    match = _ENHANCEMENT_PREFIX.match(name or "")
    return int(match.group(1)) if match else 0


def is_ranged_weapon(item: Item) -> bool:
    if item.range_increment:
        return True
    lowered = item.name.lower()
    return any(word in lowered for word in RANGED_WEAPON_WORDS)


def is_thrown_weapon(item: Item) -> bool:
    """A weapon with a range increment that is not a bow, crossbow or sling."""
    if not item.range_increment or item.range_increment <= 0:
        return False
    lowered = item.name.lower()
    return not any(word in lowered for word in RANGED_WEAPON_WORDS)


def is_light_weapon(item: Item) -> bool:
    return item.light or bool(_LIGHT_WEAPON_PATTERN.search(item.name))


def is_composite(item: Item) -> bool:
    return "composite" in item.name.lower()


def weapon_damage_dice(item: Item, size: SizeCategory = SizeCategory.MEDIUM) -> str:
    """Damage dice for the wielder's size, falling back to Medium, then 1d6."""
    damage = item.damage_by_size
    return damage.get(size.value.lower()) or damage.get("medium") or DEFAULT_WEAPON_DAMAGE
