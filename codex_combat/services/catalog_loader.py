"""
Reference Catalog Loader.

Loads the effect, feat and equipment catalogs from JSON files into a
read-only CatalogContext. This is the only part of the engine that reads
files; the resolution path only ever receives the loaded context.

Layout of a catalog directory:
    effects.json       {"effects": [...]} or {"Haste": {...}, ...}
    feats.json         {"feats": [...]}
    equipment.json     {"weapons": [...], "armor": [...], "shields": [...], "items": [...]}
    magic_items.json   {"items": [...]}
"""
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from codex_combat.config import get_settings
from codex_combat.core.errors import CatalogNotFoundError
from codex_combat.models.catalog import (
    CatalogContext,
    EffectDefinition,
    FeatDefinition,
    ItemDefinition,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

EFFECTS_FILE = "effects.json"
FEATS_FILE = "feats.json"
EQUIPMENT_FILE = "equipment.json"
MAGIC_ITEMS_FILE = "magic_items.json"

# Equipment file sections and the item type their entries get
EQUIPMENT_SECTIONS = {
    "weapons": "weapon",
    "armor": "armor",
    "shields": "shield",
    "items": None,
    "gear": "gear",
}


def _keyed_entries(raw: Any, key_field: str) -> List[Tuple[str, Any]]:
    """
    Flatten a catalog section into (key, entry) pairs.

    Sections are either a list of entries or a mapping from key to entry;
    in the mapping form the key fills in a missing name/id.
    """
    if isinstance(raw, list):
        return [
            (str(entry.get(key_field, "?")) if isinstance(entry, dict) else "?", entry)
            for entry in raw
        ]
    if isinstance(raw, dict):
        pairs = []
        for key, entry in raw.items():
            if isinstance(entry, dict):
                entry = {key_field: key, **entry}
            pairs.append((str(key), entry))
        return pairs
    return []


def _validate_entries(
    model: Type[ModelT],
    entries: Iterable[Tuple[str, Any]],
    kind: str,
) -> List[ModelT]:
    """Validate entries one by one; invalid entries are logged and skipped."""
    valid = []
    for key, entry in entries:
        try:
            valid.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping invalid %s entry %r: %d validation error(s)", kind, key, e.error_count())
            logger.debug("Validation details for %s %r: %s", kind, key, e)
    return valid


def _effect_entries(raw: Any) -> List[Tuple[str, Any]]:
    if isinstance(raw, dict) and isinstance(raw.get("effects"), (list, dict)):
        raw = raw["effects"]
    return _keyed_entries(raw, "name")


def _feat_entries(raw: Any) -> List[Tuple[str, Any]]:
    if isinstance(raw, dict) and isinstance(raw.get("feats"), (list, dict)):
        raw = raw["feats"]
    return _keyed_entries(raw, "id")


def _item_entries(raw: Any) -> List[Tuple[str, Any]]:
    if isinstance(raw, list):
        return _keyed_entries(raw, "id")
    if not isinstance(raw, dict):
        return []
    if not any(section in raw for section in EQUIPMENT_SECTIONS):
        return _keyed_entries(raw, "id")

    pairs = []
    for section, item_type in EQUIPMENT_SECTIONS.items():
        for key, entry in _keyed_entries(raw.get(section), "id"):
            if item_type and isinstance(entry, dict):
                entry = {**entry, "item_type": entry.get("item_type", entry.get("type", item_type))}
            pairs.append((key, entry))
    return pairs


def build_catalogs(
    effects: Any = None,
    feats: Any = None,
    items: Any = None,
    magic_items: Any = None,
) -> CatalogContext:
    """
    Build a CatalogContext from already-parsed catalog documents.

    Each argument accepts the same shapes as the corresponding JSON file.
    """
    effect_defs = _validate_entries(EffectDefinition, _effect_entries(effects), "effect")
    feat_defs = _validate_entries(FeatDefinition, _feat_entries(feats), "feat")
    item_defs = _validate_entries(ItemDefinition, _item_entries(items), "equipment")
    magic_defs = _validate_entries(ItemDefinition, _item_entries(magic_items), "magic item")

    return CatalogContext(
        effects={effect.name: effect for effect in effect_defs},
        feats={feat.id: feat for feat in feat_defs},
        items={item.id: item for item in item_defs},
        magic_items={item.id: item.model_copy(update={"is_magic": True}) for item in magic_defs},
    )


class CatalogLoader:
    """Loads reference catalogs from a data directory."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self._explicit = data_dir is not None
        self.data_dir = Path(data_dir) if data_dir is not None else get_settings().CATALOG_DATA_DIR

    def _load_json_file(self, filepath: Path) -> Optional[Any]:
        """Load a single JSON file; a missing or malformed file yields None."""
        if not filepath.exists():
            logger.debug("Catalog file not found: %s", filepath)
            return None
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Error loading %s: %s", filepath, e)
            return None

    def load(self) -> CatalogContext:
        """
        Load every catalog file in the data directory.

        Raises:
            CatalogNotFoundError: when an explicitly given directory does not exist
        """
        if not self.data_dir.is_dir():
            if self._explicit:
                raise CatalogNotFoundError(str(self.data_dir))
            logger.warning("Catalog directory not found: %s", self.data_dir)
            return CatalogContext.empty()

        catalogs = build_catalogs(
            effects=self._load_json_file(self.data_dir / EFFECTS_FILE),
            feats=self._load_json_file(self.data_dir / FEATS_FILE),
            items=self._load_json_file(self.data_dir / EQUIPMENT_FILE),
            magic_items=self._load_json_file(self.data_dir / MAGIC_ITEMS_FILE),
        )
        logger.info(
            "Loaded %d effects, %d feats, %d equipment items, %d magic items from %s",
            len(catalogs.effects), len(catalogs.feats),
            len(catalogs.items), len(catalogs.magic_items), self.data_dir,
        )
        return catalogs


def load_catalogs(data_dir: Optional[Union[str, Path]] = None) -> CatalogContext:
    """Load catalogs from data_dir, or from CATALOG_DATA_DIR when not given."""
    return CatalogLoader(data_dir).load()


@lru_cache()
def get_default_catalogs() -> CatalogContext:
    """Get the cached catalogs from the configured data directory."""
    return load_catalogs()

