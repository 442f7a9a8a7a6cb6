"""
Codex Combat - Test Configuration and Fixtures
Shared stat blocks, synthetic catalogs and combatant builders for pytest.
"""
import pytest
from typing import Dict, Any
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from codex_combat.config import get_settings
from codex_combat.models.catalog import CatalogContext
from codex_combat.models.combatant import Combatant, Effect, Item
from codex_combat.services.catalog_loader import build_catalogs, get_default_catalogs


# ==================== Settings Fixtures ====================

@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings and default catalogs are cached; reset them around every test."""
    get_settings.cache_clear()
    get_default_catalogs.cache_clear()
    yield
    get_settings.cache_clear()
    get_default_catalogs.cache_clear()


# ==================== Stat Block Fixtures ====================

@pytest.fixture
def goblin_raw() -> Dict[str, Any]:
    """A bestiary goblin, typed in the way stat blocks usually are."""
    return {
        "Size": "Small",
        "Type": "humanoid (goblinoid)",
        "CR": "1/3",
        "Str": 11,
        "Dex": 15,
        "Con": 12,
        "Int": 10,
        "Wis": 9,
        "Cha": 6,
        "AC": "16, touch 13, flat-footed 14",
        "HP": "6 (1d10+1)",
        "Saves": "Fort +3, Ref +2, Will -1",
        "Speed": "30 ft.",
        "Base Attack Bonus": "+1",
        "CMB": "+0",
        "CMD": "12",
        "Feats": "Improved Initiative",
        "Skills": "Ride +10, Stealth +10, Swim +4",
        "Melee": "short sword +2 (1d4/19-20)",
        "Languages": "Goblin",
    }


@pytest.fixture
def fighter_raw() -> Dict[str, Any]:
    """A level 5 fighter with no derived fields filled in."""
    return {
        "Level": 5,
        "Str": 16,
        "Dex": 14,
        "Con": 14,
        "Int": 10,
        "Wis": 12,
        "Cha": 8,
        "AC": "18, touch 12, flat-footed 16",
        "HP": "44",
    }


@pytest.fixture
def owlbear_raw() -> Dict[str, Any]:
    """A Large magical beast with natural attacks."""
    return {
        "Size": "Large",
        "Str": 21,
        "Dex": 12,
        "Con": 17,
        "AC": "15, touch 10, flat-footed 14",
        "HP": "47 (5d10+20)",
        "Saves": "Fort +8, Ref +5, Will +2",
        "Base Attack Bonus": "+5",
        "Melee": "2 claws +8 (1d6+5 plus grab), bite +8 (1d6+5)",
        "Skills": {"Perception": 12},
    }


# ==================== Catalog Fixtures ====================

@pytest.fixture
def effects_doc() -> Dict[str, Any]:
    return {
        "effects": [
            {
                "name": "Haste",
                "modifiers": [
                    {"target": "Attack", "type": "untyped", "value": 1},
                    {"target": "AC", "type": "dodge", "value": 1},
                    {"target": "Touch", "type": "dodge", "value": 1},
                    {"target": "Ref", "type": "dodge", "value": 1},
                    {"target": "Speed", "type": "enhancement", "value": 30},
                ],
            },
            {
                "name": "Slow",
                "modifiers": [
                    {"target": "Attack", "type": "penalty", "value": -1},
                    {"target": "Speed", "type": "penalty", "value": "half"},
                ],
            },
            {"name": "Bless", "modifiers": {"Attack": {"type": "morale", "value": 1}}},
            {"name": "Shield of Faith", "modifiers": {"AC": {"type": "deflection", "value": 2}}},
            {"name": "Greater Shield of Faith", "modifiers": {"AC": {"type": "deflection", "value": 3}}},
            {"name": "Cat's Grace", "modifiers": {"Dex": {"type": "enhancement", "value": 4}}},
            {"name": "Bear's Endurance", "modifiers": {"Con": {"type": "enhancement", "value": 4}}},
            {
                "name": "Shaken",
                "modifiers": [
                    {"target": "Attack", "type": "penalty", "value": -2},
                    {"target": "Saves", "type": "penalty", "value": -2},
                    {"target": "Skill Checks", "type": "penalty", "value": -2},
                ],
            },
        ]
    }


@pytest.fixture
def feats_doc() -> Dict[str, Any]:
    return {
        "feats": [
            {"id": "power-attack", "name": "Power Attack"},
            {"id": "weapon-finesse", "name": "Weapon Finesse"},
            {"id": "multiattack", "name": "Multiattack"},
            {"id": "improved-initiative", "name": "Improved Initiative"},
            {
                "id": "dodge",
                "name": "Dodge",
                "effects": [{"target": "AC", "type": "dodge", "value": 1}],
            },
        ]
    }


@pytest.fixture
def equipment_doc() -> Dict[str, Any]:
    return {
        "weapons": [
            {"id": "longsword", "name": "Longsword", "properties": {"damage_s": "1d6", "damage_m": "1d8", "critical": "19-20/x2"}},
            {"id": "short-sword", "name": "Short Sword", "properties": {"damage_s": "1d4", "damage_m": "1d6", "critical": "19-20/x2", "light": True}},
            {"id": "longbow", "name": "Longbow", "properties": {"damage_m": "1d8", "critical": "x3", "range": 100}},
        ],
        "armor": [
            {"id": "breastplate", "name": "Breastplate", "properties": {"max_dex": 3, "armor_check_penalty": -4}},
        ],
        "shields": [
            {"id": "heavy-steel-shield", "name": "Heavy Steel Shield", "properties": {"armor_check_penalty": -2}},
        ],
    }


@pytest.fixture
def magic_items_doc() -> Dict[str, Any]:
    return {
        "items": [
            {"id": "longsword", "name": "+1 Longsword", "type": "weapon", "properties": {"damage_m": "1d8", "critical": "19-20/x2"}},
        ]
    }


@pytest.fixture
def catalogs(effects_doc, feats_doc, equipment_doc, magic_items_doc) -> CatalogContext:
    """Synthetic catalogs built without touching the filesystem."""
    return build_catalogs(
        effects=effects_doc,
        feats=feats_doc,
        items=equipment_doc,
        magic_items=magic_items_doc,
    )


# ==================== Combatant Fixtures ====================

@pytest.fixture
def make_combatant():
    """Factory for combatant snapshots."""
    def _make(name: str = "Test Combatant", base_stats: Dict[str, Any] = None, effects=None, **kwargs) -> Combatant:
        return Combatant(
            name=name,
            base_stats=dict(base_stats or {}),
            effects=[Effect(name=e) if isinstance(e, str) else e for e in (effects or [])],
            **kwargs
        )
    return _make


@pytest.fixture
def longsword() -> Item:
    return Item(
        id="longsword",
        name="Longsword",
        item_type="weapon",
        damage_by_size={"medium": "1d8", "small": "1d6"},
        critical="19-20/x2",
    )


@pytest.fixture
def short_sword() -> Item:
    return Item(
        id="short-sword",
        name="Short Sword",
        item_type="weapon",
        damage_by_size={"medium": "1d6", "small": "1d4"},
        critical="19-20/x2",
        light=True,
    )
