# Stat, Combatant and Catalog Models

from .stats import (
    AbilityScores,
    ArmorClass,
    Saves,
    BaseStats,
    EffectiveStats,
)

from .combatant import (
    Combatant,
    Effect,
    FeatSet,
    Item,
)

from .catalog import (
    CatalogContext,
    EffectDefinition,
    FeatDefinition,
    ItemDefinition,
    ModifierSpec,
)

__all__ = [
    'AbilityScores',
    'ArmorClass',
    'Saves',
    'BaseStats',
    'EffectiveStats',
    'Combatant',
    'Effect',
    'FeatSet',
    'Item',
    'CatalogContext',
    'EffectDefinition',
    'FeatDefinition',
    'ItemDefinition',
    'ModifierSpec',
]
