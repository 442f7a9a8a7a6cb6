"""
Stacking Resolver.

Reduces each (stat, bonus type) bucket to a single value and sums the
per-type results into one net bonus per stat.

- dodge, untyped, penalty, circumstance, morale and competence bonuses sum
- every other type, including unrecognized ones, keeps only the best
  positive value plus the worst negative value
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from codex_combat.core.modifiers import ModifierBuckets, is_always_stacking
from codex_combat.core.tables import canonical_stat


def stack_values(bonus_type: str, values: Iterable[int]) -> int:
    """
    Combine same-typed values.

    Examples:
        stack_values("dodge", [2, 3]) -> 5
        stack_values("enhancement", [2, 3]) -> 3
        stack_values("enhancement", [2, -1]) -> 1
    """
    values = list(values)
    if not values:
        return 0
    if is_always_stacking(bonus_type):
        return sum(values)

    positives = [v for v in values if v > 0]
    negatives = [v for v in values if v < 0]
    total = 0
    if positives:
        total += max(positives)
    if negatives:
        total += min(negatives)
    return total


@dataclass
class StackedBonuses:
    """Net numeric bonus and collected qualitative tokens, per canonical stat."""
    net: Dict[str, int] = field(default_factory=dict)
    qualitative: Dict[str, List[str]] = field(default_factory=dict)

    def get(self, stat: str, default: int = 0) -> int:
        return self.net.get(canonical_stat(stat), default)

    def tokens(self, stat: str) -> List[str]:
        return list(self.qualitative.get(canonical_stat(stat), []))

    def to_dict(self) -> Dict[str, object]:
        return {
            "net": dict(self.net),
            "qualitative": {stat: list(tokens) for stat, tokens in self.qualitative.items()},
        }


def resolve_stacking(buckets: ModifierBuckets) -> StackedBonuses:
    """Apply the stacking rules to every bucket."""
    net: Dict[str, int] = {}
    for stat, by_type in buckets.numeric.items():
        net[stat] = sum(stack_values(bonus_type, values) for bonus_type, values in by_type.items())

    qualitative: Dict[str, List[str]] = {}
    for stat in buckets.qualitative:
        tokens = buckets.tokens(stat)
        if tokens:
            qualitative[stat] = tokens

    return StackedBonuses(net=net, qualitative=qualitative)
