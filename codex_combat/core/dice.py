"""
Dice notation and hit point helpers for Pathfinder stat blocks.

Handles:
- Dice notation parsing ("4d10+8", "3d8 - 2", "25 (3d8+12)")
- Average hit points from dice (the stat block convention)
- Hit dice count recovery for creatures without an explicit level
- Monster hit points by average, rolled, or maximum dice
"""
import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


DICE_PATTERN = re.compile(r"(\d+)d(\d+)\s*([+-]\s*\d+)?", re.IGNORECASE)
PAREN_DICE_PATTERN = re.compile(r"\(\s*(\d+)d\d+", re.IGNORECASE)
LEADING_DICE_PATTERN = re.compile(r"^\s*(\d+)d\d+", re.IGNORECASE)
LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")


class HpMethod(str, Enum):
    """How monster hit points are generated from hit dice."""
    AVERAGE = "average"
    ROLLED = "rolled"
    MAX = "max"


@dataclass(frozen=True)
class DiceExpression:
    """A single NdS+M dice expression."""
    count: int
    sides: int
    modifier: int = 0

    @property
    def average(self) -> int:
        """Stat block average: floor(count * (sides + 1) / 2) + modifier."""
        return (self.count * (self.sides + 1)) // 2 + self.modifier

    @property
    def maximum(self) -> int:
        return self.count * self.sides + self.modifier

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.count}d{self.sides}+{self.modifier}"
        if self.modifier < 0:
            return f"{self.count}d{self.sides}{self.modifier}"
        return f"{self.count}d{self.sides}"


def roll_die(sides: int) -> int:
    """Roll a single die with the given number of sides."""
    if sides < 1:
        raise ValueError(f"Invalid die: d{sides}")
    return random.randint(1, sides)


def parse_dice(text: Any) -> Optional[DiceExpression]:
    """
    Find the first dice expression in text.

    Args:
        text: Anything stringifiable, e.g. "4d10+8" or "30 (4d10+8)"

    Returns:
        DiceExpression, or None when the text holds no dice
    """
    if text is None:
        return None
    match = DICE_PATTERN.search(str(text))
    if not match:
        return None
    modifier = int(match.group(3).replace(" ", "")) if match.group(3) else 0
    return DiceExpression(
        count=int(match.group(1)),
        sides=int(match.group(2)),
        modifier=modifier,
    )


def calculate_average_hp(dice_string: Any) -> int:
    """
    Calculate average hit points from a dice string.

    "4d10+8" -> 30, "1d8" -> 4, "25" -> 25. A plain number is taken as-is.
    Unparseable input returns 1; the result is never below 1.
    """
    dice = parse_dice(dice_string)
    if dice is not None:
        return max(1, dice.average)

    match = LEADING_INT_PATTERN.match(str(dice_string)) if dice_string is not None else None
    if not match:
        return 1
    return max(1, int(match.group(1)))


def hit_dice_count(hp_text: Any) -> Optional[int]:
    """
    Number of hit dice in an HP entry, used as level when none is given.

    Dice in parentheses win ("30 (4d10+8)" -> 4), then leading dice ("2d8" -> 2).
    """
    if hp_text is None:
        return None
    text = str(hp_text)
    match = PAREN_DICE_PATTERN.search(text) or LEADING_DICE_PATTERN.search(text)
    if not match:
        return None
    return int(match.group(1))


def compute_hp_from_string(hp_string: Any, method: HpMethod = HpMethod.AVERAGE) -> int:
    """
    Hit points for a new combatant from its HP entry.

    Args:
        hp_string: HP entry such as "30 (4d10+8)" or "15"
        method: average, rolled, or max dice

    Returns:
        Hit points (at least 1 when dice are present, 10 when nothing parses)
    """
    if not hp_string:
        return 10
    method = HpMethod(method)

    dice = parse_dice(hp_string)
    if dice is None:
        digits = re.sub(r"[^0-9-]", "", str(hp_string))
        try:
            value = int(digits)
        except ValueError:
            return 10
        return value or 10

    if method == HpMethod.AVERAGE:
        return max(1, dice.average)
    if method == HpMethod.MAX:
        return max(1, dice.maximum)

    total = sum(roll_die(dice.sides) for _ in range(dice.count))
    return max(1, total + dice.modifier)
