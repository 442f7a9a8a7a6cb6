"""
Size categories and their combat adjustments.

Two distinct modifier tables apply: the size modifier (AC and attack rolls)
and the special size modifier (CMB and CMD), which run in opposite
directions. Stealth and Fly checks get their own corrections.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class SizeCategory(str, Enum):
    """The nine size categories, smallest first."""
    FINE = "Fine"
    DIMINUTIVE = "Diminutive"
    TINY = "Tiny"
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    HUGE = "Huge"
    GARGANTUAN = "Gargantuan"
    COLOSSAL = "Colossal"


@dataclass(frozen=True)
class SizeData:
    """Adjustments granted by a size category."""
    mod: int            # AC and attack rolls
    special_mod: int    # CMB and CMD
    stealth: int
    fly: int


SIZE_DATA: Dict[SizeCategory, SizeData] = {
    SizeCategory.FINE: SizeData(mod=8, special_mod=-8, stealth=16, fly=8),
    SizeCategory.DIMINUTIVE: SizeData(mod=4, special_mod=-4, stealth=12, fly=6),
    SizeCategory.TINY: SizeData(mod=2, special_mod=-2, stealth=8, fly=4),
    SizeCategory.SMALL: SizeData(mod=1, special_mod=-1, stealth=4, fly=2),
    SizeCategory.MEDIUM: SizeData(mod=0, special_mod=0, stealth=0, fly=0),
    SizeCategory.LARGE: SizeData(mod=-1, special_mod=1, stealth=-4, fly=-2),
    SizeCategory.HUGE: SizeData(mod=-2, special_mod=2, stealth=-8, fly=-4),
    SizeCategory.GARGANTUAN: SizeData(mod=-4, special_mod=4, stealth=-12, fly=-6),
    SizeCategory.COLOSSAL: SizeData(mod=-8, special_mod=8, stealth=-16, fly=-8),
}

# Constructs get flat bonus hit points by size instead of a Con modifier
CONSTRUCT_HP_BONUS: Dict[SizeCategory, int] = {
    SizeCategory.FINE: 0,
    SizeCategory.DIMINUTIVE: 0,
    SizeCategory.TINY: 0,
    SizeCategory.SMALL: 10,
    SizeCategory.MEDIUM: 20,
    SizeCategory.LARGE: 30,
    SizeCategory.HUGE: 40,
    SizeCategory.GARGANTUAN: 60,
    SizeCategory.COLOSSAL: 80,
}

_SIZE_PATTERN = re.compile(
    r"\b(?:" + "|".join(size.value for size in SizeCategory) + r")\b",
    re.IGNORECASE,
)


def parse_size(value: Any) -> SizeCategory:
    """
    Match a size category case-insensitively.

    "Large (tall)" -> LARGE, "huge" -> HUGE. Anything unrecognized is MEDIUM.
    """
    if isinstance(value, SizeCategory):
        return value
    if not value:
        return SizeCategory.MEDIUM
    match = _SIZE_PATTERN.search(str(value))
    if not match:
        return SizeCategory.MEDIUM
    return SizeCategory(match.group(0).capitalize())


def get_size_data(size: SizeCategory) -> SizeData:
    return SIZE_DATA[size]


def is_tiny_or_smaller(size: SizeCategory) -> bool:
    return size in (SizeCategory.FINE, SizeCategory.DIMINUTIVE, SizeCategory.TINY)
