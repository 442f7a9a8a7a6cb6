"""Engine configuration using environment variables."""
import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from codex_combat.core.dice import HpMethod

load_dotenv()

logger = logging.getLogger(__name__)

BUNDLED_DATA_DIR = Path(__file__).parent / "data"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings:
    """Engine settings loaded from environment variables."""

    def __init__(self):
        # Reference catalogs (effects.json, feats.json, equipment.json, ...)
        self.CATALOG_DATA_DIR: Path = Path(os.getenv("CATALOG_DATA_DIR", str(BUNDLED_DATA_DIR)))

        # Max HP used when a stat block's HP entry cannot be read
        self.DEFAULT_MAX_HP: int = int(os.getenv("DEFAULT_MAX_HP", "10"))

        # How new monsters get hit points from their hit dice
        self.MONSTER_HP_METHOD: HpMethod = _hp_method(os.getenv("MONSTER_HP_METHOD", "average"))

        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


def _hp_method(value: str) -> HpMethod:
    try:
        return HpMethod(value.strip().lower())
    except ValueError:
        logger.warning("Unknown MONSTER_HP_METHOD %r, using average", value)
        return HpMethod.AVERAGE


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str = None) -> None:
    """Install a basic log handler for applications embedding the engine."""
    level = (level or get_settings().LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
