"""
Configuration

Settings come from the environment, optionally seeded from a .env file next
to this module (or the default dotenv search path when there is none).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).parent
env_path = ROOT_DIR / '.env'


def load_environment() -> None:
    if env_path.exists():
        load_dotenv(env_path, override=True)
        logger.info(f"Loaded .env file from: {env_path}")
    else:
        load_dotenv(override=False)
        logger.debug(f".env file not found at {env_path}, using default locations")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using default {default}")
        return default


@dataclass(frozen=True)
class Settings:
    default_pricing_factor: float = 1.0
    default_margin: float = 0.0
    catalog_cache_ttl: float = 300
    log_level: str = "INFO"
    cors_origins: str = "*"
    cors_allow_credentials: bool = False

    @property
    def cors_origin_list(self) -> List[str]:
        if self.cors_origins.strip() == "*":
            return ["*"]
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        if not origins:
            logger.warning("CORS_ORIGINS resolved to an empty list; defaulting to http://localhost:3000")
            return ["http://localhost:3000"]
        return origins


def get_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings(
        default_pricing_factor=_env_float("DEFAULT_PRICING_FACTOR", 1.0),
        default_margin=_env_float("DEFAULT_MARGIN", 0.0),
        catalog_cache_ttl=_env_float("CATALOG_CACHE_TTL", 300),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        cors_origins=os.environ.get("CORS_ORIGINS", "*"),
        cors_allow_credentials=os.environ.get("CORS_ALLOW_CREDENTIALS", "false").lower() == "true",
    )
