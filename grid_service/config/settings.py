"""
Settings Module (v1.0.0)
Centralized configuration from environment variables.
"""
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).parent.parent
DEFAULT_DEPRIORITIZED = "Abbie,Sunny,Berni,Basico,Ojota"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str, default: str = "") -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings from environment variables."""

    # Storage
    data_dir: str = str(PACKAGE_DIR / "data")
    logs_dir: str = str(PACKAGE_DIR.parent / "logs")
    max_upload_mb: int = 25

    # Cache and logging
    cache_enabled: bool = True
    cache_ttl_minutes: int = 1440
    logging_enabled: bool = True

    # Business data files
    criteria_path: Optional[str] = None
    keywords_path: Optional[str] = None

    # Engine
    engine_profile: str = "full"
    phase1_window: int = 300
    phase2_window: int = 300
    fallback_window: int = 100
    extend_fallback_window: bool = False
    safety_factor: int = 2
    max_stuck_rows: int = 3
    hero_spacing_rows: int = 2

    # Tail
    tail_deprioritized: bool = True
    excluded_types: List[str] = field(default_factory=list)
    deprioritized: List[str] = field(default_factory=lambda: DEFAULT_DEPRIORITIZED.split(","))

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        profile = os.getenv("GRID_ENGINE_PROFILE", "full").lower()
        if profile not in ("full", "basic"):
            logger.warning(f"Unknown engine profile '{profile}', using 'full'")
            profile = "full"

        return cls(
            # Storage
            data_dir=os.getenv("GRID_DATA_DIR", str(PACKAGE_DIR / "data")),
            logs_dir=os.getenv("GRID_LOGS_DIR", str(PACKAGE_DIR.parent / "logs")),
            max_upload_mb=int(os.getenv("GRID_MAX_UPLOAD_MB", "25")),

            # Cache and logging
            cache_enabled=_env_bool("GRID_CACHE_ENABLED", "true"),
            cache_ttl_minutes=int(os.getenv("GRID_CACHE_TTL_MINUTES", "1440")),
            logging_enabled=_env_bool("GRID_LOGGING_ENABLED", "true"),

            # Business data files
            criteria_path=os.getenv("GRID_CRITERIA_PATH"),
            keywords_path=os.getenv("GRID_KEYWORDS_PATH"),

            # Engine
            engine_profile=profile,
            phase1_window=int(os.getenv("GRID_PHASE1_WINDOW", "300")),
            phase2_window=int(os.getenv("GRID_PHASE2_WINDOW", "300")),
            fallback_window=int(os.getenv("GRID_FALLBACK_WINDOW", "100")),
            extend_fallback_window=_env_bool("GRID_EXTEND_FALLBACK_WINDOW", "false"),
            safety_factor=int(os.getenv("GRID_SAFETY_FACTOR", "2")),
            max_stuck_rows=int(os.getenv("GRID_MAX_STUCK_ROWS", "3")),
            hero_spacing_rows=int(os.getenv("GRID_HERO_SPACING_ROWS", "2")),

            # Tail
            tail_deprioritized=_env_bool("GRID_TAIL_DEPRIORITIZED", "true"),
            excluded_types=_env_list("GRID_EXCLUDED_TYPES"),
            deprioritized=_env_list("GRID_DEPRIORITIZED", DEFAULT_DEPRIORITIZED),
        )

    def to_dict(self) -> dict:
        """Export settings as dict."""
        return {
            "data_dir": self.data_dir,
            "logs_dir": self.logs_dir,
            "max_upload_mb": self.max_upload_mb,
            "cache_enabled": self.cache_enabled,
            "cache_ttl_minutes": self.cache_ttl_minutes,
            "logging_enabled": self.logging_enabled,
            "criteria_configured": bool(self.criteria_path),
            "keywords_configured": bool(self.keywords_path),
            "engine_profile": self.engine_profile,
            "tail_deprioritized": self.tail_deprioritized,
            "excluded_types": list(self.excluded_types),
            "deprioritized": list(self.deprioritized),
        }


def get_settings() -> Settings:
    """Get application settings (cached singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info(f"Settings loaded: {_settings.to_dict()}")
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings.from_env()
    logger.info(f"Settings reloaded: {_settings.to_dict()}")
    return _settings


# Singleton instance
_settings: Optional[Settings] = None
