"""
Cache Manager (v1.0.0)
Manages cache key generation and high-level cache operations for sort runs.
"""
import json
import hashlib
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence

from grid_service.cache.cache_store import CacheStore
from grid_service.config import get_settings
from grid_service.core.models import RowRule

logger = logging.getLogger(__name__)


def hash_bytes(content: bytes) -> str:
    """SHA256 of raw feed content."""
    return hashlib.sha256(content).hexdigest()


class CacheManager:
    """High-level cache management for sort results."""

    def __init__(self, cache_dir: Optional[str] = None, enabled: bool = True, ttl_minutes: int = 1440):
        self._enabled = enabled
        self.ttl_minutes = ttl_minutes
        self._store = CacheStore(cache_dir=cache_dir, ttl_minutes=ttl_minutes)

    @classmethod
    def from_settings(cls, settings) -> "CacheManager":
        return cls(
            cache_dir=str(Path(settings.data_dir) / "cache"),
            enabled=settings.cache_enabled,
            ttl_minutes=settings.cache_ttl_minutes,
        )

    @property
    def enabled(self) -> bool:
        """Check if caching is enabled."""
        return self._enabled

    def generate_cache_key(
        self,
        catalog_hash: str,
        inventory_hash: str,
        rules: Sequence[RowRule],
        excluded_types: Iterable[str],
        deprioritized: Iterable[str],
        media_overrides: Dict[str, Any],
        profile: str,
        engine: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Generate cache key from the run inputs.

        Args:
            catalog_hash: SHA256 of the catalog feed
            inventory_hash: SHA256 of the inventory feed
            rules: Row rules of the run
            excluded_types: Excluded garment types
            deprioritized: Deprioritized keywords/codes
            media_overrides: Stored media replacements of the job
            profile: Engine profile
            engine: Fingerprint of the engine options

        Returns:
            SHA256 hash as cache key
        """
        key_data = {
            "catalog": catalog_hash,
            "inventory": inventory_hash,
            "rules": [self._normalize_rule(r) for r in rules],
            "excluded_types": sorted({t.strip().lower() for t in excluded_types if t.strip()}),
            "deprioritized": sorted({t.strip().upper() for t in deprioritized if t.strip()}),
            "media_overrides": media_overrides or {},
            "profile": profile,
            "engine": engine or {},
        }

        key_string = json.dumps(key_data, sort_keys=True)
        return hashlib.sha256(key_string.encode()).hexdigest()

    def _normalize_rule(self, rule: RowRule) -> Dict[str, Any]:
        """Rule fields that affect the ordering (the id does not)."""
        return {
            "age": rule.age,
            "gender": rule.gender,
            "product_types": rule.requested_types,
        }

    def get(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """Get cached result."""
        if not self.enabled:
            return None
        return self._store.get(cache_key)

    def set(self, cache_key: str, result: Dict[str, Any]):
        """Cache a result."""
        if not self.enabled:
            return
        self._store.set(cache_key, result)

    def clear_expired(self) -> int:
        """Drop expired entries from disk."""
        return self._store.clear_expired()

    def get_status(self) -> Dict[str, Any]:
        """Get cache status for health endpoint."""
        stats = self._store.get_stats()
        return {
            "enabled": self.enabled,
            "type": "disk_json",
            "ttl_minutes": self.ttl_minutes,
            "entries": stats.get("entries", 0),
        }


# Global instance
cache_manager = CacheManager.from_settings(get_settings())
