"""
Cache Store (v1.0.0)
Disk-based JSON store for sort results, one file per cache key.

Entry layout:
    {"key": ..., "stored_at": <epoch>, "expires_at": <epoch>, "result": {...}}
"""
import json
import time
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".json"


class CacheStore:
    """Sort result entries on disk with a fixed time-to-live."""

    def __init__(self, cache_dir: Optional[str] = None, ttl_minutes: int = 1440):
        """
        Args:
            cache_dir: Directory for entry files (package data/cache when omitted)
            ttl_minutes: Entry lifetime; 0 expires entries immediately
        """
        if cache_dir is None:
            cache_dir = Path(__file__).parent.parent / "data" / "cache"
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_minutes * 60
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _entry_path(self, cache_key: str) -> Path:
        return self.cache_dir / f"{cache_key}{ENTRY_SUFFIX}"

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable cache entry {path.name}: {e}")
            return None

    @staticmethod
    def _expired(entry: Dict[str, Any], now: float) -> bool:
        return now >= entry.get("expires_at", 0)

    def get(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """Stored result for `cache_key`, or None when absent or expired."""
        path = self._entry_path(cache_key)
        entry = self._read(path)
        if entry is None:
            return None

        if self._expired(entry, time.time()):
            logger.info(f"Cache entry expired: {cache_key[:16]}...")
            self._remove(path)
            return None

        logger.info(f"Cache hit: {cache_key[:16]}...")
        return entry.get("result")

    def set(self, cache_key: str, result: Dict[str, Any]):
        """Write `result` under `cache_key`. Write failures are logged, not raised."""
        now = time.time()
        entry = {
            "key": cache_key,
            "stored_at": now,
            "expires_at": now + self.ttl_seconds,
            "result": result,
        }
        path = self._entry_path(cache_key)
        tmp_path = path.with_suffix(".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(entry, f, ensure_ascii=False)
            tmp_path.replace(path)
            logger.info(f"Cache stored: {cache_key[:16]}...")
        except OSError as e:
            logger.warning(f"Cache write failed for {cache_key[:16]}...: {e}")

    def _remove(self, path: Path):
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Cache entry not removed {path.name}: {e}")

    def _entries(self) -> Iterator[Tuple[Path, Optional[Dict[str, Any]]]]:
        for path in self.cache_dir.glob(f"*{ENTRY_SUFFIX}"):
            yield path, self._read(path)

    def clear_expired(self) -> int:
        """Delete expired or unreadable entries. Returns how many were deleted."""
        now = time.time()
        removed = 0
        for path, entry in self._entries():
            if entry is None or self._expired(entry, now):
                self._remove(path)
                removed += 1

        if removed:
            logger.info(f"Pruned {removed} cache entries")
        return removed

    def get_stats(self) -> Dict[str, Any]:
        """Entry count and total size on disk."""
        files = list(self.cache_dir.glob(f"*{ENTRY_SUFFIX}"))
        size = 0
        for path in files:
            try:
                size += path.stat().st_size
            except OSError:
                continue
        return {
            "entries": len(files),
            "size_bytes": size,
            "ttl_minutes": self.ttl_seconds // 60,
        }
