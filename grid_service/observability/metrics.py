"""
Metrics Module (v1.0.0)
Track sort runs, cache performance and allocator degradation.
"""
import threading
from typing import Dict, Any


def _empty_metrics() -> Dict[str, Any]:
    return {
        "total_runs": 0,
        "cache_hits": 0,
        "cache_misses": 0,
        "superseded_runs": 0,
        "items_sorted": 0,
        "rows_dropped": 0,
        "flushed_items": 0,
        "errors": 0,
        "runs_by_profile": {},
    }


# Thread-safe metrics storage
_lock = threading.Lock()
_metrics = _empty_metrics()


def increment_run(
    profile: str,
    cache_hit: bool,
    items: int = 0,
    flushed: int = 0,
    superseded: bool = False,
    error: bool = False,
):
    """
    Record a sort run in metrics.

    Args:
        profile: Engine profile used
        cache_hit: Whether it was a cache hit
        items: Variants in the ordering
        flushed: Items appended by the allocator flush
        superseded: Whether a newer run replaced this one
        error: Whether the run failed
    """
    with _lock:
        _metrics["total_runs"] += 1

        if cache_hit:
            _metrics["cache_hits"] += 1
        else:
            _metrics["cache_misses"] += 1

        _metrics["items_sorted"] += items
        _metrics["flushed_items"] += flushed

        if profile:
            _metrics["runs_by_profile"][profile] = _metrics["runs_by_profile"].get(profile, 0) + 1

        if superseded:
            _metrics["superseded_runs"] += 1

        if error:
            _metrics["errors"] += 1


def record_dropped_rows(count: int):
    """Count inventory lines dropped by the decoder."""
    with _lock:
        _metrics["rows_dropped"] += count


def get_metrics() -> Dict[str, Any]:
    """Get current metrics snapshot."""
    with _lock:
        total = _metrics["total_runs"]
        hits = _metrics["cache_hits"]

        return {
            "total_runs": total,
            "cache_hits": hits,
            "cache_misses": _metrics["cache_misses"],
            "cache_hit_ratio": round(hits / total, 3) if total > 0 else 0.0,
            "superseded_runs": _metrics["superseded_runs"],
            "items_sorted": _metrics["items_sorted"],
            "rows_dropped": _metrics["rows_dropped"],
            "flushed_items": _metrics["flushed_items"],
            "errors": _metrics["errors"],
            "runs_by_profile": dict(_metrics["runs_by_profile"]),
        }


def reset_metrics():
    """Reset all metrics (for testing)."""
    global _metrics
    with _lock:
        _metrics = _empty_metrics()
