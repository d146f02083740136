"""
Run Logger (v1.0.0)
One JSON line per sort run for tracking and observability.
"""
import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

from grid_service.config import get_settings

RUN_LOG_FILENAME = "runs.log"

# Configure run logger; the file handler is attached on first use
run_logger = logging.getLogger("grid.runs")
run_logger.setLevel(logging.INFO)

# Prevent propagation to root logger
run_logger.propagate = False


def _ensure_handler():
    if run_logger.handlers:
        return
    logs_dir = Path(get_settings().logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(logs_dir / RUN_LOG_FILENAME, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    run_logger.addHandler(file_handler)


def log_run(
    job_id: str,
    criterion: Optional[str],
    cache_hit: bool,
    latency_ms: int,
    status: str,
    items: int = 0,
    flushed: int = 0,
    error: Optional[str] = None,
):
    """
    Log a structured sort run entry.

    Args:
        job_id: Job identifier
        criterion: Criterion name (None for inline rules)
        cache_hit: Whether the ordering came from cache
        latency_ms: Run latency in milliseconds
        status: success, superseded or fail
        items: Number of variants in the ordering
        flushed: Items appended by the allocator flush
        error: Error message if failed
    """
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "job_id": job_id,
        "criterion": criterion,
        "cache_hit": cache_hit,
        "latency_ms": latency_ms,
        "status": status,
        "items": items,
        "flushed": flushed,
    }

    if error:
        entry["error"] = error

    _ensure_handler()
    run_logger.info(json.dumps(entry, ensure_ascii=False))


def is_logging_enabled() -> bool:
    """Check if run logging is enabled."""
    return get_settings().logging_enabled
