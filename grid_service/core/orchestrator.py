"""
Job Orchestrator (v1.0.0)
Feed upload -> decode -> synchronize -> (cache) -> sort -> persist.

A job holds the two uploaded feeds plus its last ordering and media
overrides. Sort runs for the same job supersede each other: only the most
recently started run may store its ordering.
"""
import time
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from grid_service.cache import cache_manager, hash_bytes
from grid_service.config import DEFAULT_CRITERION, get_settings, load_criteria
from grid_service.core.export import order_inventory_rows, render_csv
from grid_service.core.feeds import InventoryFeed, parse_catalog_xml, parse_inventory_csv
from grid_service.core.grid_sorter import EngineOptions, sort_products
from grid_service.core.manual import (
    apply_media_overrides,
    media_type_for_filename,
    replace_media,
    replacement_candidates,
    swap_positions,
)
from grid_service.core.models import GRID_COLUMNS, MediaType, ProductVariant, RowRule
from grid_service.core.normalizer import load_normalizer
from grid_service.core.storage import CATALOG_FILE, INVENTORY_FILE, storage
from grid_service.core.synchronizer import synchronize
from grid_service.core.validation import resolve_criterion, validate_row_rules
from grid_service.observability import increment_run, is_logging_enabled, log_run, record_dropped_rows

logger = logging.getLogger(__name__)


class SortJobError(Exception):
    """Error during a grid job."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RunRegistry:
    """Per-job generation counter; a newer run makes older ones stale."""

    def __init__(self):
        self._lock = threading.Lock()
        self._generations: Dict[str, int] = {}
        self._job_locks: Dict[str, threading.Lock] = {}

    def _job_lock(self, job_id: str) -> threading.Lock:
        with self._lock:
            return self._job_locks.setdefault(job_id, threading.Lock())

    def begin(self, job_id: str) -> int:
        with self._lock:
            token = self._generations.get(job_id, 0) + 1
            self._generations[job_id] = token
            return token

    def is_current(self, job_id: str, token: int) -> bool:
        with self._lock:
            return self._generations.get(job_id) == token

    def commit(self, job_id: str, token: int, write: Callable[[], Any]) -> bool:
        """
        Run `write` if `token` is still the newest run of the job.

        Commits of the same job are serialized, so a newer run can never be
        overwritten by an older one. Returns False when the run was superseded.
        """
        with self._job_lock(job_id):
            if not self.is_current(job_id, token):
                return False
            write()
            return True


run_registry = RunRegistry()


# ==================== JOB LOADING ====================

def _load_feeds(job_id: str) -> Tuple[bytes, bytes]:
    if not storage.job_exists(job_id):
        raise SortJobError(f"Job {job_id} not found", status_code=404)

    catalog_bytes = storage.load_feed(job_id, CATALOG_FILE)
    inventory_bytes = storage.load_feed(job_id, INVENTORY_FILE)
    if catalog_bytes is None or inventory_bytes is None:
        raise SortJobError(f"Job {job_id} has no feeds", status_code=409)
    return catalog_bytes, inventory_bytes


def load_job_variants(job_id: str) -> Tuple[List[ProductVariant], InventoryFeed, Dict[str, Any]]:
    """Decode the stored feeds and rebuild the variants with media overrides applied."""
    catalog_bytes, inventory_bytes = _load_feeds(job_id)
    settings = get_settings()

    catalog = parse_catalog_xml(catalog_bytes)
    feed = parse_inventory_csv(inventory_bytes)
    variants = synchronize(catalog, feed.rows, load_normalizer(settings.keywords_path))

    job = storage.load_job_json(job_id) or {}
    variants = apply_media_overrides(variants, job.get("media_overrides", {}))
    return variants, feed, job


def create_job(catalog_bytes: bytes, inventory_bytes: bytes) -> Dict[str, Any]:
    """
    Store both feeds for a new job and report what they decode to.

    Returns:
        Dict with job_id and decode statistics
    """
    job_id = storage.create_job()
    storage.save_feed(job_id, CATALOG_FILE, catalog_bytes)
    storage.save_feed(job_id, INVENTORY_FILE, inventory_bytes)

    catalog = parse_catalog_xml(catalog_bytes)
    feed = parse_inventory_csv(inventory_bytes)
    variants = synchronize(catalog, feed.rows, load_normalizer(get_settings().keywords_path))
    record_dropped_rows(feed.dropped)

    stats = {
        "catalog_entries": len(catalog),
        "inventory_rows": len(feed.rows),
        "dropped_rows": feed.dropped,
        "variants": len(variants),
        "valid_variants": sum(1 for v in variants if v.is_valid),
    }
    storage.save_job_json(job_id, {
        "inputs": {
            "catalog_hash": hash_bytes(catalog_bytes),
            "inventory_hash": hash_bytes(inventory_bytes),
        },
        "stats": stats,
        "ordering": [],
        "media_overrides": {},
    })

    logger.info(f"[{job_id}] Job created: {stats}")
    return {"job_id": job_id, **stats}


# ==================== SORTING ====================

def _resolve_rules(
    criterion: Optional[str],
    rules: Optional[List[Dict[str, Any]]],
) -> Tuple[Optional[str], List[RowRule]]:
    if rules is not None:
        return None, validate_row_rules(rules)
    criteria = load_criteria(get_settings().criteria_path)
    selected = resolve_criterion(criterion, criteria, DEFAULT_CRITERION)
    return selected.name, list(selected.rows)


def _ordering_payload(ordering: Sequence[ProductVariant]) -> List[Dict[str, Any]]:
    payload = []
    for position, variant in enumerate(ordering):
        item = variant.to_dict()
        item["position"] = position
        item["row"] = position // GRID_COLUMNS
        item["slot"] = position % GRID_COLUMNS
        payload.append(item)
    return payload


def _order_variants(keys: Sequence[str], variants: Sequence[ProductVariant]) -> List[ProductVariant]:
    """Variants in `keys` order; variants missing from `keys` are appended."""
    by_key = {v.group_key: v for v in variants}
    ordered = [by_key[k] for k in keys if k in by_key]
    seen = set(keys)
    ordered.extend(v for v in variants if v.group_key not in seen)
    return ordered


def run_sort_job(
    job_id: str,
    criterion: Optional[str] = None,
    rules: Optional[List[Dict[str, Any]]] = None,
    excluded_types: Optional[List[str]] = None,
    deprioritized: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Sort a job's variants and store the ordering.

    Args:
        job_id: Job identifier
        criterion: Named criterion (default criterion when omitted)
        rules: Inline row rules; take precedence over `criterion`
        excluded_types: Excluded garment types (settings default when None)
        deprioritized: Deprioritized keywords/codes (settings default when None)

    Returns:
        Dict with ordering, sections, violations and cache flag

    Raises:
        SortJobError: Unknown job (404), missing feeds (409), superseded run (409)
        ValidationError: Invalid rules (400) or unknown criterion (404)
    """
    start_time = time.time()
    settings = get_settings()
    criterion_name, row_rules = _resolve_rules(criterion, rules)
    excluded = list(settings.excluded_types if excluded_types is None else excluded_types)
    terms = list(settings.deprioritized if deprioritized is None else deprioritized)
    options = EngineOptions.from_settings(settings, load_normalizer(settings.keywords_path))
    token = run_registry.begin(job_id)

    try:
        variants, feed, job = load_job_variants(job_id)

        cache_key = cache_manager.generate_cache_key(
            catalog_hash=job.get("inputs", {}).get("catalog_hash", ""),
            inventory_hash=job.get("inputs", {}).get("inventory_hash", ""),
            rules=row_rules,
            excluded_types=excluded,
            deprioritized=terms,
            media_overrides=job.get("media_overrides", {}),
            profile=options.profile,
            engine=options.fingerprint(),
        )

        cached = cache_manager.get(cache_key)
        cache_hit = cached is not None
        if cache_hit:
            summary = cached
            ordering = _order_variants(summary["order"], variants)
        else:
            result = sort_products(variants, row_rules, excluded, terms, options)
            ordering = result.ordering
            summary = {
                "order": [v.group_key for v in ordering],
                "sections": result.sections,
                "flushed": result.flushed,
                "rows_built": result.rows_built,
                "phase_counts": result.phase_counts,
                "violations": result.violations,
            }
            cache_manager.set(cache_key, summary)
    except SortJobError as e:
        _track_run(job_id, criterion_name, options.profile, False, start_time, "fail", error=e.message)
        raise

    last_run = {
        "criterion": criterion_name,
        "rules": [r.to_dict() for r in row_rules],
        "excluded_types": excluded,
        "deprioritized": terms,
        "profile": options.profile,
        "sections": summary["sections"],
        "violations": len(summary["violations"]),
    }
    stored = run_registry.commit(
        job_id, token,
        lambda: storage.update_job(job_id, ordering=summary["order"], last_run=last_run),
    )
    if not stored:
        logger.info(f"[{job_id}] Sort run superseded by a newer run, result discarded")
        _track_run(job_id, criterion_name, options.profile, cache_hit, start_time, "superseded",
                   items=len(ordering), superseded=True)
        raise SortJobError("Sort run superseded by a newer run", status_code=409)

    latency_ms = _track_run(job_id, criterion_name, options.profile, cache_hit, start_time, "success",
                            items=len(ordering), flushed=summary.get("flushed", 0))
    logger.info(f"[{job_id}] Sort complete in {latency_ms}ms (cache_hit={cache_hit})")

    return {
        "job_id": job_id,
        "criterion": criterion_name,
        "profile": options.profile,
        "cache_hit": cache_hit,
        "sections": summary["sections"],
        "flushed": summary.get("flushed", 0),
        "violations": summary["violations"],
        "total": len(ordering),
        "ordering": _ordering_payload(ordering),
    }


def _track_run(
    job_id: str,
    criterion: Optional[str],
    profile: str,
    cache_hit: bool,
    start_time: float,
    status: str,
    items: int = 0,
    flushed: int = 0,
    superseded: bool = False,
    error: str = None,
) -> int:
    """Log and track run metrics. Returns latency in ms."""
    latency_ms = int((time.time() - start_time) * 1000)
    if is_logging_enabled():
        log_run(job_id, criterion, cache_hit, latency_ms, status, items, flushed, error)
    increment_run(profile, cache_hit, items, flushed, superseded, error is not None)
    return latency_ms


# ==================== STORED ORDERING ====================

def _stored_ordering(job_id: str) -> Tuple[List[ProductVariant], InventoryFeed, Dict[str, Any]]:
    variants, feed, job = load_job_variants(job_id)
    if not job.get("ordering"):
        raise SortJobError(f"Job {job_id} has not been sorted yet", status_code=409)
    return _order_variants(job["ordering"], variants), feed, job


def get_job_order(job_id: str) -> Dict[str, Any]:
    ordering, _, job = _stored_ordering(job_id)
    return {
        "job_id": job_id,
        "last_run": job.get("last_run"),
        "total": len(ordering),
        "ordering": _ordering_payload(ordering),
    }


def swap_job_items(job_id: str, from_key: str, to_key: str) -> Dict[str, Any]:
    """Swap two variants in the stored ordering (manual drag and drop)."""
    ordering, _, job = _stored_ordering(job_id)
    try:
        order = swap_positions([v.group_key for v in ordering], from_key, to_key)
    except KeyError:
        raise SortJobError(f"Unknown group key: {from_key} or {to_key}", status_code=404)

    storage.update_job(job_id, ordering=order)
    logger.info(f"[{job_id}] Swapped {from_key} <-> {to_key}")
    return get_job_order(job_id)


def _find_variant(variants: Sequence[ProductVariant], group_key: str) -> ProductVariant:
    for variant in variants:
        if variant.group_key == group_key:
            return variant
    raise SortJobError(f"Unknown group key: {group_key}", status_code=404)


def job_replacements(job_id: str, group_key: str, query: Optional[str] = None) -> Dict[str, Any]:
    variants, _, _ = load_job_variants(job_id)
    target = _find_variant(variants, group_key)
    groups = replacement_candidates(target, variants, query)
    return {
        "group_key": group_key,
        "groups": {name: [v.to_dict() for v in items] for name, items in groups.items()},
    }


def replace_job_media(
    job_id: str,
    group_key: str,
    image_link: str,
    media_type: Optional[str] = None,
    campaign_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Replace a variant's media and persist it as a job override.

    Raises:
        SortJobError: Unknown job/group key (404) or media type (400)
    """
    variants, _, job = load_job_variants(job_id)
    target = _find_variant(variants, group_key)

    if media_type:
        try:
            resolved = MediaType(media_type.upper())
        except ValueError:
            raise SortJobError(f"Unknown media type: {media_type}", status_code=400)
    else:
        resolved = media_type_for_filename(image_link)

    updated = replace_media(target, image_link, resolved, campaign_name)

    overrides = dict(job.get("media_overrides", {}))
    overrides[group_key] = {
        "image_link": updated.image_link,
        "media_type": updated.media_type.value,
        "campaign_name": updated.campaign_name,
    }
    storage.update_job(job_id, media_overrides=overrides)

    logger.info(f"[{job_id}] Media replaced for {group_key}: {updated.media_type.value}")
    return updated.to_dict()


def export_job_csv(job_id: str) -> str:
    """Inventory rows in the stored order, as CSV text."""
    ordering, feed, _ = _stored_ordering(job_id)
    rows = order_inventory_rows([v.group_key for v in ordering], feed.rows)
    return render_csv(feed.headers, rows)
