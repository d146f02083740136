"""
API Routes for the Grid Sorting Service v1.0.0
Feed upload, sorting, manual adjustments and export.
"""
import asyncio
import logging
from typing import Optional
from fastapi import APIRouter, UploadFile, File, Form, HTTPException, Query
from fastapi.responses import JSONResponse, Response

from grid_service.app.schemas import SortRequest
from grid_service.cache import cache_manager
from grid_service.config import get_settings, load_criteria
from grid_service.core.export import EXPORT_FILENAME
from grid_service.core.orchestrator import (
    SortJobError,
    create_job,
    export_job_csv,
    get_job_order,
    job_replacements,
    replace_job_media,
    run_sort_job,
    swap_job_items,
)
from grid_service.core.validation import (
    CATALOG_EXTENSIONS,
    INVENTORY_EXTENSIONS,
    ValidationError,
    validate_feed_upload,
)
from grid_service.observability import get_metrics, is_logging_enabled

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_VERSION = "1.0.0"


# ==================== PUBLIC ENDPOINTS ====================

@router.get("/health")
async def health_check():
    """Health check with observability info."""
    settings = get_settings()
    metrics = get_metrics()

    return {
        "status": "ok",
        "version": SERVICE_VERSION,
        "engine_profile": settings.engine_profile,
        "cache": cache_manager.get_status(),
        "observability": {
            "logging_enabled": is_logging_enabled(),
            "total_runs": metrics["total_runs"],
            "cache_hit_ratio": metrics["cache_hit_ratio"],
            "superseded_runs": metrics["superseded_runs"],
            "errors": metrics["errors"],
        },
    }


@router.get("/metrics")
async def get_metrics_endpoint():
    """Get detailed metrics for monitoring."""
    return JSONResponse(content=get_metrics())


@router.get("/grid/criteria")
async def list_criteria():
    """Named sorting criteria and their row rules."""
    criteria = load_criteria(get_settings().criteria_path)
    return {"criteria": [c.to_dict() for c in criteria.values()]}


# ==================== JOBS ====================

@router.post("/grid/jobs")
async def upload_feeds(
    catalog: UploadFile = File(..., description="Catalog feed (.xml)"),
    inventory: UploadFile = File(..., description="Inventory feed (.csv)"),
):
    """Store both feeds as a new job and report what they decode to."""
    settings = get_settings()
    try:
        try:
            catalog_bytes = validate_feed_upload(
                await catalog.read(), catalog.filename, CATALOG_EXTENSIONS, settings.max_upload_mb
            )
            inventory_bytes = validate_feed_upload(
                await inventory.read(), inventory.filename, INVENTORY_EXTENSIONS, settings.max_upload_mb
            )
        except ValidationError as ve:
            raise HTTPException(status_code=ve.status_code, detail=ve.message)

        result = create_job(catalog_bytes, inventory_bytes)
        return JSONResponse(content={**result, "message": "Job created. Feeds stored."})

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Feed upload failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/grid/jobs/{job_id}/sort")
async def sort_job(job_id: str, request: SortRequest):
    """Run the grid sorter for a job. A newer run for the same job supersedes this one."""
    rules = [r.model_dump() for r in request.rules] if request.rules is not None else None
    try:
        result = await asyncio.to_thread(
            run_sort_job,
            job_id,
            criterion=request.criterion,
            rules=rules,
            excluded_types=request.excluded_types,
            deprioritized=request.deprioritized,
        )
        return JSONResponse(content=result)
    except ValidationError as ve:
        raise HTTPException(status_code=ve.status_code, detail=ve.message)
    except SortJobError as se:
        raise HTTPException(status_code=se.status_code, detail=se.message)
    except Exception as e:
        logger.error(f"Sort failed for job {job_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/grid/jobs/{job_id}/order")
async def get_order(job_id: str):
    """Last stored ordering of a job."""
    try:
        return JSONResponse(content=get_job_order(job_id))
    except SortJobError as se:
        raise HTTPException(status_code=se.status_code, detail=se.message)


# ==================== MANUAL ADJUSTMENTS ====================

@router.post("/grid/jobs/{job_id}/swap")
async def swap_items(
    job_id: str,
    from_key: str = Form(..., description="Group key to move"),
    to_key: str = Form(..., description="Group key to swap with"),
):
    """Swap two positions of the stored ordering."""
    try:
        return JSONResponse(content=swap_job_items(job_id, from_key, to_key))
    except SortJobError as se:
        raise HTTPException(status_code=se.status_code, detail=se.message)


@router.get("/grid/jobs/{job_id}/replacements/{group_key}")
async def get_replacements(
    job_id: str,
    group_key: str,
    q: Optional[str] = Query(None, description="Search on title or group key"),
):
    """Replacement candidates for a variant."""
    try:
        return JSONResponse(content=job_replacements(job_id, group_key, q))
    except SortJobError as se:
        raise HTTPException(status_code=se.status_code, detail=se.message)


@router.post("/grid/jobs/{job_id}/media")
async def replace_media(
    job_id: str,
    group_key: str = Form(...),
    image_link: str = Form(..., description="New image or video URL"),
    media_type: Optional[str] = Form(None, description="CAMPAIGN, MODEL, VIDEO or PRODUCT; inferred when omitted"),
    campaign_name: Optional[str] = Form(None),
):
    """Replace the media of a variant; applied to every later sort of the job."""
    try:
        variant = replace_job_media(job_id, group_key, image_link, media_type, campaign_name)
        return JSONResponse(content={"variant": variant, "message": "Media replaced."})
    except SortJobError as se:
        raise HTTPException(status_code=se.status_code, detail=se.message)


# ==================== EXPORT ====================

@router.get("/grid/jobs/{job_id}/export")
async def export_job(job_id: str):
    """Inventory rows in the final order, as a CSV download."""
    try:
        content = export_job_csv(job_id)
    except SortJobError as se:
        raise HTTPException(status_code=se.status_code, detail=se.message)

    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )
