"""
Grid Sorting Service v1.0.0
Orders e-commerce listing grids from a catalog feed and an inventory feed.

API ROUTES:
-----------
- /grid/jobs                 - Upload feeds (catalog .xml + inventory .csv)
- /grid/jobs/{job_id}/sort   - Run the sorter with a criterion or inline rules
- /grid/jobs/{job_id}/*      - Stored order, swaps, replacements, media, export
- /grid/criteria             - Named sorting criteria
- /health, /metrics          - Health and monitoring

STORAGE STRUCTURE:
------------------
grid_service/data/
├── jobs/{job_id}/
│   ├── catalog.xml
│   ├── inventory.csv
│   └── job.json
└── cache/
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from grid_service.app.routes import router, SERVICE_VERSION
from grid_service.core.storage import storage
from grid_service.config import get_settings, load_criteria
from grid_service.cache import cache_manager
from grid_service.observability import is_logging_enabled

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare storage and report the engine setup before serving."""
    settings = get_settings()
    logger.info(f"Grid Sorting Service v{SERVICE_VERSION} starting (profile={settings.engine_profile})")

    storage.ensure_directories()

    criteria = load_criteria(settings.criteria_path)
    logger.info(f"{len(criteria)} sorting criteria: {', '.join(criteria)}")
    logger.info(
        f"Allocator windows {settings.phase1_window}/{settings.phase2_window}/{settings.fallback_window}, "
        f"hero spacing {settings.hero_spacing_rows} rows, "
        f"deprioritized to tail: {settings.tail_deprioritized}"
    )

    if cache_manager.enabled:
        pruned = cache_manager.clear_expired()
        logger.info(f"Sort cache on, ttl {cache_manager.ttl_minutes}min ({pruned} expired entries pruned)")
    else:
        logger.info("Sort cache off")

    if not is_logging_enabled():
        logger.info("Run log disabled (GRID_LOGGING_ENABLED=false)")

    yield

    logger.info("Grid Sorting Service stopped")


app = FastAPI(
    title="Grid Sorting Service",
    description="Listing grid ordering from catalog and inventory feeds",
    version=SERVICE_VERSION,
    lifespan=lifespan
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

app.include_router(router)
