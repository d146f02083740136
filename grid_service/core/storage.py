"""
Storage Manager for job data.

STORAGE STRUCTURE:
------------------
base_data_dir/
├── jobs/{job_id}/
│   ├── catalog.xml      <- uploaded catalog feed (raw bytes)
│   ├── inventory.csv    <- uploaded inventory feed (raw bytes)
│   └── job.json         <- job metadata, last ordering, media overrides
└── cache/               <- sort result cache (see grid_service.cache)
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from grid_service.config import get_settings

logger = logging.getLogger(__name__)

CATALOG_FILE = "catalog.xml"
INVENTORY_FILE = "inventory.csv"
JOB_FILE = "job.json"
JOB_VERSION = "1.0.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StorageManager:
    """Manages file storage for jobs."""

    def __init__(self, base_dir: str = None):
        if base_dir is None:
            base_dir = get_settings().data_dir
        self.base_data_dir = Path(base_dir)
        self.jobs_dir = self.base_data_dir / "jobs"

    def ensure_directories(self):
        """Create required directories."""
        self.base_data_dir.mkdir(parents=True, exist_ok=True)
        self.jobs_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"✓ Data directories initialized: {self.base_data_dir}")

    def create_job(self) -> str:
        """Create a new job and return its ID."""
        job_id = str(uuid.uuid4())
        self.get_job_path(job_id).mkdir(parents=True, exist_ok=True)
        return job_id

    def get_job_path(self, job_id: str) -> Path:
        """Get path to job directory."""
        return self.jobs_dir / job_id

    def job_exists(self, job_id: str) -> bool:
        """Only well-formed job IDs with a job.json count as existing."""
        try:
            uuid.UUID(job_id)
        except (ValueError, TypeError):
            return False
        return (self.get_job_path(job_id) / JOB_FILE).exists()

    # ==================== FEEDS ====================

    def save_feed(self, job_id: str, filename: str, content: bytes) -> Path:
        """Save uploaded feed bytes to the job directory."""
        job_path = self.get_job_path(job_id)
        job_path.mkdir(parents=True, exist_ok=True)

        feed_path = job_path / filename
        with open(feed_path, "wb") as f:
            f.write(content)

        logger.info(f"Saved feed: {feed_path} ({len(content)} bytes)")
        return feed_path

    def load_feed(self, job_id: str, filename: str) -> Optional[bytes]:
        feed_path = self.get_job_path(job_id) / filename
        if not feed_path.exists():
            return None
        with open(feed_path, "rb") as f:
            return f.read()

    # ==================== JOB JSON ====================

    def save_job_json(self, job_id: str, data: Dict[str, Any]) -> Path:
        """Write job.json, stamping `updated_at`."""
        job_json_path = self.get_job_path(job_id) / JOB_FILE
        data = dict(data)
        data.setdefault("job_id", job_id)
        data.setdefault("version", JOB_VERSION)
        data.setdefault("created_at", _now())
        data["updated_at"] = _now()

        with open(job_json_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"Saved job.json: {job_json_path}")
        return job_json_path

    def load_job_json(self, job_id: str) -> Optional[Dict[str, Any]]:
        if not self.job_exists(job_id):
            return None
        with open(self.get_job_path(job_id) / JOB_FILE, "r", encoding="utf-8") as f:
            return json.load(f)

    def update_job(self, job_id: str, **fields) -> Dict[str, Any]:
        """Merge `fields` into job.json and return the updated document."""
        data = self.load_job_json(job_id) or {}
        data.update(fields)
        self.save_job_json(job_id, data)
        return data


# Global instance
storage = StorageManager()
