"""
Named Sorting Criteria (v1.0.0)
Loads named row-rule lists from a JSON file.

File format:
    {"Verano Nenas": {"rows": [{"age": "KIDS", "gender": "FEMENINO",
                                "product_types": ["REMERA", "SHORT"]}]}}
"""
import json
import logging
from typing import Dict, Optional

from grid_service.core.models import Criterion, RowRule

logger = logging.getLogger(__name__)

DEFAULT_CRITERION = "Criterio Por Defecto"


def default_criteria() -> Dict[str, Criterion]:
    return {DEFAULT_CRITERION: Criterion(name=DEFAULT_CRITERION)}


def parse_criteria(data) -> Dict[str, Criterion]:
    """Build criteria from decoded JSON. Raises ValueError on a malformed structure."""
    if not isinstance(data, dict):
        raise ValueError("criteria file must contain a JSON object")

    criteria = {}
    for name, body in data.items():
        rows = body.get("rows", []) if isinstance(body, dict) else body
        if not isinstance(rows, list):
            raise ValueError(f"criterion '{name}' rows must be a list")
        criteria[name] = Criterion(
            name=name,
            rows=[RowRule.from_dict(row) for row in rows if isinstance(row, dict)],
        )
    return criteria


def load_criteria(path: Optional[str]) -> Dict[str, Criterion]:
    """
    Load named criteria from `path`.

    Returns the single default criterion (no rows) when the file is missing
    or unreadable.
    """
    if not path:
        return default_criteria()

    try:
        with open(path, "r", encoding="utf-8") as f:
            criteria = parse_criteria(json.load(f))
    except FileNotFoundError:
        logger.warning(f"Criteria file not found: {path}")
        return default_criteria()
    except (ValueError, AttributeError) as e:
        logger.warning(f"Invalid criteria file {path}: {e}")
        return default_criteria()

    if not criteria:
        return default_criteria()

    logger.info(f"Loaded {len(criteria)} sorting criteria from {path}")
    return criteria
