"""
Input Validation Module (v1.0.0)
Validates uploaded feeds and sort requests before processing.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from grid_service.core.models import Age, Criterion, Gender, RowRule

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_MAX_UPLOAD_MB = 25
CATALOG_EXTENSIONS = {".xml"}
INVENTORY_EXTENSIONS = {".csv"}
MAX_PRODUCT_TYPES = 4

ALLOWED_AGES = {a.value for a in Age}
ALLOWED_GENDERS = {g.value for g in Gender}


class ValidationError(Exception):
    """Custom exception for validation errors."""
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def validate_file_size(content: bytes, max_mb: int = DEFAULT_MAX_UPLOAD_MB) -> None:
    """
    Check if file size is within limits.

    Raises:
        ValidationError: If file is empty (400) or exceeds `max_mb` (413)
    """
    if not content:
        raise ValidationError("Uploaded file is empty", status_code=400)

    size_mb = len(content) / (1024 * 1024)
    if len(content) > max_mb * 1024 * 1024:
        raise ValidationError(
            f"File too large: {size_mb:.1f}MB (max {max_mb}MB)",
            status_code=413
        )
    logger.debug(f"File size OK: {size_mb:.2f}MB")


def validate_extension(filename: Optional[str], allowed: Iterable[str]) -> None:
    """
    Check the uploaded file extension.

    Raises:
        ValidationError: If the extension is not allowed (415)
    """
    allowed = set(allowed)
    suffix = Path(filename or "").suffix.lower()
    if suffix not in allowed:
        raise ValidationError(
            f"Unsupported file type: '{suffix or filename}'. Allowed: {', '.join(sorted(allowed))}",
            status_code=415
        )


def validate_feed_upload(
    content: bytes,
    filename: Optional[str],
    allowed_extensions: Iterable[str],
    max_mb: int = DEFAULT_MAX_UPLOAD_MB,
) -> bytes:
    """
    Complete validation pipeline for an uploaded feed.

    Returns:
        The validated bytes

    Raises:
        ValidationError: If any validation fails
    """
    validate_extension(filename, allowed_extensions)
    validate_file_size(content, max_mb)
    logger.info(f"Feed validated: {filename} ({len(content)} bytes)")
    return content


# ==================== SORT REQUEST VALIDATION ====================

def validate_row_rules(rows: List[Dict[str, Any]]) -> List[RowRule]:
    """
    Validate inline row rules.

    Returns:
        Parsed RowRule list

    Raises:
        ValidationError: If any rule has an unknown age/gender or too many types
    """
    errors = []
    rules = []
    for index, row in enumerate(rows):
        rule = RowRule.from_dict(row)
        if rule.age and rule.age not in ALLOWED_AGES:
            errors.append(f"rows[{index}].age must be one of: {', '.join(sorted(ALLOWED_AGES))}")
        if rule.gender and rule.gender not in ALLOWED_GENDERS:
            errors.append(f"rows[{index}].gender must be one of: {', '.join(sorted(ALLOWED_GENDERS))}")
        if len(rule.product_types) > MAX_PRODUCT_TYPES:
            errors.append(f"rows[{index}] allows at most {MAX_PRODUCT_TYPES} product types")
        if not rule.id:
            rule = RowRule(rule.age, rule.gender, rule.product_types, id=f"row-{index + 1}")
        rules.append(rule)

    if errors:
        raise ValidationError("; ".join(errors), status_code=400)
    return rules


def resolve_criterion(name: Optional[str], criteria: Dict[str, Criterion], default: str) -> Criterion:
    """
    Look up a named criterion. Without a name, the default criterion is used
    (or the first one when the loaded file does not define the default).

    Raises:
        ValidationError: If the name is unknown (404)
    """
    if not name:
        if default in criteria:
            return criteria[default]
        if criteria:
            return next(iter(criteria.values()))
        return Criterion(name=default)
    if name not in criteria:
        raise ValidationError(f"Unknown criterion: {name}", status_code=404)
    return criteria[name]
