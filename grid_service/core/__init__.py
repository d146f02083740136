# Core module
from grid_service.core.storage import storage
from grid_service.core.validation import (
    ValidationError,
    validate_feed_upload,
    validate_file_size,
    validate_extension,
    validate_row_rules,
    resolve_criterion,
)
