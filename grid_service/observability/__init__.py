# Observability module
from grid_service.observability.logger import log_run, is_logging_enabled
from grid_service.observability.metrics import (
    increment_run,
    record_dropped_rows,
    get_metrics,
    reset_metrics,
)
