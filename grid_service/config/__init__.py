# Config module
from grid_service.config.settings import Settings, get_settings, reload_settings
from grid_service.config.criteria import DEFAULT_CRITERION, load_criteria, parse_criteria
