# Cache module
from grid_service.cache.cache_manager import CacheManager, cache_manager, hash_bytes
from grid_service.cache.cache_store import CacheStore
