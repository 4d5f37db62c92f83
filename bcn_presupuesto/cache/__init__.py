"""Cache module: async TTL cache with in-memory and JSON-file backends."""

from bcn_presupuesto.cache.cache_service import (
    NO_EXPIRY,
    CacheBackend,
    CacheService,
    JsonFileCacheBackend,
    MemoryCacheBackend,
    create_cache_service,
)

__all__ = [
    "NO_EXPIRY",
    "CacheBackend",
    "CacheService",
    "JsonFileCacheBackend",
    "MemoryCacheBackend",
    "create_cache_service",
]
