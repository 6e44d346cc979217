"""Server-side response cache."""

from .service import (
    CacheEntry,
    CacheService,
    CacheTTL,
    InMemoryCacheService,
    RedisCacheService,
    create_cache_service,
)

__all__ = [
    "CacheEntry",
    "CacheService",
    "CacheTTL",
    "InMemoryCacheService",
    "RedisCacheService",
    "create_cache_service",
]
