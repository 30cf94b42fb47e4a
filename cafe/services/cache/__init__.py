"""Cache service module.

Provides the TTL key-value cache port with Redis and in-process backends.
"""

from .service import (
    CacheService,
    InMemoryCacheService,
    RedisCacheService,
    create_cache_service,
)

__all__ = [
    "CacheService",
    "InMemoryCacheService",
    "RedisCacheService",
    "create_cache_service",
]
