"""Cache service implementation.

This module provides an abstract cache service interface, a Redis
implementation for production and an in-process TTL implementation used
when no Redis URL is configured (and as the fake in tests).

Key layout shared with other components on the same cache instance:

- ``cart:{userId}``           list of cart lines, 7 days
- ``session:{sessionId}``     session blob, token lifetime
- ``user-sessions:{userId}``  list of live session ids, token lifetime
- ``setting:{key}``           system setting value, 1 hour
"""

import fnmatch
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class CacheService(ABC):
    """Abstract base class for cache services.

    Defines the interface for TTL key-value operations, key-space scanning
    and flushing. Also provides static builders for the shared key layout.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve cached value by key.

        Args:
            key: The cache key to look up.

        Returns:
            The cached value if found and not expired, None otherwise.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store value in cache with optional TTL.

        Args:
            key: The cache key to store under.
            value: The value to cache (must be JSON serializable).
            ttl_seconds: Time-to-live in seconds. Uses the default if not specified.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a specific key from the cache.

        Returns:
            True if the key was deleted, False if it didn't exist.
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def scan_keys(self, pattern: str) -> list[str]:
        """List keys matching a glob-style pattern (e.g., ``session:*``).

        Cost is proportional to the size of the key space; intended for
        admin views and maintenance sweeps only.
        """
        pass

    @abstractmethod
    async def flush_all(self) -> None:
        """Remove every key from the cache database."""
        pass

    async def invalidate(self, pattern: str) -> int:
        """Invalidate cache entries matching pattern.

        Returns:
            Number of keys invalidated.
        """
        deleted_count = 0
        for key in await self.scan_keys(pattern):
            if await self.delete(key):
                deleted_count += 1
        return deleted_count

    @staticmethod
    def build_cart_key(user_id: int | str) -> str:
        """Generate cache key for a user's cart.

        Example:
            >>> CacheService.build_cart_key(42)
            'cart:42'
        """
        return f"cart:{user_id}"

    @staticmethod
    def build_session_key(session_id: str) -> str:
        return f"session:{session_id}"

    @staticmethod
    def build_user_sessions_key(user_id: int | str) -> str:
        return f"user-sessions:{user_id}"

    @staticmethod
    def build_setting_key(key: str) -> str:
        return f"setting:{key}"


class RedisCacheService(CacheService):
    """Redis-based implementation of the cache service.

    Uses Redis for storing cached values with support for TTL,
    SCAN-based key iteration, and JSON serialization.

    Attributes:
        _client: The Redis async client instance.
        _default_ttl: Default TTL in seconds for cached values.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        default_ttl: int = 3600,
    ) -> None:
        self._redis_url = redis_url
        self._default_ttl = default_ttl
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Establish connection to Redis.

        Should be called before using the cache service.
        """
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info(f"[CACHE] Connected to Redis at {self._redis_url}")

    async def disconnect(self) -> None:
        """Close the Redis connection.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_connected(self) -> redis.Redis:
        if self._client is None:
            await self.connect()
        return self._client  # type: ignore

    async def get(self, key: str) -> Any | None:
        client = await self._ensure_connected()
        value = await client.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            # Return raw value if not JSON
            return value

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        client = await self._ensure_connected()
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl

        if isinstance(value, str):
            serialized = value
        else:
            serialized = json.dumps(value)

        await client.set(key, serialized, ex=ttl)

    async def delete(self, key: str) -> bool:
        client = await self._ensure_connected()
        result = await client.delete(key)
        return result > 0

    async def exists(self, key: str) -> bool:
        client = await self._ensure_connected()
        return bool(await client.exists(key))

    async def scan_keys(self, pattern: str) -> list[str]:
        """List keys matching pattern using SCAN (safer than KEYS for large datasets)."""
        client = await self._ensure_connected()
        keys: list[str] = []
        cursor = 0
        while True:
            cursor, batch = await client.scan(cursor=cursor, match=pattern, count=100)
            keys.extend(batch)
            if cursor == 0:
                break
        return keys

    async def flush_all(self) -> None:
        client = await self._ensure_connected()
        await client.flushdb()
        logger.warning("[CACHE] Flushed Redis database")

    @property
    def default_ttl(self) -> int:
        """Get the default TTL in seconds."""
        return self._default_ttl


class InMemoryCacheService(CacheService):
    """Process-local TTL cache with the same semantics as the Redis service.

    Values are round-tripped through JSON on write so callers never share
    mutable state with the cache. Expired entries read as absent and are
    dropped lazily.

    Attributes:
        _entries: Mapping of key to (expires_at, serialized value).
        _clock: Time source returning seconds; injectable for tests.
    """

    def __init__(
        self,
        default_ttl: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, tuple[float, str]] = {}
        self._default_ttl = default_ttl
        self._clock = clock

    def _live_value(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def get(self, key: str) -> Any | None:
        value = self._live_value(key)
        if value is None:
            return None
        return json.loads(value)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        self._entries[key] = (self._clock() + ttl, json.dumps(value))

    async def delete(self, key: str) -> bool:
        present = self._live_value(key) is not None
        self._entries.pop(key, None)
        return present

    async def exists(self, key: str) -> bool:
        return self._live_value(key) is not None

    async def scan_keys(self, pattern: str) -> list[str]:
        return [
            key
            for key in list(self._entries)
            if fnmatch.fnmatchcase(key, pattern) and self._live_value(key) is not None
        ]

    async def flush_all(self) -> None:
        self._entries.clear()

    def ttl(self, key: str) -> float | None:
        """Seconds left before ``key`` expires, or None if absent."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        remaining = entry[0] - self._clock()
        return remaining if remaining > 0 else None

    @property
    def default_ttl(self) -> int:
        return self._default_ttl


def create_cache_service(redis_url: str | None, default_ttl: int = 3600) -> CacheService:
    """Build the cache backend for the configured environment."""
    if redis_url:
        return RedisCacheService(redis_url=redis_url, default_ttl=default_ttl)
    logger.info("[CACHE] No Redis URL configured, using in-memory cache")
    return InMemoryCacheService(default_ttl=default_ttl)
