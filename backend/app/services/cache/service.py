"""Cache service implementation.

This module provides the abstract response-cache interface used by the API
handlers, an in-memory implementation with an injectable clock, and a Redis
implementation for deployments that run several workers.

Freshness rule:
- An entry stored at ``timestamp`` with ``ttl`` seconds is served while
  ``now - timestamp < ttl`` and treated as a miss afterwards.

Concurrent misses for the same key are collapsed into one upstream call by
``get_or_fetch`` (single-flight).
"""

import asyncio
import fnmatch
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, TypeVar

import redis.asyncio as redis

from app.utils.cache import Clock, build_cache_key

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheTTL:
    """Time-to-live per data kind, in seconds."""

    search: int = 5 * 60
    repo_details: int = 30 * 60
    trending: int = 30 * 60
    issues: int = 5 * 60
    weather: int = 10 * 60
    weather_combined: int = 10 * 60


@dataclass
class CacheEntry:
    """A cached value with the time it was stored and how long it stays fresh."""

    data: Any
    timestamp: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.timestamp < self.ttl


class CacheService(ABC):
    """Abstract base class for response caches.

    Defines the interface for caching operations including get, set,
    and invalidation, the single-flight ``get_or_fetch`` helper, and a static
    method for building consistent request cache keys.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task] = {}

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve a fresh cached value by key.

        Args:
            key: The cache key to look up.

        Returns:
            The cached value if present and fresh, None otherwise.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int = 600) -> None:
        """Store value in cache for ``ttl_seconds``.

        Args:
            key: The cache key to store under.
            value: The value to cache (must be JSON serializable).
            ttl_seconds: Time-to-live in seconds. Defaults to 600 (10 minutes).
        """
        pass

    @abstractmethod
    async def invalidate(self, pattern: str) -> int:
        """Invalidate cache entries matching a glob-style pattern.

        Returns:
            Number of keys invalidated.
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a fresh entry exists for key."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a specific key. Returns False if it didn't exist."""
        pass

    async def get_or_fetch(
        self,
        key: str,
        ttl_seconds: int,
        fetch: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the cached value for key, or fetch, store and return it.

        While a fetch for ``key`` is in flight, other callers await the same
        task instead of issuing their own upstream call. Failed fetches are
        not cached and propagate to every waiter.
        """
        cached = await self.get(key)
        if cached is not None:
            logger.info(f"[CACHE] Hit {key}")
            return cached

        task = self._inflight.get(key)
        if task is None:
            logger.info(f"[CACHE] Miss {key}")
            task = asyncio.ensure_future(self._populate(key, ttl_seconds, fetch))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug(f"[CACHE] Joining in-flight fetch for {key}")
        return await asyncio.shield(task)

    async def _populate(
        self, key: str, ttl_seconds: int, fetch: Callable[[], Awaitable[T]]
    ) -> T:
        value = await fetch()
        await self.set(key, value, ttl_seconds=ttl_seconds)
        return value

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    @staticmethod
    def build_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
        """Generate a cache key for an endpoint and its query parameters.

        Example:
            >>> CacheService.build_key("/api/github/search", {"q": "fastapi"})
            '/api/github/search?q=fastapi'
        """
        return build_cache_key(endpoint, params)


class InMemoryCacheService(CacheService):
    """Process-lifetime cache held in a dict.

    Entries are only dropped when read after expiry, invalidated or deleted;
    there is no size bound.

    Attributes:
        _entries: Key to ``CacheEntry`` map.
        _clock: Callable returning the current time in seconds.
    """

    def __init__(self, clock: Clock = time.time) -> None:
        super().__init__()
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    def get_entry(self, key: str) -> CacheEntry | None:
        """Return the raw entry for key if it is still fresh."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        entry = self.get_entry(key)
        return entry.data if entry else None

    async def set(self, key: str, value: Any, ttl_seconds: int = 600) -> None:
        self._entries[key] = CacheEntry(
            data=value, timestamp=self._clock(), ttl=ttl_seconds
        )

    async def invalidate(self, pattern: str) -> int:
        matching = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
        for key in matching:
            del self._entries[key]
        return len(matching)

    async def exists(self, key: str) -> bool:
        return self.get_entry(key) is not None

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheService(CacheService):
    """Redis-based implementation of the cache service.

    Uses Redis for storing cached values with native TTL expiry,
    pattern-based invalidation, and JSON serialization.

    Attributes:
        _client: The Redis async client instance.
        _default_ttl: Default TTL in seconds for cached values.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        default_ttl: int = 600,
        key_prefix: str = "devforecast:",
    ) -> None:
        """Initialize the Redis cache service.

        Args:
            redis_url: Redis connection URL. Defaults to localhost:6379.
            default_ttl: Default TTL in seconds. Defaults to 600 (10 minutes).
            key_prefix: Namespace prepended to every key.
        """
        super().__init__()
        self._redis_url = redis_url
        self._default_ttl = default_ttl
        self._prefix = key_prefix
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_connected(self) -> redis.Redis:
        if self._client is None:
            await self.connect()
        return self._client  # type: ignore

    async def get(self, key: str) -> Any | None:
        client = await self._ensure_connected()
        value = await client.get(self._prefix + key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning(f"[CACHE] Dropping undecodable Redis value for {key}")
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        client = await self._ensure_connected()
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        await client.set(self._prefix + key, json.dumps(value), ex=ttl)

    async def invalidate(self, pattern: str) -> int:
        """Invalidate entries matching pattern, using SCAN rather than KEYS."""
        client = await self._ensure_connected()
        deleted_count = 0

        cursor = 0
        while True:
            cursor, keys = await client.scan(
                cursor=cursor, match=self._prefix + pattern, count=100
            )
            if keys:
                deleted_count += await client.delete(*keys)
            if cursor == 0:
                break

        return deleted_count

    async def exists(self, key: str) -> bool:
        client = await self._ensure_connected()
        return bool(await client.exists(self._prefix + key))

    async def delete(self, key: str) -> bool:
        client = await self._ensure_connected()
        result = await client.delete(self._prefix + key)
        return result > 0


def create_cache_service(redis_url: str | None = None) -> CacheService:
    """Redis when a URL is configured, otherwise the in-memory cache."""
    if redis_url:
        logger.info("[CACHE] Using Redis response cache")
        return RedisCacheService(redis_url=redis_url)
    logger.info("[CACHE] Using in-memory response cache")
    return InMemoryCacheService()
