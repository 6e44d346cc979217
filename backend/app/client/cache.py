"""Client-side cache for responses of the dashboard's own API.

The whole cache is one JSON document stored under ``devforecast_api_cache``.
Entries carry an absolute ``expiry_time`` in epoch milliseconds and are
swept lazily: on first use, on every ``get`` and ``set``, and whenever
``clean_cache`` is called.
"""

import json
import logging
import time
from typing import Any

from app.utils.cache import Clock, build_cache_key

from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

CACHE_STORAGE_KEY = "devforecast_api_cache"


class CacheDurations:
    """Default time-to-live per data kind, in milliseconds."""

    WEATHER = 10 * 60 * 1000
    GITHUB = 30 * 60 * 1000
    AI_INSIGHT = 60 * 60 * 1000
    DEFAULT = 15 * 60 * 1000


def now_ms() -> float:
    return time.time() * 1000


generate_cache_key = build_cache_key


class ClientCache:
    """Expiring key/value cache persisted in a ``KeyValueStorage``."""

    def __init__(self, storage: KeyValueStorage, clock: Clock = now_ms) -> None:
        self._storage = storage
        self._clock = clock
        self._store: dict[str, dict[str, Any]] = {}
        self._initialized = False

    def _initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        raw = self._storage.get_item(CACHE_STORAGE_KEY)
        if not raw:
            return
        try:
            loaded = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"[CLIENT-CACHE] Discarding unreadable cache: {e}")
            self._store = {}
            return
        self._store = loaded if isinstance(loaded, dict) else {}
        self._clean_expired_entries()

    def _persist(self) -> None:
        self._storage.set_item(CACHE_STORAGE_KEY, json.dumps(self._store))

    def _is_expired(self, entry: dict[str, Any], now: float) -> bool:
        return entry.get("expiry_time", 0) <= now

    def _clean_expired_entries(self) -> None:
        now = self._clock()
        expired = [k for k, entry in self._store.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug(f"[CLIENT-CACHE] Swept {len(expired)} expired entries")
            self._persist()

    def clean_cache(self) -> None:
        """Remove every expired entry."""
        self._initialize()
        self._clean_expired_entries()

    def get(self, key: str) -> Any | None:
        self._initialize()
        self._clean_expired_entries()
        entry = self._store.get(key)
        return entry["data"] if entry else None

    def set(self, key: str, data: Any, duration: int = CacheDurations.DEFAULT) -> None:
        self._initialize()
        self._clean_expired_entries()
        now = self._clock()
        self._store[key] = {
            "data": data,
            "timestamp": now,
            "expiry_time": now + duration,
        }
        self._persist()

    def has(self, key: str) -> bool:
        self._initialize()
        entry = self._store.get(key)
        return entry is not None and not self._is_expired(entry, self._clock())

    def clear(self, key: str) -> None:
        self._initialize()
        if key in self._store:
            del self._store[key]
            self._persist()

    def clear_all(self) -> None:
        self._store = {}
        self._initialized = True
        self._storage.remove_item(CACHE_STORAGE_KEY)
