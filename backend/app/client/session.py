"""One dashboard client session: storage, cache, API client and preferences.

Expired cache entries are swept once when the session opens.
"""

import logging

from .api import DashboardApiClient
from .cache import ClientCache
from .preferences import PreferencesStore
from .storage import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)


class DashboardSession:
    """Async context manager bundling the client-side components.

    Example:
        async with DashboardSession(JsonFileStorage("~/.devforecast.json")) as s:
            weather = weather_fetcher(s.api, s.cache, "London")
            await weather.fetch()
    """

    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        api: DashboardApiClient | None = None,
        cache: ClientCache | None = None,
    ) -> None:
        self.storage = storage or MemoryStorage()
        self.api = api or DashboardApiClient()
        self.cache = cache or ClientCache(self.storage)
        self.preferences = PreferencesStore(self.storage)
        self._opened = False

    def open(self) -> None:
        if not self._opened:
            self.cache.clean_cache()
            self._opened = True
            logger.debug("[CLIENT] Session opened, expired cache entries swept")

    async def close(self) -> None:
        await self.api.close()

    async def __aenter__(self) -> "DashboardSession":
        self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
