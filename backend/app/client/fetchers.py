"""Cache-aware data fetchers for dashboard views.

A ``DataFetcher`` holds the state a view renders (``data``, ``is_loading``,
``error``) and refreshes it through the client cache:

1. no key or no fetcher: nothing to do
2. fresh cache entry and not forced: serve it
3. otherwise: call the fetcher, store the result for the data kind's TTL,
   and keep any failure as a message string
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from .api import DashboardApiClient
from .cache import CacheDurations, ClientCache, generate_cache_key

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DataFetcher(Generic[T]):
    key: Optional[str]
    fetcher: Optional[Callable[[], Awaitable[T]]]
    cache: ClientCache
    duration: int = CacheDurations.DEFAULT
    data: Optional[T] = None
    is_loading: bool = False
    error: Optional[str] = None

    async def fetch(self, force: bool = False) -> Optional[T]:
        if not self.key or not self.fetcher:
            return self.data

        if not force and self.cache.has(self.key):
            cached = self.cache.get(self.key)
            if cached:
                self.data = cached
                return self.data

        self.is_loading = True
        self.error = None
        try:
            result = await self.fetcher()
            self.data = result
            self.cache.set(self.key, result, self.duration)
        except Exception as e:
            self.error = str(e) or "An error occurred"
            logger.error(f"[CLIENT] Error fetching data for {self.key}: {self.error}")
        finally:
            self.is_loading = False
        return self.data

    async def refresh(self) -> Optional[T]:
        """Fetch again, ignoring the cache."""
        return await self.fetch(force=True)


def weather_fetcher(
    api: DashboardApiClient,
    cache: ClientCache,
    city: str,
    units: str = "metric",
) -> DataFetcher[dict]:
    """Combined weather for a city; inert while the city is blank."""
    if not city.strip():
        return DataFetcher(None, None, cache, CacheDurations.WEATHER)
    key = generate_cache_key("/api/weather", {"city": city, "units": units})
    return DataFetcher(
        key, lambda: api.get_weather(city, units), cache, CacheDurations.WEATHER
    )


def projects_fetcher(
    api: DashboardApiClient,
    cache: ClientCache,
    project_filter: str = "all",
    language: str | None = None,
    time_filter: str = "daily",
    topic: str | None = None,
) -> DataFetcher[list[dict]]:
    """Project highlights; bookmarks come from preferences, so none are fetched."""
    if project_filter == "bookmarked":
        return DataFetcher(None, None, cache, CacheDurations.GITHUB)
    params: dict[str, Any] = {"filter": project_filter, "since": time_filter}
    if language:
        params["language"] = language
    if topic:
        params["topic"] = topic
    key = generate_cache_key("/api/github", params)
    return DataFetcher(key, lambda: api.get_projects(params), cache, CacheDurations.GITHUB)


class InsightFetcher(DataFetcher[dict]):
    """AI insight for a project, or for the current weather when no project is set.

    ``ask_question`` goes straight to the API and replaces ``data``; answers
    are not cached.
    """

    def __init__(
        self,
        api: DashboardApiClient,
        cache: ClientCache,
        weather: dict | None = None,
        project: dict | None = None,
    ) -> None:
        current = (weather or {}).get("current")
        should_fetch = bool(current) or bool(project)
        key = None
        if should_fetch:
            mode = "project" if project else "weather"
            identifier = project.get("full_name", "") if project else current.get("name", "")
            key = generate_cache_key(f"/api/gemini/{mode}", {"id": identifier})
        super().__init__(
            key=key,
            fetcher=self._request_insight if should_fetch else None,
            cache=cache,
            duration=CacheDurations.AI_INSIGHT,
        )
        self._api = api
        self._project = project
        self._current = current

    async def _request_insight(self) -> dict:
        if self._project:
            if not self._project.get("name") or not self._project.get("description"):
                raise ValueError(
                    "Project name and description are required for project-specific insight"
                )
            return await self._api.get_insight({"project": self._project})
        return await self._api.get_insight({"weatherData": self._current})

    async def ask_question(self, question: str) -> Optional[dict]:
        self.is_loading = True
        self.error = None
        try:
            repo_name = self._project.get("full_name") if self._project else None
            self.data = await self._api.ask_question(question, repo_name)
        except Exception as e:
            self.error = str(e) or "An error occurred"
            logger.error(f"[CLIENT] Error asking AI question: {self.error}")
        finally:
            self.is_loading = False
        return self.data
