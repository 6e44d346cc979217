"""Client side of the dashboard.

Storage-backed response cache, cache-aware fetchers, the ``/api`` client and
bookmark/preference persistence.
"""

from .api import DashboardApiClient, DashboardApiError
from .cache import CACHE_STORAGE_KEY, CacheDurations, ClientCache, generate_cache_key
from .fetchers import DataFetcher, InsightFetcher, projects_fetcher, weather_fetcher
from .preferences import (
    PreferencesStore,
    category_for_topic,
    get_popular_languages,
    get_project_categories,
    github_api_params,
)
from .session import DashboardSession
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "CACHE_STORAGE_KEY",
    "CacheDurations",
    "ClientCache",
    "DashboardApiClient",
    "DashboardApiError",
    "DashboardSession",
    "DataFetcher",
    "InsightFetcher",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "PreferencesStore",
    "category_for_topic",
    "generate_cache_key",
    "get_popular_languages",
    "get_project_categories",
    "github_api_params",
    "projects_fetcher",
    "weather_fetcher",
]
