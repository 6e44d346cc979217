"""DevForecast Services.

Service layer components:
- Cache: in-memory (default) or Redis response cache with per-kind TTLs
- Weather: OpenWeatherMap current conditions and daily forecast
- GitHub: repository search, trending, details and issues
- AI Insight: Gemini summaries and repository Q&A
"""

from .cache import (
    CacheEntry,
    CacheService,
    CacheTTL,
    InMemoryCacheService,
    RedisCacheService,
    create_cache_service,
)
from .weather import OpenWeatherService, bucket_forecast
from .github import POPULAR_REPOS, GitHubService, ProjectSelector
from .ai_insight import (
    AIInsightService,
    GeminiInsightService,
    create_insight_service,
)

__all__ = [
    # Cache
    "CacheEntry",
    "CacheService",
    "CacheTTL",
    "InMemoryCacheService",
    "RedisCacheService",
    "create_cache_service",
    # Weather
    "OpenWeatherService",
    "bucket_forecast",
    # GitHub
    "POPULAR_REPOS",
    "GitHubService",
    "ProjectSelector",
    # AI insight
    "AIInsightService",
    "GeminiInsightService",
    "create_insight_service",
]
