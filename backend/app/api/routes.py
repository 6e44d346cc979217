"""API routes for DevForecast.

Thin proxy layer over three upstreams:
- OpenWeatherMap: current conditions + daily forecast
- GitHub REST API: project highlights, search, issues
- Gemini: short insights and repository Q&A

Every handler validates its input, consults the response cache, calls the
service client and returns plain JSON. Service errors are ``DashboardError``
subclasses and are rendered as ``{error, details}`` by the handlers in
``app.main``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.config import Settings
from app.models import (
    CombinedWeatherData,
    DashboardError,
    InputValidationError,
    InsightRequest,
    InsightResponse,
    NormalizedIssue,
    NormalizedProject,
    ProjectFilter,
    QuestionRequest,
    QuestionResponse,
    TimeWindow,
    UpstreamError,
)
from app.services import (
    AIInsightService,
    CacheService,
    CacheTTL,
    GitHubService,
    OpenWeatherService,
    ProjectSelector,
    create_cache_service,
    create_insight_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()

REPO_NAME_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")
LEADING_INTEGER_PATTERN = re.compile(r"\s*([+-]?\d+)")


# ─── Service container (built once per process, stored on app.state) ───

@dataclass
class Services:
    settings: Settings
    cache: CacheService
    ttl: CacheTTL
    weather: OpenWeatherService
    github: GitHubService
    selector: ProjectSelector
    insight: AIInsightService

    async def close(self) -> None:
        await self.weather.close()
        await self.github.close()
        disconnect = getattr(self.cache, "disconnect", None)
        if disconnect is not None:
            await disconnect()


def build_services(
    settings: Settings,
    cache: CacheService | None = None,
    ttl: CacheTTL | None = None,
) -> Services:
    cache = cache or create_cache_service(settings.redis_url)
    ttl = ttl or CacheTTL()
    github = GitHubService(
        token=settings.github_api_token,
        base_url=settings.github_api_base_url,
        timeout=settings.http_timeout_seconds,
    )
    return Services(
        settings=settings,
        cache=cache,
        ttl=ttl,
        weather=OpenWeatherService(
            api_key=settings.openweathermap_api_key,
            base_url=settings.openweathermap_base_url,
            timeout=settings.http_timeout_seconds,
        ),
        github=github,
        selector=ProjectSelector(github, cache, ttl),
        insight=create_insight_service(
            settings.gemini_api_key,
            settings.gemini_api_base_url,
            settings.gemini_model,
        ),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_github_service(request: Request) -> GitHubService:
    github = get_services(request).github
    if not github.is_authenticated:
        logger.info("[GITHUB] Using GitHub API without authentication (limited rate)")
    return github


def _require_repo_name(repo: Optional[str]) -> str:
    if not repo or not repo.strip():
        raise InputValidationError(
            "Missing repository parameter",
            "Please provide a repository name in the format owner/repo",
        )
    repo = repo.strip()
    if not REPO_NAME_PATTERN.match(repo):
        raise InputValidationError(
            "Invalid repository parameter",
            f'"{repo}" is not in the format owner/repo',
        )
    return repo


def _parse_count(raw: Optional[str], maximum: int) -> int:
    """Leading integer of ``raw`` clamped to ``[1, maximum]``; 1 when there is none."""
    match = LEADING_INTEGER_PATTERN.match(raw) if raw is not None else None
    count = int(match.group(1)) if match else 1
    return min(max(count, 1), maximum)


def _dump(project: NormalizedProject) -> dict:
    return project.model_dump(exclude_none=True)


# ─── Weather ───

@router.get("/weather")
async def get_weather(
    city: Optional[str] = None,
    units: str = "metric",
    days: int = Query(5, ge=1, le=5),
    include_today: bool = True,
    services: Services = Depends(get_services),
) -> dict:
    """Current conditions plus a daily forecast for a city."""
    if not city or not city.strip():
        raise InputValidationError("City parameter is required")
    city = city.strip()
    unit = OpenWeatherService.parse_units(units)

    key = CacheService.build_key(
        "/api/weather",
        {
            "city": city.lower(),
            "units": unit.value,
            "days": days,
            "include_today": include_today,
        },
    )

    async def fetch() -> dict:
        combined = await services.weather.get_combined(
            city, unit, days=days, skip_today=not include_today
        )
        return combined.model_dump()

    data = await services.cache.get_or_fetch(key, services.ttl.weather_combined, fetch)
    return CombinedWeatherData.model_validate(data).model_dump()


@router.get("/weather/current")
async def get_current_weather(
    city: Optional[str] = None,
    units: str = "metric",
    services: Services = Depends(get_services),
) -> dict:
    """Current conditions for a city, passed through from OpenWeatherMap."""
    if not city or not city.strip():
        raise InputValidationError("City parameter is required")
    city = city.strip()
    unit = OpenWeatherService.parse_units(units)

    key = CacheService.build_key(
        "/api/weather/current", {"city": city.lower(), "units": unit.value}
    )
    return await services.cache.get_or_fetch(
        key,
        services.ttl.weather,
        lambda: services.weather.get_current(city, unit),
    )


# ─── GitHub ───

@router.get("/github")
async def get_github_projects(
    count: Optional[str] = None,
    filter: Optional[str] = None,
    language: Optional[str] = None,
    since: Optional[str] = None,
    topic: Optional[str] = None,
    repo: Optional[str] = None,
    services: Services = Depends(get_services),
    github: GitHubService = Depends(get_github_service),
):
    """Project highlights.

    - ``repo`` given: that repository plus its beginner-friendly issues
    - ``filter=trending``: trending search, curated list as fallback
    - otherwise: curated list, narrowed by ``language``/``topic`` if given
    """
    if repo is not None:
        full_name = _require_repo_name(repo)
        details = await github.get_repository_details(
            full_name, fetch_repository=services.selector.cached_repository
        )
        return details.model_dump(exclude_none=True)

    try:
        project_filter = ProjectFilter(filter or ProjectFilter.ALL.value)
    except ValueError:
        project_filter = ProjectFilter.ALL
    try:
        window = TimeWindow(since or TimeWindow.DAILY.value)
    except ValueError:
        window = TimeWindow.DAILY

    count_value = _parse_count(count, services.selector.curated_size)
    projects = await services.selector.select(
        project_filter,
        count_value,
        since=window,
        language=(language or "").strip() or None,
        topic=(topic or "").strip() or None,
    )
    if not projects:
        raise UpstreamError(
            "Failed to fetch any GitHub project data",
            "Could not retrieve data for the selected repositories.",
        )
    return [_dump(p) for p in projects]


@router.get("/github/search")
async def search_github(
    q: Optional[str] = None,
    services: Services = Depends(get_services),
    github: GitHubService = Depends(get_github_service),
) -> dict:
    """Search repositories by free text. Upstream failures yield no results."""
    if not q or not q.strip():
        raise InputValidationError(
            "Missing search query", "Please provide a search query with q parameter"
        )
    query = q.strip()
    key = CacheService.build_key("/api/github/search", {"q": query})

    async def fetch() -> list[dict]:
        return [_dump(p) for p in await github.search(query)]

    try:
        repositories = await services.cache.get_or_fetch(key, services.ttl.search, fetch)
    except DashboardError as e:
        logger.warning(f"[GITHUB] Search '{query}' failed, returning no results: {e.message}")
        repositories = []
    return {"repositories": repositories}


@router.get("/github/issues")
async def get_github_issues(
    repo: Optional[str] = None,
    services: Services = Depends(get_services),
    github: GitHubService = Depends(get_github_service),
) -> dict:
    """Open issues of a repository. Upstream failures yield an empty list."""
    full_name = _require_repo_name(repo)
    key = CacheService.build_key("/api/github/issues", {"repo": full_name})

    async def fetch() -> list[dict]:
        issues: list[NormalizedIssue] = await github.get_issues(full_name)
        return [issue.model_dump() for issue in issues]

    try:
        issues = await services.cache.get_or_fetch(key, services.ttl.issues, fetch)
    except DashboardError as e:
        logger.warning(f"[GITHUB] Issues for {full_name} unavailable: {e.message}")
        issues = []
    return {"issues": issues}


# ─── Gemini ───

@router.post("/gemini", response_model=InsightResponse)
async def create_insight(
    body: InsightRequest,
    services: Services = Depends(get_services),
) -> InsightResponse:
    """Short AI-written blurb about a project, the weather, or both."""
    message = await services.insight.generate_insight(body)
    return InsightResponse(message=message)


@router.post("/gemini/question", response_model=QuestionResponse)
async def ask_question(
    body: QuestionRequest,
    services: Services = Depends(get_services),
) -> QuestionResponse:
    """Concise AI answer to a question about a repository or GitHub in general."""
    message = await services.insight.answer_question(body.question, body.repoName)
    return QuestionResponse(message=message, question=body.question or "")
