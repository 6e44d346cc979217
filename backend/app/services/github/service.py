"""GitHub REST API client for the project highlights.

Architecture:
- Shared httpx client, created lazily and reused across requests
- Bearer auth when a real token is configured, anonymous otherwise
  (60 requests/hour, so every response's rate-limit headers are logged)
- Responses normalized into ``NormalizedProject`` / ``NormalizedIssue`` so the
  dashboard never sees a ``null`` description, homepage or license
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Awaitable, Callable

import httpx

from app.models import (
    DashboardError,
    IssueLabel,
    License,
    NormalizedIssue,
    NormalizedProject,
    RepositoryDetails,
    TimeWindow,
    UpstreamError,
    UpstreamNetworkError,
    error_for_status,
)

logger = logging.getLogger(__name__)

# Curated fallback list, used when search is unavailable or for random picks
POPULAR_REPOS = [
    "facebook/react", "vercel/next.js", "tailwindlabs/tailwindcss", "shadcn-ui/ui",
    "microsoft/typescript", "sveltejs/svelte", "golang/go", "rust-lang/rust",
    "denoland/deno", "flutter/flutter", "vuejs/vue", "angular/angular",
    "torvalds/linux", "microsoft/vscode", "freeCodeCamp/freeCodeCamp",
    "openai/openai-cookbook", "huggingface/transformers", "tensorflow/tensorflow",
    "kubernetes/kubernetes", "docker/compose",
]

BEGINNER_LABELS = {
    "good first issue",
    "help wanted",
    "beginner",
    "easy",
    "first-timers-only",
    "up-for-grabs",
}

MAX_SEARCH_PAGE_SIZE = 30


def normalize_project(item: dict[str, Any]) -> NormalizedProject:
    """Flatten a GitHub repository object, replacing nulls with empty values."""
    owner = item.get("owner") or {}
    license_data = item.get("license")
    license_ = None
    if license_data and license_data.get("name"):
        license_ = License(name=license_data["name"], url=license_data.get("url") or None)
    return NormalizedProject(
        id=item["id"],
        name=item.get("name") or "",
        full_name=item.get("full_name") or "",
        description=item.get("description") or "",
        html_url=item.get("html_url") or "",
        stargazers_count=item.get("stargazers_count") or 0,
        forks_count=item.get("forks_count") or 0,
        open_issues_count=item.get("open_issues_count") or 0,
        language=item.get("language") or "",
        avatar_url=owner.get("avatar_url") or "",
        topics=item.get("topics") or [],
        license=license_,
        homepage=item.get("homepage") or "",
        created_at=item.get("created_at") or None,
        updated_at=item.get("updated_at") or None,
    )


def normalize_issue(item: dict[str, Any]) -> NormalizedIssue:
    return NormalizedIssue(
        id=item["id"],
        number=item["number"],
        title=item.get("title") or "",
        html_url=item.get("html_url") or "",
        labels=[
            IssueLabel(name=label.get("name", ""), color=label.get("color") or "")
            for label in item.get("labels") or []
            if isinstance(label, dict)
        ],
        created_at=item.get("created_at") or "",
    )


def is_beginner_friendly(issue: NormalizedIssue) -> bool:
    return any(label.name.lower() in BEGINNER_LABELS for label in issue.labels)


def build_trending_query(
    since: TimeWindow = TimeWindow.DAILY,
    language: str | None = None,
    topic: str | None = None,
    today: date | None = None,
) -> str:
    """Search query for repositories created within the time window.

    Example:
        >>> build_trending_query(TimeWindow.WEEKLY, "Rust", None, date(2024, 5, 8))
        'created:>2024-05-01 language:Rust'
    """
    start = (today or date.today()) - timedelta(days=since.days)
    parts = [f"created:>{start.isoformat()}"]
    if language:
        parts.append(f"language:{language}")
    if topic:
        parts.append(f"topic:{topic}")
    return " ".join(parts)


class GitHubService:
    """GitHub REST API client.

    Attributes:
        _token: Bearer token, or None for anonymous access.
        _base_url: API root, ``https://api.github.com`` by default.
    """

    DEFAULT_BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self.headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: dict[str, Any] | None, target: str) -> Any:
        client = self._get_client()
        try:
            response = await client.get(f"{self._base_url}{path}", params=params)
        except httpx.TransportError as e:
            logger.warning(f"[GITHUB] {target}: no response ({type(e).__name__})")
            raise UpstreamNetworkError(
                "GitHub API unreachable", f"{target}: {e}"
            ) from e

        remaining = response.headers.get("x-ratelimit-remaining")
        if remaining is not None:
            limit = response.headers.get("x-ratelimit-limit", "60")
            logger.debug(f"[GITHUB] Rate limit: {remaining}/{limit} requests remaining")

        if response.status_code == 200:
            return response.json()

        try:
            message = response.json().get("message", "")
        except (ValueError, AttributeError):
            message = ""
        logger.warning(f"[GITHUB] {target} failed: {response.status_code} {message}")
        if response.status_code == 404:
            raise error_for_status(404, "Repository not found", f"{target} does not exist")
        if response.status_code == 403:
            # GitHub answers 403 when the anonymous rate limit is exhausted
            raise error_for_status(
                403, "GitHub API access denied", message or "Rate limit or access issue"
            )
        raise error_for_status(
            response.status_code, "GitHub API error", message or f"{target} failed"
        )

    async def search(self, query: str, per_page: int = 10) -> list[NormalizedProject]:
        """Search repositories, most-starred first."""
        data = await self._get(
            "/search/repositories",
            {
                "q": query,
                "sort": "stars",
                "order": "desc",
                "per_page": min(max(per_page, 1), MAX_SEARCH_PAGE_SIZE),
            },
            f"search '{query}'",
        )
        items = data.get("items") or []
        logger.info(f"[GITHUB] Search '{query}': {len(items)} repositories")
        return [normalize_project(item) for item in items]

    async def trending(
        self,
        since: TimeWindow = TimeWindow.DAILY,
        language: str | None = None,
        topic: str | None = None,
        count: int = 6,
    ) -> list[NormalizedProject]:
        """Most-starred repositories created within the time window."""
        query = build_trending_query(since, language, topic)
        return await self.search(query, per_page=count)

    async def get_repository(self, full_name: str) -> NormalizedProject:
        data = await self._get(f"/repos/{full_name}", None, full_name)
        return normalize_project(data)

    async def get_issues(self, full_name: str, limit: int = 10) -> list[NormalizedIssue]:
        """Open issues of a repository, pull requests excluded."""
        data = await self._get(
            f"/repos/{full_name}/issues",
            {"state": "open", "per_page": limit},
            f"{full_name} issues",
        )
        return [
            normalize_issue(item)
            for item in data
            if "pull_request" not in item
        ][:limit]

    async def get_beginner_issues(
        self, full_name: str, limit: int = 5
    ) -> list[NormalizedIssue]:
        """Open issues labelled as friendly to newcomers."""
        issues = await self.get_issues(full_name, limit=MAX_SEARCH_PAGE_SIZE)
        return [issue for issue in issues if is_beginner_friendly(issue)][:limit]

    async def get_repository_details(
        self,
        full_name: str,
        fetch_repository: Callable[[str], Awaitable[NormalizedProject]] | None = None,
        issue_limit: int = 5,
    ) -> RepositoryDetails:
        """Repository metadata merged with its beginner-friendly issues.

        A failure to list issues leaves ``beginner_issues`` empty; a failure
        to load the repository itself propagates.
        """
        fetch_repository = fetch_repository or self.get_repository
        repo_result, issues_result = await asyncio.gather(
            fetch_repository(full_name),
            self.get_beginner_issues(full_name, limit=issue_limit),
            return_exceptions=True,
        )
        if isinstance(repo_result, BaseException):
            raise repo_result
        if isinstance(issues_result, BaseException):
            logger.info(f"[GITHUB] {full_name}: beginner issues unavailable ({issues_result})")
            issues_result = []
        return RepositoryDetails(
            **repo_result.model_dump(), beginner_issues=issues_result
        )

    async def fetch_many(
        self,
        full_names: list[str],
        fetch_repository: Callable[[str], Awaitable[NormalizedProject]] | None = None,
    ) -> list[NormalizedProject]:
        """Fetch several repositories concurrently.

        Individual failures are dropped; if every fetch fails an aggregate
        ``UpstreamError`` is raised.
        """
        if not full_names:
            return []
        fetch_repository = fetch_repository or self.get_repository

        async def fetch_or_none(name: str) -> NormalizedProject | None:
            try:
                return await fetch_repository(name)
            except DashboardError as e:
                logger.info(f"[GITHUB] Skipping {name}: {e.message}")
                return None

        results = await asyncio.gather(*(fetch_or_none(n) for n in full_names))
        projects = [project for project in results if project is not None]
        if not projects:
            raise UpstreamError(
                "Failed to fetch any GitHub project data",
                "Could not retrieve data for the selected repositories.",
            )
        return projects
