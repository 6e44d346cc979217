"""Project selection for the ``/api/github`` list endpoint.

Each way of producing a project list is a named strategy. Strategies are
tried in order and the first non-empty result wins:

- trending:  search API -> curated sample
- filtered:  scan the shuffled curated list -> curated sample
- default:   curated sample
"""

import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable

from app.models import (
    DashboardError,
    NormalizedProject,
    ProjectFilter,
    TimeWindow,
)
from app.services.cache import CacheService, CacheTTL

from .service import POPULAR_REPOS, GitHubService

logger = logging.getLogger(__name__)


@dataclass
class Strategy:
    name: str
    run: Callable[[], Awaitable[list[NormalizedProject]]]


async def first_non_empty(
    strategies: list[Strategy],
) -> tuple[str | None, list[NormalizedProject]]:
    """Run strategies in order; return the name and result of the first hit.

    A strategy that raises a ``DashboardError`` counts as empty.
    """
    for strategy in strategies:
        try:
            result = await strategy.run()
        except DashboardError as e:
            logger.info(f"[GITHUB] Strategy '{strategy.name}' failed: {e.message}")
            continue
        if result:
            logger.info(f"[GITHUB] Strategy '{strategy.name}' returned {len(result)} projects")
            return strategy.name, result
        logger.info(f"[GITHUB] Strategy '{strategy.name}' returned nothing")
    return None, []


def matches_filters(
    project: NormalizedProject, language: str | None, topic: str | None
) -> bool:
    if language and project.language.lower() != language.lower():
        return False
    if topic and topic.lower() not in {t.lower() for t in project.topics}:
        return False
    return True


class ProjectSelector:
    """Builds and runs the strategy chain for a project list request."""

    def __init__(
        self,
        github: GitHubService,
        cache: CacheService,
        ttl: CacheTTL | None = None,
        curated: list[str] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._github = github
        self._cache = cache
        self._ttl = ttl or CacheTTL()
        self._curated = list(curated or POPULAR_REPOS)
        self._rng = rng or random.Random()

    @property
    def curated_size(self) -> int:
        return len(self._curated)

    async def cached_repository(self, full_name: str) -> NormalizedProject:
        key = CacheService.build_key("/repos", {"repo": full_name})
        data = await self._cache.get_or_fetch(
            key,
            self._ttl.repo_details,
            lambda: self._fetch_repository_dict(full_name),
        )
        return NormalizedProject.model_validate(data)

    async def _fetch_repository_dict(self, full_name: str) -> dict:
        project = await self._github.get_repository(full_name)
        return project.model_dump(exclude_none=True)

    def _shuffled(self) -> list[str]:
        names = list(self._curated)
        self._rng.shuffle(names)
        return names

    async def curated_sample(self, count: int) -> list[NormalizedProject]:
        """``count`` random repositories from the curated list."""
        names = self._shuffled()[:count]
        return await self._github.fetch_many(names, self.cached_repository)

    async def trending(
        self,
        since: TimeWindow,
        language: str | None,
        topic: str | None,
        count: int,
    ) -> list[NormalizedProject]:
        key = CacheService.build_key(
            "/api/github/trending",
            {"since": since.value, "language": language, "topic": topic, "count": count},
        )

        async def fetch() -> list[dict]:
            projects = await self._github.trending(since, language, topic, count)
            return [p.model_dump(exclude_none=True) for p in projects]

        data = await self._cache.get_or_fetch(key, self._ttl.trending, fetch)
        return [NormalizedProject.model_validate(item) for item in data][:count]

    async def filtered_scan(
        self, count: int, language: str | None, topic: str | None
    ) -> list[NormalizedProject]:
        """Scan the shuffled curated list in batches until ``count`` match."""
        names = self._shuffled()
        matches: list[NormalizedProject] = []
        for start in range(0, len(names), count):
            batch = names[start:start + count]
            try:
                projects = await self._github.fetch_many(batch, self.cached_repository)
            except DashboardError:
                continue
            matches.extend(p for p in projects if matches_filters(p, language, topic))
            if len(matches) >= count:
                break
        return matches[:count]

    def strategies_for(
        self,
        project_filter: ProjectFilter,
        count: int,
        since: TimeWindow = TimeWindow.DAILY,
        language: str | None = None,
        topic: str | None = None,
    ) -> list[Strategy]:
        sample = Strategy("curated-sample", lambda: self.curated_sample(count))
        if project_filter == ProjectFilter.TRENDING:
            return [
                Strategy("trending", lambda: self.trending(since, language, topic, count)),
                sample,
            ]
        if language or topic:
            return [
                Strategy("filtered-scan", lambda: self.filtered_scan(count, language, topic)),
                sample,
            ]
        return [sample]

    async def select(
        self,
        project_filter: ProjectFilter,
        count: int,
        since: TimeWindow = TimeWindow.DAILY,
        language: str | None = None,
        topic: str | None = None,
    ) -> list[NormalizedProject]:
        _, projects = await first_non_empty(
            self.strategies_for(project_filter, count, since, language, topic)
        )
        return projects
