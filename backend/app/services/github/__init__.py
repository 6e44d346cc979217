"""GitHub REST API client and project selection strategies."""

from .service import (
    BEGINNER_LABELS,
    POPULAR_REPOS,
    GitHubService,
    build_trending_query,
    is_beginner_friendly,
    normalize_issue,
    normalize_project,
)
from .strategies import ProjectSelector, Strategy, first_non_empty, matches_filters

__all__ = [
    "BEGINNER_LABELS",
    "POPULAR_REPOS",
    "GitHubService",
    "ProjectSelector",
    "Strategy",
    "build_trending_query",
    "first_non_empty",
    "is_beginner_friendly",
    "matches_filters",
    "normalize_issue",
    "normalize_project",
]
