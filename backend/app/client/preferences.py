"""Bookmarks and user preferences kept in client storage.

Each list lives under its own fixed key as a JSON array. Unreadable values
are logged and read as empty so a corrupt entry never breaks the dashboard.
"""

import json
import logging
from typing import Any, Optional

from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

BOOKMARK_KEY = "devforecast_bookmarked_projects"
LANGUAGE_PREFS_KEY = "devforecast_language_preferences"
TOPIC_PREFS_KEY = "devforecast_topic_preferences"
VIEW_HISTORY_KEY = "devforecast_view_history"
RECENT_CITIES_KEY = "devforecast_recent_cities"
ONBOARDING_KEY = "devforecast_onboarding_dismissed"

MAX_VIEW_HISTORY = 20
MAX_RECENT_CITIES = 5

PROJECT_CATEGORIES = [
    {"id": "web", "name": "Web Development",
     "topics": ["react", "vue", "angular", "nextjs", "javascript", "typescript"]},
    {"id": "mobile", "name": "Mobile Development",
     "topics": ["react-native", "flutter", "swift", "kotlin", "ios", "android"]},
    {"id": "backend", "name": "Backend",
     "topics": ["node", "express", "django", "laravel", "spring", "rails"]},
    {"id": "ai-ml", "name": "AI & Machine Learning",
     "topics": ["ai", "machine-learning", "deep-learning", "tensorflow", "pytorch"]},
    {"id": "devops", "name": "DevOps & Cloud",
     "topics": ["kubernetes", "docker", "aws", "azure", "gcp", "terraform"]},
    {"id": "game-dev", "name": "Game Development",
     "topics": ["game", "unity", "unreal", "gamedev", "godot"]},
]

POPULAR_LANGUAGES = [
    "JavaScript", "TypeScript", "Python", "Java", "C#", "Go", "Rust", "PHP",
    "Ruby", "Swift", "Kotlin",
]


def get_project_categories() -> list[dict[str, Any]]:
    """Categories offered by the project filters, each with its topics."""
    return [{**c, "topics": list(c["topics"])} for c in PROJECT_CATEGORIES]


def get_popular_languages() -> list[str]:
    return list(POPULAR_LANGUAGES)


def category_for_topic(topic: str) -> Optional[str]:
    """Id of the first category listing ``topic``, or None."""
    topic = topic.lower()
    for category in PROJECT_CATEGORIES:
        if topic in category["topics"]:
            return category["id"]
    return None


class PreferencesStore:
    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    def _read_list(self, key: str) -> list:
        raw = self._storage.get_item(key)
        if not raw:
            return []
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"[PREFS] Error loading {key}: {e}")
            return []
        return value if isinstance(value, list) else []

    def _write_list(self, key: str, items: list) -> None:
        self._storage.set_item(key, json.dumps(items))

    # ── Bookmarks ──

    def get_bookmarked_projects(self) -> list[dict[str, Any]]:
        return self._read_list(BOOKMARK_KEY)

    def add_bookmarked_project(self, project: dict[str, Any]) -> None:
        bookmarks = self.get_bookmarked_projects()
        if any(p.get("id") == project.get("id") for p in bookmarks):
            return
        bookmarks.append({**project, "is_bookmarked": True})
        self._write_list(BOOKMARK_KEY, bookmarks)

    def remove_bookmarked_project(self, project_id: int) -> None:
        bookmarks = [p for p in self.get_bookmarked_projects() if p.get("id") != project_id]
        self._write_list(BOOKMARK_KEY, bookmarks)

    def is_project_bookmarked(self, project_id: int) -> bool:
        return any(p.get("id") == project_id for p in self.get_bookmarked_projects())

    # ── Favourite languages and topics ──

    def _add_unique(self, key: str, value: str) -> None:
        items = self._read_list(key)
        if value not in items:
            items.append(value)
            self._write_list(key, items)

    def _remove(self, key: str, value: str) -> None:
        self._write_list(key, [item for item in self._read_list(key) if item != value])

    def get_favorite_languages(self) -> list[str]:
        return self._read_list(LANGUAGE_PREFS_KEY)

    def add_favorite_language(self, language: str) -> None:
        self._add_unique(LANGUAGE_PREFS_KEY, language)

    def remove_favorite_language(self, language: str) -> None:
        self._remove(LANGUAGE_PREFS_KEY, language)

    def get_favorite_topics(self) -> list[str]:
        return self._read_list(TOPIC_PREFS_KEY)

    def add_favorite_topic(self, topic: str) -> None:
        self._add_unique(TOPIC_PREFS_KEY, topic)

    def remove_favorite_topic(self, topic: str) -> None:
        self._remove(TOPIC_PREFS_KEY, topic)

    # ── Most-recent-first lists ──

    def _push_recent(self, key: str, value: str, limit: int) -> list[str]:
        items = [value] + [item for item in self._read_list(key) if item != value]
        items = items[:limit]
        self._write_list(key, items)
        return items

    def get_view_history(self) -> list[str]:
        return self._read_list(VIEW_HISTORY_KEY)

    def add_to_view_history(self, full_name: str) -> None:
        self._push_recent(VIEW_HISTORY_KEY, full_name, MAX_VIEW_HISTORY)

    def clear_view_history(self) -> None:
        self._write_list(VIEW_HISTORY_KEY, [])

    def get_recent_cities(self) -> list[str]:
        return self._read_list(RECENT_CITIES_KEY)

    def add_recent_city(self, city: str) -> list[str]:
        return self._push_recent(RECENT_CITIES_KEY, city, MAX_RECENT_CITIES)

    # ── Onboarding ──

    def is_onboarding_dismissed(self) -> bool:
        return self._storage.get_item(ONBOARDING_KEY) == "true"

    def dismiss_onboarding(self) -> None:
        self._storage.set_item(ONBOARDING_KEY, "true")

    def get_user_preferences(self) -> dict[str, list]:
        return {
            "favoriteLanguages": self.get_favorite_languages(),
            "favoriteTopics": self.get_favorite_topics(),
            "bookmarkedProjects": self.get_bookmarked_projects(),
            "viewHistory": self.get_view_history(),
        }


def github_api_params(
    project_filter: str,
    language: Optional[str] = None,
    time_filter: Optional[str] = None,
    topic: Optional[str] = None,
) -> dict[str, str]:
    """Query parameters for ``/api/github`` matching a filter selection."""
    params = {"count": "6"}
    if project_filter == "trending":
        params["filter"] = "trending"
        if time_filter:
            params["since"] = time_filter
    elif project_filter in ("beginner-friendly", "recently-updated"):
        params["filter"] = project_filter
    if language:
        params["language"] = language
    if topic:
        params["topic"] = topic
    return params
