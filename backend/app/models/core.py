"""Core data models for DevForecast.

Pydantic models for the normalized shapes the API hands to the dashboard:
GitHub projects and issues, the derived daily forecast, and the request
bodies accepted by the AI endpoints.

Optional fields are left unset rather than ``None`` so responses serialized
with ``exclude_none`` never carry a ``null``.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Units(str, Enum):
    """Unit systems accepted by OpenWeatherMap."""

    METRIC = "metric"
    IMPERIAL = "imperial"
    STANDARD = "standard"


class TimeWindow(str, Enum):
    """Creation-date windows for trending repository searches."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def days(self) -> int:
        return {"daily": 1, "weekly": 7, "monthly": 30}[self.value]


class ProjectFilter(str, Enum):
    """Project list filters offered by the dashboard."""

    ALL = "all"
    TRENDING = "trending"
    BEGINNER_FRIENDLY = "beginner-friendly"
    RECENTLY_UPDATED = "recently-updated"
    BOOKMARKED = "bookmarked"


class License(BaseModel):
    name: str
    url: Optional[str] = None


class NormalizedProject(BaseModel):
    """Flattened subset of a GitHub repository object.

    ``description``, ``language`` and ``homepage`` are always strings;
    ``license`` and the timestamps are omitted when GitHub has none.
    """

    id: int
    name: str
    full_name: str
    description: str = ""
    html_url: str
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    language: str = ""
    avatar_url: str = ""
    topics: list[str] = Field(default_factory=list)
    license: Optional[License] = None
    homepage: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_bookmarked: Optional[bool] = None


class IssueLabel(BaseModel):
    name: str
    color: str = ""


class NormalizedIssue(BaseModel):
    id: int
    number: int
    title: str
    html_url: str
    labels: list[IssueLabel] = Field(default_factory=list)
    created_at: str = ""


class RepositoryDetails(NormalizedProject):
    """A single repository merged with its beginner-friendly open issues."""

    beginner_issues: list[NormalizedIssue] = Field(default_factory=list)


class DailyForecast(BaseModel):
    """Aggregate of the 3-hour forecast samples that fall on one local day."""

    dt: int = Field(..., description="Timestamp of the representative sample")
    date: str = Field(..., description="Local calendar date, YYYY-MM-DD")
    temp_min: float
    temp_max: float
    icon: str = Field(..., description="Most frequent daytime icon code")
    description: str = ""
    pop: float = Field(0.0, ge=0, le=1, description="Mean precipitation probability")


class ForecastSummary(BaseModel):
    city: str = ""
    timezone_offset: int = 0
    daily: list[DailyForecast] = Field(default_factory=list)


class CombinedWeatherData(BaseModel):
    current: dict[str, Any]
    forecast: ForecastSummary


class InsightRequest(BaseModel):
    """Body of ``POST /api/gemini``.

    Exactly one of three shapes is accepted: ``{project}``,
    ``{weatherData, projectData}`` or ``{weatherData}``.
    """

    project: Optional[dict[str, Any]] = None
    weatherData: Optional[dict[str, Any]] = None
    projectData: Optional[dict[str, Any]] = None


class QuestionRequest(BaseModel):
    question: Optional[str] = None
    repoName: Optional[str] = None


class InsightResponse(BaseModel):
    message: str


class QuestionResponse(BaseModel):
    message: str
    question: str
