"""DevForecast data models."""

from .core import (
    CombinedWeatherData,
    DailyForecast,
    ForecastSummary,
    InsightRequest,
    InsightResponse,
    IssueLabel,
    License,
    NormalizedIssue,
    NormalizedProject,
    ProjectFilter,
    QuestionRequest,
    QuestionResponse,
    RepositoryDetails,
    TimeWindow,
    Units,
)
from .errors import (
    ConfigurationError,
    DashboardError,
    ErrorCode,
    InputValidationError,
    MalformedUpstreamResponse,
    RateLimitedError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamNetworkError,
    UpstreamNotFoundError,
    error_for_status,
)

__all__ = [
    # Weather
    "Units",
    "DailyForecast",
    "ForecastSummary",
    "CombinedWeatherData",
    # GitHub
    "TimeWindow",
    "ProjectFilter",
    "License",
    "NormalizedProject",
    "IssueLabel",
    "NormalizedIssue",
    "RepositoryDetails",
    # AI
    "InsightRequest",
    "InsightResponse",
    "QuestionRequest",
    "QuestionResponse",
    # Errors
    "ErrorCode",
    "DashboardError",
    "InputValidationError",
    "UpstreamAuthError",
    "UpstreamNotFoundError",
    "RateLimitedError",
    "UpstreamError",
    "UpstreamNetworkError",
    "MalformedUpstreamResponse",
    "ConfigurationError",
    "error_for_status",
]
