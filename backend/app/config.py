"""Runtime configuration read from the environment.

A ``.env`` file next to the process is loaded first, then every upstream
key, token and base URL can be overridden by a plain environment variable.
Missing keys are not fatal here: the endpoints that need them answer with
a ``ConfigurationError`` instead.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

try:
    load_dotenv()
except Exception:
    pass  # Python 3.14+ compat

WEATHER_KEY_PLACEHOLDER = "your_openweathermap_api_key"
GITHUB_TOKEN_PLACEHOLDER = "your_github_api_token"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000,http://localhost:3001,http://localhost:5173"
)


def _clean_secret(value: Optional[str], placeholder: str) -> Optional[str]:
    """Treat empty values and the sample-file placeholder as unset."""
    if not value or not value.strip() or value.strip() == placeholder:
        return None
    return value.strip()


class Settings(BaseModel):
    """All tunables of the dashboard backend."""

    openweathermap_api_key: Optional[str] = None
    openweathermap_base_url: str = "https://api.openweathermap.org/data/2.5"
    github_api_token: Optional[str] = None
    github_api_base_url: str = "https://api.github.com"
    gemini_api_key: Optional[str] = None
    gemini_api_base_url: str = "https://generativelanguage.googleapis.com"
    gemini_model: str = "gemini-1.5-flash"
    redis_url: Optional[str] = None
    http_timeout_seconds: float = Field(10.0, gt=0)
    cors_origins: list[str] = Field(
        default_factory=lambda: DEFAULT_CORS_ORIGINS.split(",")
    )
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
        return cls(
            openweathermap_api_key=_clean_secret(
                os.getenv("OPENWEATHERMAP_API_KEY"), WEATHER_KEY_PLACEHOLDER
            ),
            openweathermap_base_url=os.getenv("OPENWEATHERMAP_BASE_URL")
            or "https://api.openweathermap.org/data/2.5",
            github_api_token=_clean_secret(
                os.getenv("GITHUB_API_TOKEN"), GITHUB_TOKEN_PLACEHOLDER
            ),
            github_api_base_url=os.getenv("GITHUB_API_BASE_URL")
            or "https://api.github.com",
            gemini_api_key=_clean_secret(os.getenv("GEMINI_API_KEY"), ""),
            gemini_api_base_url=os.getenv("GEMINI_API_BASE_URL")
            or "https://generativelanguage.googleapis.com",
            gemini_model=os.getenv("GEMINI_MODEL") or "gemini-1.5-flash",
            redis_url=os.getenv("REDIS_URL") or None,
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "10")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
