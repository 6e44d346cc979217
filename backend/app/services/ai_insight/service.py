"""AI Insight service: short developer-facing blurbs from Google Gemini.

Provider-agnostic base class with one concrete implementation:
- GeminiInsightService: Google Gemini through the ``google-genai`` SDK

Two operations:
- Insight: one of three prompt templates, picked from which inputs are
  present (project / weather + project / weather only)
- Question: a concise answer to a free-text question about a repository
  or GitHub in general, with markdown emphasis stripped
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from app.models import (
    ConfigurationError,
    InputValidationError,
    InsightRequest,
    MalformedUpstreamResponse,
    UpstreamNetworkError,
    error_for_status,
)

logger = logging.getLogger(__name__)

# (temperature, max output tokens)
INSIGHT_SAMPLING = (0.7, 150)
QUESTION_SAMPLING = (0.1, 200)

CONCISE_ANSWER_RULES = (
    "Please provide a brief, direct answer. Be extremely concise and focused "
    "on answering only what was asked.\n\n"
    "1. Start with a one-sentence answer\n"
    "2. If necessary, add 1-2 bullet points with key details\n"
    "3. Limit total response to 2-3 sentences maximum\n"
    '4. Don\'t use introductory phrases like "The answer is..."'
)


def strip_markdown_emphasis(text: str) -> str:
    """Remove ``**bold**`` markers and ``*emphasis*`` asterisks."""
    text = text.replace("**", "")
    text = re.sub(r"\s\*([^*]+)\*", r" \1", text)
    return text.strip()


def extract_text(response: Any) -> str:
    """Text of the first part of the first candidate.

    Raises:
        MalformedUpstreamResponse: If any step of that path is missing.
    """
    candidates = getattr(response, "candidates", None)
    content = getattr(candidates[0], "content", None) if candidates else None
    parts = getattr(content, "parts", None) if content else None
    text = getattr(parts[0], "text", None) if parts else None
    if text is None:
        logger.error(f"[AI] Unexpected response structure: {response!r:.300}")
        raise MalformedUpstreamResponse(
            "Failed to generate AI insight",
            "Received an unexpected response format from the AI service.",
        )
    return text


class AIInsightService(ABC):
    """Base class for AI insight services.

    All prompt construction and validation lives here.
    Subclasses only implement ``_generate()`` for their specific API client.
    """

    @abstractmethod
    async def _generate(self, prompt: str, temperature: float, max_tokens: int) -> str:
        """Send prompt to the AI provider and return raw text."""
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human-readable provider name for logging."""
        ...

    # ── Utilities ─────────────────────────────────────────────────────

    @staticmethod
    def _sanitize_input(text: Any, max_length: int = 500) -> str:
        """Drop control characters and cap length before text enters a prompt."""
        cleaned = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", str(text))
        return cleaned[:max_length].strip()

    @staticmethod
    def _weather_fields(weather: dict[str, Any]) -> tuple[str, int, str]:
        """Description, rounded temperature and city of a current-weather object.

        Raises:
            InputValidationError: If the object does not have the upstream shape.
        """
        try:
            description = weather["weather"][0].get("description", "")
            temp = (weather.get("main") or {}).get("temp") or 0
        except (AttributeError, TypeError, KeyError, IndexError) as e:
            raise InputValidationError(
                "Malformed weather data", f"weatherData is not a current-weather object: {e}"
            ) from None
        if isinstance(temp, bool) or not isinstance(temp, (int, float)):
            raise InputValidationError(
                "Malformed weather data", "weatherData.main.temp must be a number"
            )
        return description, round(temp), weather.get("name", "")

    # ── Prompts ───────────────────────────────────────────────────────

    def build_insight_prompt(self, body: InsightRequest) -> str:
        """Pick the prompt template from which inputs are present.

        Accepted shapes: ``{project}``, ``{weatherData, projectData}`` and
        ``{weatherData}``. An empty object counts as absent.

        Raises:
            InputValidationError: Any other combination, or a shape missing
                the fields its template needs.
        """
        project, weather, project_data = body.project, body.weatherData, body.projectData
        clean = self._sanitize_input

        if project and not weather and not project_data:
            if not project.get("name") or not project.get("description"):
                raise InputValidationError(
                    "Project name and description are required for project-specific insight"
                )
            return (
                f"Write a short, enthusiastic, and informative summary (1-3 sentences) "
                f'about the open-source project "{clean(project["name"], 200)}". '
                f'Mention its purpose: "{clean(project["description"])}". '
                f"Include details like language ({clean(project.get('language') or 'Not specified', 50)}) "
                f"and star count ({project.get('stargazers_count') or 0}). "
                f"Focus on encouraging a developer to check it out."
            )

        if weather and project_data and not project:
            if not weather.get("weather") or not project_data.get("name"):
                raise InputValidationError(
                    "Required weather and project data fields are missing for global insight"
                )
            description, temp, city = self._weather_fields(weather)
            return (
                f"Given the weather is {clean(description, 100)} at {temp}°C in "
                f"{clean(city, 100)} and a highlighted project is "
                f"{clean(project_data['name'], 200)}: "
                f"{clean(project_data.get('description') or '')}, write a short, witty, "
                f"and encouraging message (1-3 sentences) for a developer seeing this "
                f"information."
            )

        if weather and not project_data and not project:
            if not weather.get("weather") or not weather.get("name"):
                raise InputValidationError(
                    "Required weather data fields are missing for weather-only insight"
                )
            description, temp, city = self._weather_fields(weather)
            return (
                f"The current weather in {clean(city, 100)} is {clean(description, 100)} "
                f"with a temperature of {temp}°C. Write a short, creative, and "
                f"encouraging message (1-3 sentences) for a developer, perhaps "
                f"suggesting an indoor coding activity or enjoying the weather."
            )

        raise InputValidationError(
            "Invalid request body. Provide {project}, {weatherData, projectData}, "
            "or just {weatherData}."
        )

    def build_question_prompt(self, question: str, repo_name: str | None = None) -> str:
        question = self._sanitize_input(question)
        if repo_name:
            return (
                f'I want information about the GitHub repository '
                f'"{self._sanitize_input(repo_name, 200)}".\n'
                f'My question is: "{question}"\n\n'
                f"{CONCISE_ANSWER_RULES}\n\n"
                f"If you don't have specific information about this repository, just "
                f"state that briefly and provide a very short general response."
            )
        return (
            f'I have a question about GitHub repositories: "{question}"\n\n'
            f"{CONCISE_ANSWER_RULES}"
        )

    # ── Operations ────────────────────────────────────────────────────

    async def generate_insight(self, body: InsightRequest) -> str:
        prompt = self.build_insight_prompt(body)
        logger.info(f"[{self.provider_name}] Generating insight")
        logger.debug(f"[{self.provider_name}] Prompt: {prompt}")
        return await self._generate(prompt, *INSIGHT_SAMPLING)

    async def answer_question(self, question: str | None, repo_name: str | None = None) -> str:
        if not question or not question.strip():
            raise InputValidationError("Missing question", "A question is required")
        prompt = self.build_question_prompt(question, repo_name)
        logger.info(f"[{self.provider_name}] Answering question (repo={repo_name or '-'})")
        text = await self._generate(prompt, *QUESTION_SAMPLING)
        return strip_markdown_emphasis(text)


# ═══════════════════════════════════════════════════════════════════════
# Provider: Gemini
# ═══════════════════════════════════════════════════════════════════════

class GeminiInsightService(AIInsightService):
    """Google Gemini through the ``google-genai`` SDK.

    The SDK client is built on first use so a missing key only fails the
    requests that need it.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model_name: str = "gemini-1.5-flash",
        client: Any = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._model_name = model_name
        self._client = client

    @property
    def provider_name(self) -> str:
        return "Gemini"

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                logger.error("[Gemini] API key is missing")
                raise ConfigurationError(
                    "Server configuration error", "AI API key not configured."
                )
            http_options = None
            if self._base_url:
                http_options = types.HttpOptions(base_url=self._base_url)
            self._client = genai.Client(api_key=self._api_key, http_options=http_options)
            logger.info(f"[AI] Gemini ready: {self._model_name}")
        return self._client

    async def _generate(self, prompt: str, temperature: float, max_tokens: int) -> str:
        client = self._get_client()
        try:
            resp = await client.aio.models.generate_content(
                model=self._model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )
        except genai_errors.APIError as e:
            logger.warning(f"[Gemini] Error {e.code}: {e.message}")
            raise error_for_status(
                e.code or 500, "Failed to communicate with AI service", e.message
            ) from e
        except httpx.TransportError as e:
            logger.warning(f"[Gemini] No response: {type(e).__name__}")
            raise UpstreamNetworkError(
                "Failed to communicate with AI service", str(e)
            ) from e
        return extract_text(resp)


def create_insight_service(
    api_key: str | None,
    base_url: str | None = None,
    model_name: str = "gemini-1.5-flash",
) -> AIInsightService:
    return GeminiInsightService(api_key=api_key, base_url=base_url, model_name=model_name)
