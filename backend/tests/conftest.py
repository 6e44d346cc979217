"""Shared fixtures: fake clock, stubbed upstreams and a wired-up app."""

import pytest
from fastapi.testclient import TestClient

from app.api import Services
from app.config import Settings
from app.main import create_app
from app.services import (
    CacheTTL,
    GeminiInsightService,
    GitHubService,
    InMemoryCacheService,
    OpenWeatherService,
    ProjectSelector,
)

from stubs import (
    CURRENT_WEATHER,
    FakeClock,
    FakeGeminiClient,
    UpstreamStub,
    forecast_payload,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def weather_upstream() -> UpstreamStub:
    stub = UpstreamStub()
    stub.add("/weather", json=CURRENT_WEATHER)
    stub.add("/forecast", json=forecast_payload(offset=3600))
    return stub


@pytest.fixture
def github_upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def gemini_client() -> FakeGeminiClient:
    return FakeGeminiClient()


@pytest.fixture
def services(clock, weather_upstream, github_upstream, gemini_client) -> Services:
    settings = Settings(
        openweathermap_api_key="test-weather-key",
        gemini_api_key="test-gemini-key",
    )
    cache = InMemoryCacheService(clock=clock)
    ttl = CacheTTL()
    github = GitHubService(transport=github_upstream.transport)
    return Services(
        settings=settings,
        cache=cache,
        ttl=ttl,
        weather=OpenWeatherService(
            api_key="test-weather-key", transport=weather_upstream.transport
        ),
        github=github,
        selector=ProjectSelector(github, cache, ttl),
        insight=GeminiInsightService(client=gemini_client),
    )


@pytest.fixture
def client(services):
    with TestClient(create_app(services=services)) as test_client:
        yield test_client
