"""Upstream stubs, fake clients and payload builders used across the tests."""

from types import SimpleNamespace
from typing import Any

import httpx


class FakeClock:
    """Manually advanced clock, in seconds by default."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, amount: float) -> None:
        self.now += amount


class UpstreamStub:
    """Canned upstream responses keyed by URL path suffix, with a request log."""

    def __init__(self) -> None:
        self._routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path_suffix: str, status: int = 200, json: Any = None, exc: Exception | None = None) -> None:
        self._routes[path_suffix] = (status, json, exc)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for suffix in sorted(self._routes, key=len, reverse=True):
            if request.url.path.endswith(suffix):
                status, body, exc = self._routes[suffix]
                if exc is not None:
                    raise exc
                return httpx.Response(status, json=body)
        return httpx.Response(404, json={"message": "Not Found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, path_suffix: str) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith(path_suffix))


class FakeGeminiModels:
    def __init__(self, text: str | None = "Great day to code!", exc: Exception | None = None) -> None:
        self.text = text
        self.exc = exc
        self.calls: list[dict] = []

    async def generate_content(self, model: str, contents: str, config: Any = None) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.exc is not None:
            raise self.exc
        return gemini_response(self.text)


class FakeGeminiClient:
    """Stands in for ``google.genai.Client``; only ``aio.models`` is used."""

    def __init__(self, text: str | None = "Great day to code!", exc: Exception | None = None) -> None:
        self.models = FakeGeminiModels(text, exc)
        self.aio = SimpleNamespace(models=self.models)


def gemini_response(text: str | None) -> Any:
    part = SimpleNamespace(text=text)
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))]
    )


def repo_payload(full_name: str, repo_id: int = 1, **overrides: Any) -> dict:
    owner, name = full_name.split("/")
    payload = {
        "id": repo_id,
        "name": name,
        "full_name": full_name,
        "description": f"{name} description",
        "html_url": f"https://github.com/{full_name}",
        "stargazers_count": 1000,
        "forks_count": 100,
        "open_issues_count": 10,
        "language": "Python",
        "owner": {"avatar_url": f"https://avatars.example/{owner}.png"},
        "topics": ["python"],
        "license": {"name": "MIT License", "url": "https://api.github.com/licenses/mit"},
        "homepage": "https://example.org",
        "created_at": "2020-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    }
    payload.update(overrides)
    return payload


def issue_payload(number: int, labels: list[str], **overrides: Any) -> dict:
    payload = {
        "id": 10_000 + number,
        "number": number,
        "title": f"Issue {number}",
        "html_url": f"https://github.com/o/r/issues/{number}",
        "labels": [{"name": label, "color": "7057ff"} for label in labels],
        "created_at": "2024-02-01T00:00:00Z",
    }
    payload.update(overrides)
    return payload


CURRENT_WEATHER = {
    "name": "London",
    "coord": {"lat": 51.51, "lon": -0.13},
    "timezone": 3600,
    "weather": [{"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}],
    "main": {"temp": 14.6, "feels_like": 13.9, "humidity": 82, "pressure": 1012},
    "wind": {"speed": 4.1},
    "sys": {"country": "GB"},
}


def forecast_payload(start: int = 1_704_067_200, hours: int = 48, offset: int = 0) -> dict:
    """3-hour samples starting at ``start`` (2024-01-01T00:00Z by default)."""
    samples = []
    for i in range(hours // 3):
        samples.append({
            "dt": start + i * 3 * 3600,
            "main": {"temp": 10 + i, "temp_min": 10 + i, "temp_max": 10 + i},
            "weather": [{"description": "clear sky", "icon": "01d"}],
            "pop": 0.2,
        })
    return {"city": {"name": "London", "timezone": offset}, "list": samples}


