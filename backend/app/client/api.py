"""Async client for the dashboard's own ``/api`` routes."""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class DashboardApiError(Exception):
    """Non-2xx answer from the dashboard API.

    The message is the envelope's ``details``, else its ``error``, else a
    generic ``Server error <status>``.
    """

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DashboardApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        response = await self._client.request(method, path, params=params, json=json)
        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = (
            body.get("details")
            or body.get("error")
            or f"Server error {response.status_code}"
        )
        logger.info(f"[CLIENT] {method} {path} -> {response.status_code}: {message}")
        raise DashboardApiError(message, response.status_code)

    async def get_weather(self, city: str, units: str = "metric") -> dict:
        return await self._request("GET", "/api/weather", {"city": city, "units": units})

    async def get_projects(self, params: dict[str, Any]) -> list[dict]:
        data = await self._request("GET", "/api/github", params)
        return data if isinstance(data, list) else [data]

    async def get_repository(self, full_name: str) -> dict:
        return await self._request("GET", "/api/github", {"repo": full_name})

    async def search(self, query: str) -> list[dict]:
        data = await self._request("GET", "/api/github/search", {"q": query})
        return data.get("repositories", [])

    async def get_issues(self, full_name: str) -> list[dict]:
        data = await self._request("GET", "/api/github/issues", {"repo": full_name})
        return data.get("issues", [])

    async def get_insight(self, body: dict[str, Any]) -> dict:
        return await self._request("POST", "/api/gemini", json=body)

    async def ask_question(self, question: str, repo_name: str | None = None) -> dict:
        return await self._request(
            "POST",
            "/api/gemini/question",
            json={"question": question, "repoName": repo_name},
        )
