"""Unit tests for the cache-aware client fetchers and the API client."""

import httpx
import pytest

from app.client import (
    CacheDurations,
    ClientCache,
    DashboardApiClient,
    DashboardApiError,
    DashboardSession,
    DataFetcher,
    InsightFetcher,
    MemoryStorage,
    projects_fetcher,
    weather_fetcher,
)

from stubs import FakeClock


class FakeApi:
    """Records calls and answers with canned data."""

    def __init__(self, fail: Exception | None = None) -> None:
        self.calls: list[tuple] = []
        self.fail = fail

    async def _answer(self, call: tuple, value):
        self.calls.append(call)
        if self.fail is not None:
            raise self.fail
        return value

    async def get_weather(self, city, units="metric"):
        return await self._answer(("weather", city, units), {"current": {"name": city}})

    async def get_projects(self, params):
        return await self._answer(("projects", dict(params)), [{"id": 1}])

    async def get_insight(self, body):
        return await self._answer(("insight", body), {"message": "hi"})

    async def ask_question(self, question, repo_name=None):
        return await self._answer(("question", question, repo_name), {"message": "answer"})


@pytest.fixture
def cache() -> ClientCache:
    return ClientCache(MemoryStorage(), clock=FakeClock(1_700_000_000_000.0))


class TestDataFetcher:
    async def test_second_fetch_is_served_from_cache(self, cache) -> None:
        api = FakeApi()
        fetcher = weather_fetcher(api, cache, "Paris")

        await fetcher.fetch()
        data = await fetcher.fetch()

        assert data == {"current": {"name": "Paris"}}
        assert len(api.calls) == 1
        assert fetcher.duration == CacheDurations.WEATHER

    async def test_refresh_bypasses_cache(self, cache) -> None:
        api = FakeApi()
        fetcher = weather_fetcher(api, cache, "Paris")

        await fetcher.fetch()
        await fetcher.refresh()

        assert len(api.calls) == 2

    async def test_failure_sets_error_and_keeps_old_data(self, cache) -> None:
        api = FakeApi(fail=RuntimeError("boom"))
        fetcher = DataFetcher("k", lambda: api.get_weather("x"), cache, data={"stale": True})

        data = await fetcher.fetch()

        assert data == {"stale": True}
        assert fetcher.error == "boom"
        assert fetcher.is_loading is False
        assert not cache.has("k")

    async def test_blank_city_is_inert(self, cache) -> None:
        api = FakeApi()
        fetcher = weather_fetcher(api, cache, "  ")
        assert await fetcher.fetch() is None
        assert api.calls == []

    async def test_projects_key_and_params(self, cache) -> None:
        api = FakeApi()
        fetcher = projects_fetcher(api, cache, "trending", language="Go", time_filter="weekly")

        await fetcher.fetch()

        assert fetcher.key == "/api/github?filter=trending&language=Go&since=weekly"
        assert api.calls == [("projects", {"filter": "trending", "since": "weekly", "language": "Go"})]

    async def test_bookmarked_projects_are_not_fetched(self, cache) -> None:
        api = FakeApi()
        assert await projects_fetcher(api, cache, "bookmarked").fetch() is None
        assert api.calls == []


class TestInsightFetcher:
    async def test_project_mode(self, cache) -> None:
        api = FakeApi()
        project = {"full_name": "o/r", "name": "r", "description": "d"}
        fetcher = InsightFetcher(api, cache, project=project)

        await fetcher.fetch()

        assert fetcher.key == "/api/gemini/project?id=o/r"
        assert api.calls == [("insight", {"project": project})]
        assert fetcher.duration == CacheDurations.AI_INSIGHT

    async def test_weather_mode(self, cache) -> None:
        api = FakeApi()
        fetcher = InsightFetcher(api, cache, weather={"current": {"name": "Oslo"}})

        await fetcher.fetch()

        assert fetcher.key == "/api/gemini/weather?id=Oslo"
        assert api.calls == [("insight", {"weatherData": {"name": "Oslo"}})]

    async def test_nothing_to_describe(self, cache) -> None:
        api = FakeApi()
        assert await InsightFetcher(api, cache).fetch() is None
        assert api.calls == []

    async def test_incomplete_project_reports_error(self, cache) -> None:
        api = FakeApi()
        fetcher = InsightFetcher(api, cache, project={"full_name": "o/r", "name": "r"})

        await fetcher.fetch()

        assert "description are required" in fetcher.error
        assert api.calls == []

    async def test_questions_are_not_cached(self, cache) -> None:
        api = FakeApi()
        fetcher = InsightFetcher(api, cache, project={"full_name": "o/r", "name": "r", "description": "d"})

        await fetcher.ask_question("How?")
        await fetcher.ask_question("How?")

        assert api.calls == [("question", "How?", "o/r")] * 2
        assert fetcher.data == {"message": "answer"}


class TestDashboardApiClient:
    def make_client(self, status: int, body) -> DashboardApiClient:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json=body)

        return DashboardApiClient(base_url="http://test", transport=httpx.MockTransport(handler))

    async def test_error_prefers_details(self) -> None:
        api = self.make_client(404, {"error": "City not found", "details": "No Atlantis"})
        with pytest.raises(DashboardApiError) as exc_info:
            await api.get_weather("Atlantis")
        assert exc_info.value.message == "No Atlantis"
        assert exc_info.value.status_code == 404
        await api.close()

    async def test_error_falls_back_to_error_then_status(self) -> None:
        api = self.make_client(500, {"error": "Boom"})
        with pytest.raises(DashboardApiError, match="Boom"):
            await api.get_weather("x")

        api = self.make_client(502, ["unexpected"])
        with pytest.raises(DashboardApiError, match="Server error 502"):
            await api.get_weather("x")

    async def test_single_project_is_wrapped(self) -> None:
        api = self.make_client(200, {"id": 1})
        assert await api.get_projects({"repo": "o/r"}) == [{"id": 1}]


class TestDashboardSession:
    async def test_open_sweeps_expired_entries_once(self) -> None:
        clock = FakeClock(1_700_000_000_000.0)
        storage = MemoryStorage()
        ClientCache(storage, clock=clock).set("old", 1, 10)
        clock.advance(100)

        cache = ClientCache(storage, clock=clock)
        async with DashboardSession(storage, api=DashboardApiClient(), cache=cache) as session:
            assert session.cache is cache
            assert "old" not in storage.get_item("devforecast_api_cache")
            assert session.preferences.get_bookmarked_projects() == []
