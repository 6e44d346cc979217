"""Unit tests for the GitHub client and its normalization helpers."""

from datetime import date

import httpx
import pytest

from app.models import (
    TimeWindow,
    UpstreamError,
    UpstreamNetworkError,
    UpstreamNotFoundError,
)
from app.services.github import (
    GitHubService,
    build_trending_query,
    is_beginner_friendly,
    normalize_issue,
    normalize_project,
)

from stubs import UpstreamStub, issue_payload, repo_payload


class TestNormalizeProject:
    def test_nulls_become_empty_values(self) -> None:
        project = normalize_project(
            repo_payload(
                "o/r", description=None, homepage=None, language=None,
                topics=None, license=None,
            )
        )
        assert project.description == ""
        assert project.homepage == ""
        assert project.language == ""
        assert project.topics == []
        assert project.license is None

    def test_flattens_owner_avatar_and_license(self) -> None:
        project = normalize_project(repo_payload("octo/cat", repo_id=7))
        assert project.id == 7
        assert project.full_name == "octo/cat"
        assert project.avatar_url == "https://avatars.example/octo.png"
        assert project.license.name == "MIT License"

    def test_dump_omits_missing_optionals(self) -> None:
        dumped = normalize_project(repo_payload("o/r", license=None)).model_dump(exclude_none=True)
        assert "license" not in dumped
        assert "is_bookmarked" not in dumped


class TestIssues:
    def test_normalize_issue_labels(self) -> None:
        issue = normalize_issue(issue_payload(3, ["bug", "good first issue"]))
        assert [label.name for label in issue.labels] == ["bug", "good first issue"]
        assert issue.labels[0].color == "7057ff"

    @pytest.mark.parametrize("label", ["good first issue", "Help Wanted", "easy", "first-timers-only"])
    def test_beginner_labels(self, label) -> None:
        assert is_beginner_friendly(normalize_issue(issue_payload(1, [label])))

    def test_other_labels_are_not_beginner(self) -> None:
        assert not is_beginner_friendly(normalize_issue(issue_payload(1, ["bug", "p1"])))


class TestTrendingQuery:
    def test_daily(self) -> None:
        assert build_trending_query(TimeWindow.DAILY, today=date(2024, 5, 8)) == "created:>2024-05-07"

    def test_monthly_with_language_and_topic(self) -> None:
        query = build_trending_query(TimeWindow.MONTHLY, "Go", "cli", today=date(2024, 5, 8))
        assert query == "created:>2024-04-08 language:Go topic:cli"


class TestGitHubService:
    def test_headers_anonymous(self) -> None:
        service = GitHubService()
        assert not service.is_authenticated
        assert "Authorization" not in service.headers()

    def test_headers_with_token(self) -> None:
        service = GitHubService(token="ghp_x")
        assert service.is_authenticated
        assert service.headers()["Authorization"] == "Bearer ghp_x"

    async def test_search_sorts_by_stars_and_caps_page_size(self) -> None:
        stub = UpstreamStub()
        stub.add("/search/repositories", json={"items": [repo_payload("a/b")]})
        service = GitHubService(transport=stub.transport)

        projects = await service.search("fastapi", per_page=100)

        params = stub.requests[0].url.params
        assert params["sort"] == "stars"
        assert params["order"] == "desc"
        assert params["per_page"] == "30"
        assert [p.full_name for p in projects] == ["a/b"]

    async def test_get_repository_not_found(self) -> None:
        stub = UpstreamStub()
        service = GitHubService(transport=stub.transport)
        with pytest.raises(UpstreamNotFoundError):
            await service.get_repository("ghost/missing")

    async def test_rate_limit_403(self) -> None:
        stub = UpstreamStub()
        stub.add("/repos/o/r", status=403, json={"message": "API rate limit exceeded"})
        service = GitHubService(transport=stub.transport)
        with pytest.raises(UpstreamError) as exc_info:
            await service.get_repository("o/r")
        assert exc_info.value.status_code == 403
        assert exc_info.value.details == "API rate limit exceeded"

    async def test_transport_failure(self) -> None:
        stub = UpstreamStub()
        stub.add("/repos/o/r", exc=httpx.ReadTimeout("slow"))
        service = GitHubService(transport=stub.transport)
        with pytest.raises(UpstreamNetworkError):
            await service.get_repository("o/r")

    async def test_issues_exclude_pull_requests(self) -> None:
        stub = UpstreamStub()
        stub.add("/repos/o/r/issues", json=[
            issue_payload(1, []),
            issue_payload(2, [], pull_request={"url": "x"}),
            issue_payload(3, ["bug"]),
        ])
        service = GitHubService(transport=stub.transport)

        issues = await service.get_issues("o/r")

        assert [i.number for i in issues] == [1, 3]

    async def test_beginner_issues_filtered_and_limited(self) -> None:
        stub = UpstreamStub()
        stub.add("/repos/o/r/issues", json=[
            issue_payload(n, ["good first issue"] if n % 2 else ["bug"])
            for n in range(1, 15)
        ])
        service = GitHubService(transport=stub.transport)

        issues = await service.get_beginner_issues("o/r", limit=3)

        assert [i.number for i in issues] == [1, 3, 5]

    async def test_repository_details_with_issues(self) -> None:
        stub = UpstreamStub()
        stub.add("/repos/o/r", json=repo_payload("o/r"))
        stub.add("/repos/o/r/issues", json=[issue_payload(1, ["good first issue"])])
        service = GitHubService(transport=stub.transport)

        details = await service.get_repository_details("o/r")

        assert details.full_name == "o/r"
        assert [i.number for i in details.beginner_issues] == [1]

    async def test_repository_details_survives_issue_failure(self) -> None:
        stub = UpstreamStub()
        stub.add("/repos/o/r", json=repo_payload("o/r"))
        stub.add("/repos/o/r/issues", status=403, json={"message": "rate limited"})
        service = GitHubService(transport=stub.transport)

        details = await service.get_repository_details("o/r")

        assert details.beginner_issues == []

    async def test_repository_details_propagates_repo_failure(self) -> None:
        stub = UpstreamStub()
        stub.add("/repos/o/r/issues", json=[])
        service = GitHubService(transport=stub.transport)
        with pytest.raises(UpstreamNotFoundError):
            await service.get_repository_details("o/r")


class TestFetchMany:
    async def test_partial_failure_drops_failed_items(self) -> None:
        stub = UpstreamStub()
        stub.add("/repos/a/one", json=repo_payload("a/one", repo_id=1))
        stub.add("/repos/a/two", status=500, json={"message": "boom"})
        stub.add("/repos/a/three", json=repo_payload("a/three", repo_id=3))
        service = GitHubService(transport=stub.transport)

        projects = await service.fetch_many(["a/one", "a/two", "a/three"])

        assert [p.full_name for p in projects] == ["a/one", "a/three"]

    async def test_all_failures_raise_aggregate_error(self) -> None:
        stub = UpstreamStub()
        service = GitHubService(transport=stub.transport)

        with pytest.raises(UpstreamError) as exc_info:
            await service.fetch_many(["x/1", "x/2"])

        assert exc_info.value.message == "Failed to fetch any GitHub project data"

    async def test_empty_input(self) -> None:
        assert await GitHubService().fetch_many([]) == []
