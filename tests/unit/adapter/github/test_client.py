"""Unit tests for the GitHub client, served by httpx.MockTransport."""

import httpx
import pytest

from onboard.adapter.error import ProviderResponseError
from onboard.adapter.github import RealGitHubClient
from onboard.config import GitHubSettings
from onboard.domain.error import (
    IdentityNotFoundError,
    MalformedProfileError,
    ProviderTransientError,
)

USER_PAYLOAD = {
    "login": "OctoCat",
    "id": 583231,
    "name": "The Octocat",
    "html_url": "https://github.com/octocat",
    "public_repos": 15,
    "followers": 50,
    "following": 9,
    "created_at": "2011-01-25T18:44:36Z",
}


def build_client(handler, token: str | None = None) -> RealGitHubClient:
    return RealGitHubClient(
        settings=GitHubSettings(token=token, max_repo_pages=2),
        transport=httpx.MockTransport(handler),
    )


def github_api(
    repos_pages: list[list[dict]] | None = None,
    contributions: int = 500,
    user_status: int = 200,
    requests: list[httpx.Request] | None = None,
):
    """Handler answering the endpoints the client calls."""
    pages = repos_pages if repos_pages is not None else [[{"stargazers_count": 200}]]

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        path = request.url.path
        if path == "/users/octocat":
            if user_status != 200:
                return httpx.Response(user_status, json={"message": "nope"})
            return httpx.Response(200, json=USER_PAYLOAD)
        if path == "/users/octocat/repos":
            page = int(request.url.params["page"])
            return httpx.Response(200, json=pages[page - 1] if page <= len(pages) else [])
        if path == "/graphql":
            return httpx.Response(
                200,
                json={
                    "data": {
                        "user": {
                            "contributionsCollection": {
                                "contributionCalendar": {
                                    "totalContributions": contributions
                                }
                            }
                        }
                    }
                },
            )
        return httpx.Response(404)

    return handler


class TestFetchSnapshot:
    """Tests for fetch_snapshot method."""

    @pytest.mark.asyncio
    async def test_builds_snapshot_from_rest_and_graphql(self):
        client = build_client(github_api(), token="ghp_test")

        snapshot = await client.fetch_snapshot("octocat")

        assert snapshot.handle == "octocat"
        assert snapshot.provider_user_id == 583231
        assert snapshot.public_repos == 15
        assert snapshot.followers == 50
        assert snapshot.following == 9
        assert snapshot.total_stars == 200
        assert snapshot.contributions_last_year == 500

    @pytest.mark.asyncio
    async def test_without_token_skips_graphql(self):
        requests: list[httpx.Request] = []
        client = build_client(github_api(requests=requests))

        snapshot = await client.fetch_snapshot("octocat")

        assert snapshot.contributions_last_year == 0
        assert all(r.url.path != "/graphql" for r in requests)
        assert all("authorization" not in r.headers for r in requests)

    @pytest.mark.asyncio
    async def test_token_sent_as_bearer(self):
        requests: list[httpx.Request] = []
        client = build_client(github_api(requests=requests), token="ghp_test")

        await client.fetch_snapshot("octocat")

        assert requests[0].headers["authorization"] == "Bearer ghp_test"

    @pytest.mark.asyncio
    async def test_stars_summed_across_pages(self):
        full_page = [{"stargazers_count": 1}] * 100
        client = build_client(github_api(repos_pages=[full_page, [{"stargazers_count": 7}]]))

        snapshot = await client.fetch_snapshot("octocat")

        assert snapshot.total_stars == 107

    @pytest.mark.asyncio
    async def test_star_pages_are_bounded(self):
        full_page = [{"stargazers_count": 1}] * 100
        client = build_client(github_api(repos_pages=[full_page, full_page, full_page]))

        snapshot = await client.fetch_snapshot("octocat")

        # max_repo_pages=2
        assert snapshot.total_stars == 200


class TestErrorMapping:
    """Tests for status code handling."""

    @pytest.mark.asyncio
    async def test_404_is_identity_not_found(self):
        client = build_client(github_api(user_status=404))

        with pytest.raises(IdentityNotFoundError):
            await client.fetch_snapshot("octocat")

    @pytest.mark.asyncio
    async def test_429_is_transient_with_retry_after(self):
        def handler(request):
            return httpx.Response(429, headers={"Retry-After": "30"})

        with pytest.raises(ProviderTransientError) as exc_info:
            await build_client(handler).fetch_snapshot("octocat")

        assert exc_info.value.retry_after == 30.0

    @pytest.mark.asyncio
    async def test_403_with_exhausted_quota_is_transient(self):
        def handler(request):
            return httpx.Response(403, headers={"X-RateLimit-Remaining": "0"})

        with pytest.raises(ProviderTransientError):
            await build_client(handler).fetch_snapshot("octocat")

    @pytest.mark.asyncio
    async def test_5xx_is_transient(self):
        with pytest.raises(ProviderTransientError):
            await build_client(github_api(user_status=502)).fetch_snapshot("octocat")

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderTransientError):
            await build_client(handler).fetch_snapshot("octocat")

    @pytest.mark.asyncio
    async def test_unexpected_status_is_malformed(self):
        with pytest.raises(ProviderResponseError) as exc_info:
            await build_client(github_api(user_status=418)).fetch_snapshot("octocat")

        assert isinstance(exc_info.value, MalformedProfileError)
        assert exc_info.value.status_code == 418

    @pytest.mark.asyncio
    async def test_unexpected_payload_is_malformed(self):
        def handler(request):
            return httpx.Response(200, json={"login": "octocat"})

        with pytest.raises(MalformedProfileError):
            await build_client(handler).fetch_snapshot("octocat")
