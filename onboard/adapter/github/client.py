"""GitHub identity client implementation.

Reads a user's public profile and activity counts:

- ``GET /users/{handle}`` for repositories, followers and account data
- ``GET /users/{handle}/repos`` (paginated) to sum stargazers
- the GraphQL contribution calendar for contributions in the last year,
  only when a token is configured since GraphQL requires authentication
"""

import time
import zlib
from datetime import datetime, timezone

import httpx
import logfire
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from onboard.adapter.error import ProviderResponseError
from onboard.config import GitHubSettings
from onboard.domain.error import IdentityNotFoundError, ProviderTransientError
from onboard.domain.model import IdentitySnapshot
from onboard.domain.service.identity_verifier import IdentityClient

REPOS_PER_PAGE = 100

CONTRIBUTIONS_QUERY = """
query($login: String!) {
  user(login: $login) {
    contributionsCollection {
      contributionCalendar {
        totalContributions
      }
    }
  }
}
"""


class GitHubUserResponse(BaseModel):
    """Subset of the REST user payload we rely on."""

    model_config = ConfigDict(extra="ignore")

    login: str
    id: int
    name: str | None = None
    html_url: str | None = None
    public_repos: int = Field(ge=0)
    followers: int = Field(ge=0)
    following: int = Field(default=0, ge=0)
    created_at: datetime | None = None


class GitHubRepoResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    stargazers_count: int = Field(default=0, ge=0)


class ContributionCalendar(BaseModel):
    total_contributions: int = Field(alias="totalContributions", ge=0)


class ContributionsCollection(BaseModel):
    contribution_calendar: ContributionCalendar = Field(alias="contributionCalendar")


class GraphQLUser(BaseModel):
    contributions_collection: ContributionsCollection = Field(
        alias="contributionsCollection"
    )


class GraphQLData(BaseModel):
    user: GraphQLUser | None = None


class GraphQLResponse(BaseModel):
    data: GraphQLData | None = None
    errors: list[dict] | None = None


class GitHubClient(IdentityClient):
    """Base class for GitHub clients.

    Provides type distinction for dependency injection.
    """

    pass


class RealGitHubClient(GitHubClient):
    """GitHub REST and GraphQL client built on httpx."""

    def __init__(
        self,
        settings: GitHubSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            settings: GitHub API configuration
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.settings = settings
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self.settings.user_agent,
        }
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    async def fetch_snapshot(self, handle: str) -> IdentitySnapshot:
        """Fetch profile and activity counts for a GitHub user.

        Args:
            handle: Lowercase GitHub username

        Returns:
            Snapshot with counts only

        Raises:
            IdentityNotFoundError: On 404
            ProviderTransientError: On rate limits, 5xx, timeouts and network errors
            ProviderResponseError: On any other status or an unexpected payload
        """
        with logfire.span("github_client.fetch_snapshot", handle=handle):
            try:
                async with httpx.AsyncClient(
                    base_url=self.settings.api_url,
                    headers=self._headers(),
                    timeout=self.settings.timeout_seconds,
                    transport=self.transport,
                ) as client:
                    user = await self._get_user(client, handle)
                    total_stars = await self._sum_stars(client, handle)
                    contributions = (
                        await self._get_contributions(client, handle)
                        if self.settings.token
                        else 0
                    )
            except httpx.TransportError as e:
                logfire.warn("GitHub request failed", handle=handle, error=str(e))
                raise ProviderTransientError(f"GitHub request failed: {e}") from e

            logfire.info(
                "GitHub profile fetched",
                handle=handle,
                public_repos=user.public_repos,
                followers=user.followers,
                total_stars=total_stars,
                contributions=contributions,
            )
            return IdentitySnapshot(
                handle=user.login.lower(),
                provider_user_id=user.id,
                display_name=user.name,
                html_url=user.html_url,
                public_repos=user.public_repos,
                followers=user.followers,
                following=user.following,
                total_stars=total_stars,
                contributions_last_year=contributions,
                account_created_at=user.created_at,
                fetched_at=datetime.now(timezone.utc),
            )

    async def _get_user(self, client: httpx.AsyncClient, handle: str) -> GitHubUserResponse:
        response = await client.get(f"/users/{handle}")
        if response.status_code == 404:
            raise IdentityNotFoundError(handle)
        self._raise_for_status(response)
        return self._parse(GitHubUserResponse, response)

    async def _sum_stars(self, client: httpx.AsyncClient, handle: str) -> int:
        """Sum stargazers over the user's own repositories.

        Bounded by ``max_repo_pages``; accounts with more repositories
        than that are undercounted.
        """
        total = 0
        for page in range(1, self.settings.max_repo_pages + 1):
            response = await client.get(
                f"/users/{handle}/repos",
                params={"type": "owner", "per_page": REPOS_PER_PAGE, "page": page},
            )
            self._raise_for_status(response)
            payload = self._json(response)
            if not isinstance(payload, list):
                raise ProviderResponseError(
                    "github", "repository list is not an array", response.status_code
                )
            try:
                repos = [GitHubRepoResponse.model_validate(item) for item in payload]
            except PydanticValidationError as e:
                raise ProviderResponseError(
                    "github", f"unexpected repository payload: {e.error_count()} errors"
                ) from e
            total += sum(repo.stargazers_count for repo in repos)
            if len(repos) < REPOS_PER_PAGE:
                break
        return total

    async def _get_contributions(self, client: httpx.AsyncClient, handle: str) -> int:
        response = await client.post(
            self.settings.graphql_url,
            json={"query": CONTRIBUTIONS_QUERY, "variables": {"login": handle}},
        )
        self._raise_for_status(response)
        result = self._parse(GraphQLResponse, response)
        if result.errors:
            logfire.warn(
                "GitHub GraphQL returned errors",
                handle=handle,
                errors=[error.get("message") for error in result.errors],
            )
        if result.data is None or result.data.user is None:
            return 0
        calendar = result.data.user.contributions_collection.contribution_calendar
        return calendar.total_contributions

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map non-2xx responses onto the verifier's error classes."""
        status = response.status_code
        if 200 <= status < 300:
            return

        rate_limited = status == 429 or (
            status == 403
            and (
                response.headers.get("x-ratelimit-remaining") == "0"
                or "retry-after" in response.headers
            )
        )
        if rate_limited:
            retry_after = _retry_after(response)
            logfire.warn(
                "GitHub rate limit hit",
                status_code=status,
                retry_after=retry_after,
            )
            raise ProviderTransientError(
                f"GitHub rate limit exceeded ({status})", retry_after=retry_after
            )

        if status >= 500:
            logfire.warn("GitHub server error", status_code=status)
            raise ProviderTransientError(
                f"GitHub server error ({status})", retry_after=_retry_after(response)
            )

        logfire.error(
            "Unexpected GitHub response",
            status_code=status,
            body=response.text[:200],
        )
        raise ProviderResponseError("github", f"unexpected status {status}", status)

    @staticmethod
    def _json(response: httpx.Response) -> object:
        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseError(
                "github", "response is not JSON", response.status_code
            ) from e

    def _parse(self, model: type[BaseModel], response: httpx.Response):
        try:
            return model.model_validate(self._json(response))
        except PydanticValidationError as e:
            raise ProviderResponseError(
                "github",
                f"unexpected {model.__name__} payload: {e.error_count()} errors",
                response.status_code,
            ) from e


def _retry_after(response: httpx.Response) -> float | None:
    """Seconds to wait, from Retry-After or the rate-limit reset timestamp."""
    value = response.headers.get("retry-after")
    if value is not None:
        try:
            return max(0.0, float(value))
        except ValueError:
            pass
    reset = response.headers.get("x-ratelimit-reset")
    if reset is not None:
        try:
            return max(0.0, float(reset) - time.time())
        except ValueError:
            pass
    return None


class MockGitHubClient(GitHubClient):
    """Mock GitHub client for testing.

    Serves deterministic snapshots without network access. ``octocat`` is
    known; every other handle is not found unless added. Queued failures
    are raised, in order, before any profile is served.
    """

    def __init__(self, profiles: dict[str, IdentitySnapshot] | None = None):
        """Initialize mock client with optional extra profiles."""
        # Don't call super().__init__() - mock doesn't need real config
        self.profiles: dict[str, IdentitySnapshot] = {
            "octocat": mock_snapshot(
                "octocat",
                public_repos=15,
                followers=50,
                total_stars=200,
                contributions_last_year=500,
            )
        }
        self.profiles.update(profiles or {})
        self.failures: list[Exception] = []
        self.calls: list[str] = []

    def add_profile(self, snapshot: IdentitySnapshot) -> None:
        self.profiles[snapshot.handle] = snapshot

    def fail_with(self, *errors: Exception) -> None:
        """Queue errors to raise on the next calls."""
        self.failures.extend(errors)

    async def fetch_snapshot(self, handle: str) -> IdentitySnapshot:
        self.calls.append(handle)
        if self.failures:
            raise self.failures.pop(0)
        snapshot = self.profiles.get(handle)
        if snapshot is None:
            raise IdentityNotFoundError(handle)
        return snapshot.model_copy(update={"fetched_at": datetime.now(timezone.utc)})


def mock_snapshot(
    handle: str,
    public_repos: int = 0,
    followers: int = 0,
    total_stars: int = 0,
    contributions_last_year: int = 0,
) -> IdentitySnapshot:
    """Build a snapshot for mocks and tests."""
    return IdentitySnapshot(
        handle=handle,
        provider_user_id=zlib.crc32(handle.encode()),
        display_name=handle.title(),
        html_url=f"https://github.com/{handle}",
        public_repos=public_repos,
        followers=followers,
        total_stars=total_stars,
        contributions_last_year=contributions_last_year,
        fetched_at=datetime.now(timezone.utc),
    )
