"""GitHub infrastructure providers."""

from dishka import Scope, provide

from onboard.adapter.github import GitHubClient, RealGitHubClient
from onboard.config import GitHubSettings
from onboard.util.di.base import ProviderBase
from onboard.util.observability import instrument_httpx


class GitHubProvider(ProviderBase):
    """GitHub component base."""

    __mock_component__ = "github"


class ProdGitHubProvider(GitHubProvider):
    """Production GitHub provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_github_client(self, settings: GitHubSettings) -> GitHubClient:
        """Provide GitHub client.

        Unauthenticated clients work but are limited to 60 requests per
        hour and report zero contributions.
        """
        instrument_httpx()
        return RealGitHubClient(settings=settings)
