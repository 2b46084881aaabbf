"""GitHub identity adapter."""

from .client import GitHubClient, MockGitHubClient, RealGitHubClient

__all__ = ["GitHubClient", "RealGitHubClient", "MockGitHubClient"]
