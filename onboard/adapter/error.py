"""Adapter layer errors.

Adapters raise domain errors for everything the domain must react to.
These classes add provider context on top, so a malformed GitHub answer
is both a ``ProviderResponseError`` here and a ``MalformedProfileError``
to the identity verifier.
"""

from onboard.domain.error import MalformedProfileError


class AdapterError(Exception):
    """Base adapter error."""


class ProviderError(AdapterError):
    """An external provider failed in a way the adapter cannot recover from."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class ProviderResponseError(ProviderError, MalformedProfileError):
    """Unexpected status code or payload shape from an identity provider."""
