"""Identity verification domain service."""

import asyncio
import math
import time
from collections.abc import Awaitable, Callable

import logfire
from pydantic import ValidationError as PydanticValidationError

from onboard.config import VerificationSettings
from onboard.domain.error import (
    IdentityNotFoundError,
    MalformedProfileError,
    ProviderTransientError,
    VerificationUnavailableError,
)
from onboard.domain.model.identity import IdentitySnapshot
from onboard.domain.value import GitHubHandle

from .base import Service


class IdentityClient:
    """Generic interface for external identity sources."""

    async def fetch_snapshot(self, handle: str) -> IdentitySnapshot:
        """Fetch profile and activity counts for a handle.

        Args:
            handle: Normalized (lowercase) handle

        Returns:
            Flattened snapshot of the account

        Raises:
            IdentityNotFoundError: If the source has no such account
            ProviderTransientError: On rate limits, 5xx and network failures
            MalformedProfileError: If the response has an unexpected shape
        """
        raise NotImplementedError


class IdentityVerifier(Service):
    """Verifies GitHub handles with caching, retry and backoff.

    Transient failures are retried here and nowhere else; callers only
    ever see a snapshot, IdentityNotFoundError or
    VerificationUnavailableError.
    """

    def __init__(
        self,
        client: IdentityClient,
        settings: VerificationSettings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize identity verifier.

        Args:
            client: Identity source client
            settings: Verification configuration
            sleep: Awaitable used between retries
            clock: Monotonic clock for cache expiry
        """
        self.client = client
        self.settings = settings
        self._sleep = sleep
        self._clock = clock
        self._cache: dict[str, tuple[float, IdentitySnapshot]] = {}

    async def verify(self, handle: str) -> IdentitySnapshot:
        """Verify a handle and return its snapshot.

        Args:
            handle: GitHub username, optionally with ``@`` or a profile URL

        Returns:
            Cached or freshly fetched snapshot

        Raises:
            IdentityNotFoundError: If no such account exists
            VerificationUnavailableError: If the source stays unavailable
                after all attempts, or answers with an unexpected shape
        """
        try:
            normalized = GitHubHandle(handle).root
        except PydanticValidationError:
            raise IdentityNotFoundError(handle) from None

        with logfire.span("identity_verifier.verify", handle=normalized):
            cached = self._cache_get(normalized)
            if cached is not None:
                logfire.info("Identity cache hit", handle=normalized)
                return cached

            snapshot = await self._fetch_with_retry(normalized)
            snapshot = snapshot.model_copy(
                update={"version": self.settings.snapshot_version}
            )
            self._cache_put(normalized, snapshot)
            logfire.info(
                "Identity verified",
                handle=normalized,
                public_repos=snapshot.public_repos,
                followers=snapshot.followers,
                total_stars=snapshot.total_stars,
            )
            return snapshot

    def invalidate(self, handle: str) -> None:
        """Drop a cached snapshot."""
        self._cache.pop(handle.strip().lstrip("@").lower(), None)

    def _cache_get(self, handle: str) -> IdentitySnapshot | None:
        entry = self._cache.get(handle)
        if entry is None:
            return None
        expires_at, snapshot = entry
        if expires_at <= self._clock():
            del self._cache[handle]
            return None
        return snapshot

    def _cache_put(self, handle: str, snapshot: IdentitySnapshot) -> None:
        """Store a snapshot, pruning expired entries and bounding the size."""
        now = self._clock()
        for key in [k for k, (expires_at, _) in self._cache.items() if expires_at <= now]:
            del self._cache[key]
        self._cache.pop(handle, None)
        while self._cache and len(self._cache) >= max(1, self.settings.cache_max_entries):
            del self._cache[next(iter(self._cache))]
        self._cache[handle] = (now + self.settings.cache_ttl_seconds, snapshot)

    async def _fetch_with_retry(self, handle: str) -> IdentitySnapshot:
        max_attempts = max(1, self.settings.max_attempts)
        last_error: ProviderTransientError | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                return await self.client.fetch_snapshot(handle)
            except IdentityNotFoundError:
                logfire.info("Identity not found", handle=handle)
                raise
            except MalformedProfileError as e:
                logfire.error("Malformed identity response", handle=handle, error=str(e))
                raise VerificationUnavailableError(
                    handle, self.settings.cooldown_seconds
                ) from e
            except ProviderTransientError as e:
                last_error = e
                if attempt == max_attempts:
                    break

                retry_after = e.retry_after or 0.0
                # Waiting less than the provider asked for only burns an attempt
                if retry_after > self.settings.backoff_max_seconds:
                    logfire.warn(
                        "Identity provider asked to wait beyond backoff cap",
                        handle=handle,
                        retry_after=retry_after,
                    )
                    break

                delay = self._backoff_delay(attempt - 1, retry_after)
                logfire.warn(
                    "Identity provider unavailable, retrying",
                    handle=handle,
                    attempt=attempt,
                    delay=delay,
                    error=str(e),
                )
                await self._sleep(delay)

        cooldown = self.settings.cooldown_seconds
        if last_error is not None and last_error.retry_after:
            cooldown = max(cooldown, math.ceil(last_error.retry_after))
        logfire.error(
            "Identity verification unavailable",
            handle=handle,
            attempts=max_attempts,
            cooldown=cooldown,
        )
        raise VerificationUnavailableError(handle, cooldown) from last_error

    def _backoff_delay(self, retry: int, retry_after: float) -> float:
        """Exponential delay for the given retry, never below Retry-After."""
        delay = self.settings.backoff_base_seconds * (2**retry)
        delay = max(delay, retry_after)
        return min(delay, self.settings.backoff_max_seconds)
