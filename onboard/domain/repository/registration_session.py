"""Registration session store interface."""

from abc import ABC, abstractmethod
from datetime import datetime

from onboard.domain.model.registration import RegistrationSession
from onboard.domain.value import SessionId


class RegistrationSessionStore(ABC):
    """Ephemeral storage for registration sessions.

    No durability is required: a lost session only means the user starts
    over. Implementations must not hide expired sessions from ``get``;
    the state machine decides what an expired session turns into.
    """

    @abstractmethod
    async def get(self, session_id: SessionId) -> RegistrationSession | None:
        pass

    @abstractmethod
    async def find_active_by_actor(self, actor_id: str) -> RegistrationSession | None:
        """Find the actor's non-terminal session, if any."""
        pass

    @abstractmethod
    async def save(self, session: RegistrationSession) -> None:
        pass

    @abstractmethod
    async def delete(self, session_id: SessionId) -> None:
        pass

    @abstractmethod
    async def find_expired(self, now: datetime) -> list[RegistrationSession]:
        """Sessions whose expires_at has passed, terminal or not."""
        pass

    @abstractmethod
    async def record_start(self, actor_id: str, at: datetime) -> None:
        """Record a StartRegistration call for rate limiting."""
        pass

    @abstractmethod
    async def count_starts_since(self, actor_id: str, since: datetime) -> int:
        pass
