"""In-memory repository implementations for testing."""

from .invitation import InMemoryInvitationRepository
from .member import InMemoryMemberRepository
from .registration_session import InMemoryRegistrationSessionStore
from .store import InMemoryStore, Journal
from .unit_of_work import InMemoryUnitOfWork, InMemoryUnitOfWorkFactory

__all__ = [
    "InMemoryInvitationRepository",
    "InMemoryMemberRepository",
    "InMemoryRegistrationSessionStore",
    "InMemoryStore",
    "InMemoryUnitOfWork",
    "InMemoryUnitOfWorkFactory",
    "Journal",
]
