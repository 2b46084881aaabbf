"""Repository interfaces for the onboarding domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from onboard.domain.repository.invitation import InvitationRepository
from onboard.domain.repository.member import MemberFilter, MemberRepository
from onboard.domain.repository.registration_session import RegistrationSessionStore
from onboard.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "InvitationRepository",
    "MemberFilter",
    "MemberRepository",
    "RegistrationSessionStore",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
