"""PostgreSQL repository implementations."""

from onboard.persistence.repository.invitation import PostgresInvitationRepository
from onboard.persistence.repository.member import PostgresMemberRepository
from onboard.persistence.repository.unit_of_work import (
    SqlAlchemyUnitOfWork,
    SqlAlchemyUnitOfWorkFactory,
)

__all__ = [
    "PostgresInvitationRepository",
    "PostgresMemberRepository",
    "SqlAlchemyUnitOfWork",
    "SqlAlchemyUnitOfWorkFactory",
]
