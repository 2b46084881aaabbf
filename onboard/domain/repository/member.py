"""Member repository interface."""

from abc import ABC, abstractmethod

from pydantic import Field

from onboard.domain.model.member import Member
from onboard.domain.value import MemberId, MemberRole, MemberStatus
from onboard.domain.value.common import ValueObject


class MemberFilter(ValueObject):
    """Directory filter options."""

    search: str | None = None  # Matches name, handle or organization
    role: MemberRole | None = None
    status: MemberStatus | None = None
    min_reputation: int | None = Field(default=None, ge=0)
    max_reputation: int | None = Field(default=None, ge=0)
    limit: int = Field(default=50, ge=1, le=200)
    offset: int = Field(default=0, ge=0)


class MemberRepository(ABC):
    """Repository for Member aggregate.

    Uniqueness of ``external_handle`` and ``transport_id`` is enforced by
    the storage layer itself; ``add`` translates violations into
    DuplicateRegistrationError.
    """

    @abstractmethod
    async def find_by_id(self, member_id: MemberId) -> Member | None:
        """Find a member by ID, including soft-deleted ones."""
        pass

    @abstractmethod
    async def find_by_handle(self, external_handle: str) -> Member | None:
        """Find a member by lowercase GitHub handle."""
        pass

    @abstractmethod
    async def find_by_transport_id(self, transport_id: str) -> Member | None:
        """Find a member by chat identity."""
        pass

    @abstractmethod
    async def add(self, member: Member) -> Member:
        """Insert a new member.

        Raises:
            DuplicateRegistrationError: If handle or transport id is taken
        """
        pass

    @abstractmethod
    async def search(self, member_filter: MemberFilter) -> list[Member]:
        """List non-deleted members matching the filter, highest score first."""
        pass

    @abstractmethod
    async def count(self, member_filter: MemberFilter) -> int:
        """Count non-deleted members matching the filter (ignores pagination)."""
        pass
