"""Invitation repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime

from onboard.domain.model.invitation import Invitation
from onboard.domain.value import InvitationId, InvitationStatus, MemberId


class InvitationRepository(ABC):
    """Repository for Invitation entity.

    All state transitions go through ``compare_and_swap``: the write only
    lands if the stored row still has the version the caller read. This
    is the single synchronization point for concurrent reservations.
    """

    @abstractmethod
    async def find_by_id(self, invitation_id: InvitationId) -> Invitation | None:
        """Find an invitation by ID.

        Args:
            invitation_id: The invitation's unique identifier

        Returns:
            The invitation if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_code(self, code: str) -> Invitation | None:
        """Find an invitation by its (normalized) code.

        Args:
            code: Uppercase invitation code

        Returns:
            The invitation if found, None otherwise
        """
        pass

    @abstractmethod
    async def code_exists(self, code: str) -> bool:
        """Check whether a code is taken, for collision checks on creation."""
        pass

    @abstractmethod
    async def add(self, invitation: Invitation) -> Invitation:
        """Insert a new invitation.

        Raises:
            IntegrityError: If the code is already taken
        """
        pass

    @abstractmethod
    async def compare_and_swap(
        self, invitation: Invitation, expected_version: int
    ) -> bool:
        """Replace the stored row if its version still equals expected_version.

        Args:
            invitation: New state of the invitation (version already bumped)
            expected_version: Version the caller read before deciding

        Returns:
            True if the write landed, False if another writer got there first
        """
        pass

    @abstractmethod
    async def count_pending_by_issuer(self, issuer_id: MemberId, now: datetime) -> int:
        """Count live (pending, unexpired) invitations by issuer.

        Used for quota checking.
        """
        pass

    @abstractmethod
    async def find_by_issuer(
        self,
        issuer_id: MemberId,
        status: InvitationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Invitation]:
        """Find invitations by issuer, newest first.

        Args:
            issuer_id: The issuer's member ID
            status: Optional status filter
            limit: Maximum number of results
            offset: Number of results to skip
        """
        pass

    @abstractmethod
    async def find_overdue_pending(
        self, now: datetime, limit: int = 500
    ) -> list[Invitation]:
        """Find pending invitations whose expiry time has passed."""
        pass

    @abstractmethod
    async def find_lapsed_reservations(
        self, now: datetime, limit: int = 500
    ) -> list[Invitation]:
        """Find unexpired pending invitations holding a lapsed reservation."""
        pass
