"""In-memory invitation repository for testing."""

from datetime import datetime

from sqlalchemy.exc import IntegrityError

from onboard.domain.model import Invitation
from onboard.domain.repository import InvitationRepository
from onboard.domain.value import InvitationId, InvitationStatus, MemberId

from .store import InMemoryStore, Journal


class InMemoryInvitationRepository(InvitationRepository):
    """In-memory implementation of InvitationRepository for testing."""

    def __init__(self, store: InMemoryStore, journal: Journal) -> None:
        self._store = store
        self._journal = journal

    @property
    def _invitations(self) -> dict[InvitationId, Invitation]:
        return self._store.invitations

    async def find_by_id(self, invitation_id: InvitationId) -> Invitation | None:
        return self._invitations.get(invitation_id)

    async def find_by_code(self, code: str) -> Invitation | None:
        for invitation in self._invitations.values():
            if invitation.code == code:
                return invitation
        return None

    async def code_exists(self, code: str) -> bool:
        return await self.find_by_code(code) is not None

    async def add(self, invitation: Invitation) -> Invitation:
        """Insert a new invitation.

        Raises:
            IntegrityError: If the id or code is already taken
        """
        if invitation.id in self._invitations or await self.code_exists(invitation.code):
            raise IntegrityError("Duplicate invitation code", None, Exception())
        self._journal.put(self._invitations, invitation.id, invitation)
        return invitation

    async def compare_and_swap(
        self, invitation: Invitation, expected_version: int
    ) -> bool:
        # No await between the check and the write, so this is atomic
        current = self._invitations.get(invitation.id)
        if current is None or current.version != expected_version:
            return False
        self._journal.put(self._invitations, invitation.id, invitation)
        return True

    async def count_pending_by_issuer(self, issuer_id: MemberId, now: datetime) -> int:
        return sum(
            1
            for invitation in self._invitations.values()
            if invitation.issuer_id == issuer_id
            and invitation.status == InvitationStatus.PENDING
            and invitation.expires_at > now
        )

    async def find_by_issuer(
        self,
        issuer_id: MemberId,
        status: InvitationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Invitation]:
        matches = [
            invitation
            for invitation in self._invitations.values()
            if invitation.issuer_id == issuer_id
            and (status is None or invitation.status == status)
        ]
        matches.sort(key=lambda inv: inv.created_at, reverse=True)
        return matches[offset : offset + limit]

    async def find_overdue_pending(
        self, now: datetime, limit: int = 500
    ) -> list[Invitation]:
        matches = [
            invitation
            for invitation in self._invitations.values()
            if invitation.status == InvitationStatus.PENDING
            and invitation.expires_at <= now
        ]
        matches.sort(key=lambda inv: inv.expires_at)
        return matches[:limit]

    async def find_lapsed_reservations(
        self, now: datetime, limit: int = 500
    ) -> list[Invitation]:
        matches = [
            invitation
            for invitation in self._invitations.values()
            if invitation.status == InvitationStatus.PENDING
            and invitation.expires_at > now
            and invitation.reservation_token is not None
            and invitation.reserved_until is not None
            and invitation.reserved_until <= now
        ]
        return matches[:limit]
