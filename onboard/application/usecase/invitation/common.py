"""Invitation view shared by the invitation use cases."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from onboard.domain.model import Invitation
from onboard.domain.value import InvitationStatus


class InvitationItem(BaseModel):
    """Invitation as shown to its issuer.

    Reservation details stay internal; ``reserved`` only says whether a
    registration currently holds the code.
    """

    invitation_id: UUID
    code: str
    issuer_id: UUID
    target_handle: str | None = None
    status: InvitationStatus
    reserved: bool = False
    expires_at: datetime
    accepted_by_member_id: UUID | None = None
    accepted_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_invitation(cls, invitation: Invitation, now: datetime) -> "InvitationItem":
        # Report lazily expired invitations as expired before the sweep runs
        status = invitation.status
        if status == InvitationStatus.PENDING and invitation.is_expired(now):
            status = InvitationStatus.EXPIRED
        return cls(
            invitation_id=invitation.id,
            code=invitation.code,
            issuer_id=invitation.issuer_id,
            target_handle=invitation.target_handle,
            status=status,
            reserved=invitation.is_reserved(now),
            expires_at=invitation.expires_at,
            accepted_by_member_id=invitation.accepted_by_member_id,
            accepted_at=invitation.accepted_at,
            created_at=invitation.created_at,
        )
