"""List invitations use case."""

from datetime import datetime, timezone
from uuid import UUID

import logfire
from pydantic import BaseModel, Field

from onboard.application.usecase.invitation.common import InvitationItem
from onboard.domain.service import InvitationLedger
from onboard.domain.value import InvitationStatus, MemberId


class ListInvitationsRequest(BaseModel):
    """List invitations request."""

    issuer_id: UUID
    status: InvitationStatus | None = None
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class ListInvitationsResponse(BaseModel):
    invitations: list[InvitationItem]


class ListInvitationsUseCase:
    """Use case for listing the invitations an issuer created."""

    def __init__(self, invitation_ledger: InvitationLedger) -> None:
        self.invitation_ledger = invitation_ledger

    async def execute(self, request: ListInvitationsRequest) -> ListInvitationsResponse:
        """List invitations, newest first.

        Args:
            request: Issuer and optional status filter

        Returns:
            Page of invitations
        """
        with logfire.span(
            "list_invitations.execute", issuer_id=str(request.issuer_id)
        ):
            invitations = await self.invitation_ledger.list_by_issuer(
                MemberId(request.issuer_id),
                status=request.status,
                limit=request.limit,
                offset=request.offset,
            )
            now = datetime.now(timezone.utc)
            logfire.info("Invitations listed", count=len(invitations))
            return ListInvitationsResponse(
                invitations=[InvitationItem.from_invitation(i, now) for i in invitations]
            )
