"""Cancel invitation use case."""

from datetime import datetime, timezone
from uuid import UUID

import logfire
from pydantic import BaseModel

from onboard.application.usecase.invitation.common import InvitationItem
from onboard.domain.service import InvitationLedger
from onboard.domain.value import InvitationId, MemberId


class CancelInvitationRequest(BaseModel):
    invitation_id: UUID
    issuer_id: UUID  # Member requesting the cancellation


class CancelInvitationUseCase:
    """Use case for cancelling a pending invitation."""

    def __init__(self, invitation_ledger: InvitationLedger) -> None:
        self.invitation_ledger = invitation_ledger

    async def execute(self, request: CancelInvitationRequest) -> InvitationItem:
        with logfire.span(
            "cancel_invitation.execute",
            invitation_id=str(request.invitation_id),
            issuer_id=str(request.issuer_id),
        ):
            invitation = await self.invitation_ledger.cancel(
                InvitationId(request.invitation_id), MemberId(request.issuer_id)
            )
            return InvitationItem.from_invitation(invitation, datetime.now(timezone.utc))
