"""Create invitation use case."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import logfire
from pydantic import BaseModel, Field

from onboard.application.usecase.base import BaseUseCase
from onboard.application.usecase.invitation.common import InvitationItem
from onboard.domain.service import InvitationLedger
from onboard.domain.value import MemberId


class CreateInvitationRequest(BaseModel):
    """Request to create an invitation."""

    issuer_id: UUID
    target_handle: str | None = Field(default=None, max_length=255)
    ttl_days: int | None = Field(default=None, ge=1)


class CreateInvitationUseCase(BaseUseCase):
    """Use case for issuing a new invitation code."""

    def __init__(self, invitation_ledger: InvitationLedger) -> None:
        """Initialize create invitation use case.

        Args:
            invitation_ledger: Invitation ledger domain service
        """
        self.invitation_ledger = invitation_ledger

    async def execute(self, request: CreateInvitationRequest) -> InvitationItem:
        """Create an invitation.

        Raises:
            IssuerNotAuthorizedError: If the issuer may not invite
            ValidationError: If the TTL exceeds the configured maximum
        """
        with logfire.span(
            "create_invitation.execute", issuer_id=str(request.issuer_id)
        ):
            ttl = timedelta(days=request.ttl_days) if request.ttl_days else None
            invitation = await self.invitation_ledger.create(
                MemberId(request.issuer_id),
                target_handle=request.target_handle,
                ttl=ttl,
            )
            return InvitationItem.from_invitation(invitation, datetime.now(timezone.utc))
