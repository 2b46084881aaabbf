"""Validate invitation use case."""

from datetime import datetime

import logfire
from pydantic import BaseModel

from onboard.domain.error import InvitationError
from onboard.domain.model import mask_code
from onboard.domain.service import InvitationLedger
from onboard.domain.value import InvitationStatus


class ValidateInvitationRequest(BaseModel):
    """Validate invitation request."""

    code: str
    actor_handle: str | None = None


class ValidateInvitationResponse(BaseModel):
    """Validate invitation response."""

    valid: bool
    status: InvitationStatus | None = None
    expires_at: datetime | None = None
    message: str | None = None


class ValidateInvitationUseCase:
    """Use case for checking a code before starting a registration.

    Runs every check ``reserve`` would run but takes no reservation, so a
    transport can tell the user early that a code is unusable.
    """

    def __init__(self, invitation_ledger: InvitationLedger) -> None:
        """Initialize validate invitation use case.

        Args:
            invitation_ledger: Invitation ledger domain service
        """
        self.invitation_ledger = invitation_ledger

    async def execute(
        self, request: ValidateInvitationRequest
    ) -> ValidateInvitationResponse:
        with logfire.span("validate_invitation.execute", code=mask_code(request.code)):
            try:
                invitation = await self.invitation_ledger.check_available(
                    request.code, actor_handle=request.actor_handle
                )
            except InvitationError as e:
                logfire.info(
                    "Invitation not usable",
                    code=mask_code(request.code),
                    reason=type(e).__name__,
                )
                return ValidateInvitationResponse(valid=False, message=str(e))

            return ValidateInvitationResponse(
                valid=True,
                status=invitation.status,
                expires_at=invitation.expires_at,
                message="Valid invitation",
            )
