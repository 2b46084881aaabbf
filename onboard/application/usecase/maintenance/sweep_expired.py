"""Sweep expired invitations and sessions use case."""

import logfire
from pydantic import BaseModel

from onboard.application.usecase.base import BaseUseCase
from onboard.domain.service import InvitationLedger, RegistrationService


class SweepExpiredRequest(BaseModel):
    batch_size: int = 500


class SweepExpiredResponse(BaseModel):
    expired_invitations: int
    released_reservations: int
    abandoned_sessions: int
    purged_sessions: int


class SweepExpiredUseCase(BaseUseCase):
    """Periodic maintenance pass.

    Sessions are swept first so reservations of sessions that just timed
    out are released by their owner rather than by the lapse check.
    """

    def __init__(
        self,
        invitation_ledger: InvitationLedger,
        registration_service: RegistrationService,
    ) -> None:
        self.invitation_ledger = invitation_ledger
        self.registration_service = registration_service

    async def execute(self, request: SweepExpiredRequest) -> SweepExpiredResponse:
        with logfire.span("sweep_expired.execute"):
            sessions = await self.registration_service.sweep_sessions()
            invitations = await self.invitation_ledger.sweep_expired(
                batch_size=request.batch_size
            )
            return SweepExpiredResponse(
                expired_invitations=invitations.expired,
                released_reservations=invitations.released,
                abandoned_sessions=sessions.abandoned,
                purged_sessions=sessions.purged,
            )
