"""Cancel registration use case."""

from uuid import UUID

import logfire
from pydantic import BaseModel

from onboard.application.usecase.registration.response import RegistrationStepResponse
from onboard.domain.service import RegistrationService
from onboard.domain.value import SessionId


class CancelRegistrationRequest(BaseModel):
    session_id: UUID


class CancelRegistrationUseCase:
    """Use case for abandoning a registration at the user's request."""

    def __init__(self, registration_service: RegistrationService) -> None:
        self.registration_service = registration_service

    async def execute(
        self, request: CancelRegistrationRequest
    ) -> RegistrationStepResponse:
        with logfire.span(
            "cancel_registration.execute", session_id=str(request.session_id)
        ):
            result = await self.registration_service.cancel(SessionId(request.session_id))
            return RegistrationStepResponse.from_result(result)
