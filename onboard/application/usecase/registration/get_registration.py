"""Get registration use case."""

from uuid import UUID

from pydantic import BaseModel

from onboard.application.usecase.registration.response import RegistrationStepResponse
from onboard.domain.service import RegistrationService
from onboard.domain.value import SessionId


class GetRegistrationRequest(BaseModel):
    session_id: UUID


class GetRegistrationUseCase:
    """Current state and prompt of a session, without advancing it.

    Lets a transport re-render the pending question after a reconnect.
    """

    def __init__(self, registration_service: RegistrationService) -> None:
        self.registration_service = registration_service

    async def execute(self, request: GetRegistrationRequest) -> RegistrationStepResponse:
        result = await self.registration_service.get(SessionId(request.session_id))
        return RegistrationStepResponse.from_result(result)
