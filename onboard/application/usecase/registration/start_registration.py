"""Start registration use case."""

import logfire
from pydantic import BaseModel, Field

from onboard.application.usecase.base import BaseUseCase
from onboard.application.usecase.registration.response import RegistrationStepResponse
from onboard.domain.model import mask_code
from onboard.domain.service import RegistrationService


class StartRegistrationRequest(BaseModel):
    """Start registration request from the chat transport."""

    invitation_code: str = Field(min_length=1, max_length=128)
    actor_id: str = Field(min_length=1, max_length=255)  # Chat identity
    actor_handle: str | None = Field(default=None, max_length=255)


class StartRegistrationUseCase(BaseUseCase):
    """Reserve an invitation and open a registration session."""

    def __init__(self, registration_service: RegistrationService) -> None:
        self.registration_service = registration_service

    async def execute(self, request: StartRegistrationRequest) -> RegistrationStepResponse:
        with logfire.span(
            "start_registration.execute",
            actor_id=request.actor_id,
            code=mask_code(request.invitation_code),
        ):
            result = await self.registration_service.start(
                request.invitation_code,
                actor_id=request.actor_id,
                actor_handle=request.actor_handle,
            )
            return RegistrationStepResponse.from_result(result)
