"""Submit registration step use case."""

from uuid import UUID

import logfire
from pydantic import BaseModel, Field

from onboard.application.usecase.base import BaseUseCase
from onboard.application.usecase.registration.response import RegistrationStepResponse
from onboard.domain.service import RegistrationService
from onboard.domain.value import SessionId


class SubmitStepRequest(BaseModel):
    """One conversational turn.

    ``fields`` maps profile field names (display_name, role, github_handle,
    organization, country) to the user's raw answers.
    """

    session_id: UUID
    fields: dict[str, str] = Field(default_factory=dict)


class SubmitStepUseCase(BaseUseCase):
    """Advance a registration session by one turn."""

    def __init__(self, registration_service: RegistrationService) -> None:
        self.registration_service = registration_service

    async def execute(self, request: SubmitStepRequest) -> RegistrationStepResponse:
        with logfire.span(
            "submit_step.execute",
            session_id=str(request.session_id),
            fields=sorted(request.fields),
        ):
            result = await self.registration_service.submit(
                SessionId(request.session_id), request.fields
            )
            return RegistrationStepResponse.from_result(result)
