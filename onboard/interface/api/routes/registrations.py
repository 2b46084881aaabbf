"""Registration routes.

The chat transport drives a registration with one call per turn:

    POST   /registrations                 start with an invitation code
    POST   /registrations/{id}/steps      submit answers
    GET    /registrations/{id}            re-read the pending prompt
    DELETE /registrations/{id}            cancel

Every call returns the session state and the next prompt; rendering them
for a chat platform is the transport's job.
"""

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from onboard.application.usecase.registration import (
    CancelRegistrationRequest,
    CancelRegistrationUseCase,
    GetRegistrationRequest,
    GetRegistrationUseCase,
    RegistrationStepResponse,
    StartRegistrationRequest,
    StartRegistrationUseCase,
    SubmitStepRequest,
    SubmitStepUseCase,
)

router = APIRouter(prefix="/registrations", tags=["registrations"], route_class=DishkaRoute)


class SubmitStepAPIRequest(BaseModel):
    """API request for one conversational turn."""

    fields: dict[str, str] = Field(default_factory=dict)


@router.post(
    "",
    response_model=RegistrationStepResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_registration(
    request: StartRegistrationRequest,
    start_registration_use_case: FromDishka[StartRegistrationUseCase],
) -> RegistrationStepResponse:
    """Start a registration with an invitation code.

    Example:
        POST /registrations
        {"invitation_code": "K7Q2M9XW4B1ZP3TD", "actor_id": "tg:123456"}

        Response:
        {
            "session_id": "8c1d...",
            "state": "collecting_profile",
            "prompt": "What name should other members see?",
            ...
        }
    """
    return await start_registration_use_case.execute(request)


@router.post("/{session_id}/steps", response_model=RegistrationStepResponse)
async def submit_step(
    session_id: UUID,
    request: SubmitStepAPIRequest,
    submit_step_use_case: FromDishka[SubmitStepUseCase],
) -> RegistrationStepResponse:
    """Submit answers for the current step.

    Field errors do not fail the request; they come back in ``error``
    together with the prompt to answer again.
    """
    return await submit_step_use_case.execute(
        SubmitStepRequest(session_id=session_id, fields=request.fields)
    )


@router.get("/{session_id}", response_model=RegistrationStepResponse)
async def get_registration(
    session_id: UUID,
    get_registration_use_case: FromDishka[GetRegistrationUseCase],
) -> RegistrationStepResponse:
    return await get_registration_use_case.execute(
        GetRegistrationRequest(session_id=session_id)
    )


@router.delete("/{session_id}", response_model=RegistrationStepResponse)
async def cancel_registration(
    session_id: UUID,
    cancel_registration_use_case: FromDishka[CancelRegistrationUseCase],
) -> RegistrationStepResponse:
    """Cancel a registration and release its invitation."""
    return await cancel_registration_use_case.execute(
        CancelRegistrationRequest(session_id=session_id)
    )
