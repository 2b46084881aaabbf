"""Registration use cases."""

from onboard.application.usecase.registration.cancel_registration import (
    CancelRegistrationRequest,
    CancelRegistrationUseCase,
)
from onboard.application.usecase.registration.get_registration import (
    GetRegistrationRequest,
    GetRegistrationUseCase,
)
from onboard.application.usecase.registration.response import RegistrationStepResponse
from onboard.application.usecase.registration.start_registration import (
    StartRegistrationRequest,
    StartRegistrationUseCase,
)
from onboard.application.usecase.registration.submit_step import (
    SubmitStepRequest,
    SubmitStepUseCase,
)

__all__ = [
    "CancelRegistrationRequest",
    "CancelRegistrationUseCase",
    "GetRegistrationRequest",
    "GetRegistrationUseCase",
    "RegistrationStepResponse",
    "StartRegistrationRequest",
    "StartRegistrationUseCase",
    "SubmitStepRequest",
    "SubmitStepUseCase",
]
