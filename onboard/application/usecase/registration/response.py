"""Response shared by the registration use cases."""

from uuid import UUID

from pydantic import BaseModel

from onboard.domain.service import StepResult
from onboard.domain.value import FailureReason, RegistrationState, ReputationTier


class RegistrationStepResponse(BaseModel):
    """One turn's outcome, free of any chat-platform formatting."""

    session_id: UUID
    state: RegistrationState
    prompt: str | None = None
    error: str | None = None
    failure_reason: FailureReason | None = None
    retry_allowed: bool = False
    new_invitation_required: bool = False
    member_id: UUID | None = None
    reputation_score: int | None = None
    reputation_tier: ReputationTier | None = None

    @classmethod
    def from_result(cls, result: StepResult) -> "RegistrationStepResponse":
        return cls.model_validate(result.model_dump())
