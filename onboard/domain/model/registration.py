"""Registration session entity.

A session is the state of one conversational registration. It lives in an
ephemeral store only: losing it means the user starts again, and it never
holds anything that must survive a restart.
"""

from datetime import datetime
from typing import ClassVar

from pydantic import Field

from onboard.domain.model.common import DomainModel
from onboard.domain.model.identity import IdentitySnapshot
from onboard.domain.value import (
    FailureReason,
    MemberId,
    MemberRole,
    RegistrationState,
    ReputationScore,
    ReservationToken,
    SessionId,
)

# Attempt counter keys
COLLECT_PROFILE_STEP = "collect_profile"
VERIFY_IDENTITY_STEP = "verify_identity"


class ProfileDraft(DomainModel):
    """Profile fields collected so far; every field already validated."""

    display_name: str | None = None
    role: MemberRole | None = None
    github_handle: str | None = None
    organization: str | None = None
    country: str | None = None

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("display_name", "role", "github_handle")

    def missing_fields(self) -> list[str]:
        """Required fields not yet provided, in prompt order."""
        return [name for name in self.REQUIRED_FIELDS if getattr(self, name) is None]

    def is_complete(self) -> bool:
        return not self.missing_fields()


class RegistrationSession(DomainModel):
    """One registration attempt bound to one invitation code.

    Keyed by ``session_id`` and indexed by ``actor_id`` (the initiating
    chat identity). ``expires_at`` slides forward on every accepted turn;
    terminal sessions keep a short retention expiry before being purged.
    """

    session_id: SessionId
    actor_id: str
    actor_handle: str | None = None
    invitation_code: str
    reservation: ReservationToken
    state: RegistrationState = RegistrationState.INVITE_RESERVED
    profile: ProfileDraft = Field(default_factory=ProfileDraft)
    snapshot: IdentitySnapshot | None = None
    reputation: ReputationScore | None = None
    member_id: MemberId | None = None
    failure_reason: FailureReason | None = None
    failure_message: str | None = None
    attempts: dict[str, int] = Field(default_factory=dict)
    started_at: datetime
    last_activity_at: datetime
    expires_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def attempt_count(self, step: str) -> int:
        return self.attempts.get(step, 0)

    def with_attempt(self, step: str) -> "RegistrationSession":
        """Copy with the step's attempt counter incremented."""
        attempts = dict(self.attempts)
        attempts[step] = attempts.get(step, 0) + 1
        return self.model_copy(update={"attempts": attempts})
