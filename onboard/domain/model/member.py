"""Member aggregate root.

Members are created only by a completed registration and afterwards changed
only by profile and status management outside the onboarding pipeline.
"""

from datetime import datetime, timezone

from pydantic import Field, computed_field

from onboard.domain.model.common import DomainModel
from onboard.domain.model.identity import IdentitySnapshot
from onboard.domain.value import (
    InvitationId,
    MemberId,
    MemberRole,
    MemberStatus,
    ReputationTier,
    SessionId,
    tier_for_score,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Member(DomainModel):
    """Directory member.

    Business rules:
    - ``external_handle`` (GitHub username) is globally unique and write-once
    - ``transport_id`` (chat identity) is unique: one membership per actor
    - ``reputation_tier`` is computed from ``reputation_score``, never stored
      as an independent fact
    - members are soft-deleted via ``deleted_at``
    """

    id: MemberId
    external_handle: str
    transport_id: str
    transport_handle: str | None = None
    display_name: str
    role: MemberRole
    organization: str | None = None
    country: str | None = None
    identity_profile: IdentitySnapshot
    identity_verified_at: datetime
    reputation_score: int = Field(default=0, ge=0)
    invited_by_member_id: MemberId | None = None
    invitation_id: InvitationId | None = None
    registration_session_id: SessionId | None = None
    status: MemberStatus = MemberStatus.ACTIVE
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    deleted_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def reputation_tier(self) -> ReputationTier:
        """Tier band for the current score."""
        return tier_for_score(self.reputation_score)
