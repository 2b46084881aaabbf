"""Domain value objects for community onboarding."""

from onboard.domain.value.identifiers import InvitationId, MemberId, SessionId
from onboard.domain.value.types import (
    ActivityMetrics,
    Country,
    DisplayName,
    FailureReason,
    GitHubHandle,
    InvitationCode,
    InvitationStatus,
    MemberRole,
    MemberStatus,
    Organization,
    RegistrationState,
    ReputationBreakdown,
    ReputationScore,
    ReputationTier,
    ReservationToken,
    tier_for_score,
)

__all__ = [
    # Identifiers
    "MemberId",
    "InvitationId",
    "SessionId",
    # Enums
    "InvitationStatus",
    "MemberStatus",
    "MemberRole",
    "ReputationTier",
    "RegistrationState",
    "FailureReason",
    # Types
    "InvitationCode",
    "GitHubHandle",
    "DisplayName",
    "Organization",
    "Country",
    "ReservationToken",
    "ActivityMetrics",
    "ReputationBreakdown",
    "ReputationScore",
    # Functions
    "tier_for_score",
]
