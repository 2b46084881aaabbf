"""Domain value objects for community onboarding.

Value objects are immutable and defined by their values, not identity.
They encapsulate validation rules and normalization.
"""

import re
from datetime import datetime
from enum import Enum

from pydantic import field_validator

from onboard.domain.value.common import RootValueObject, ValueObject
from onboard.domain.value.identifiers import InvitationId


class InvitationStatus(str, Enum):
    """Status of an invitation.

    ``pending`` is the only non-terminal status. A reservation is a
    sub-state of pending and is not represented here.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class MemberStatus(str, Enum):
    """Lifecycle status of a directory member."""

    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class MemberRole(str, Enum):
    """Primary role a member registers with."""

    STUDENT = "student"
    DEVELOPER = "developer"
    DESIGNER = "designer"
    RESEARCHER = "researcher"
    FOUNDER = "founder"
    INVESTOR = "investor"
    COMMUNITY_MANAGER = "community_manager"
    CONTENT_CREATOR = "content_creator"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "MemberRole":
        """Parse free-form chat input such as ``"Community Manager"``.

        Raises:
            ValueError: If the value names no known role
        """
        normalized = re.sub(r"[\s\-]+", "_", value.strip().lower())
        try:
            return cls(normalized)
        except ValueError:
            options = ", ".join(role.value for role in cls)
            raise ValueError(f"Role must be one of: {options}") from None


class ReputationTier(str, Enum):
    """Fixed reputation bands derived from the numeric score."""

    NOVICE = "Novice"
    CONTRIBUTOR = "Contributor"
    ACTIVE_DEVELOPER = "Active Developer"
    EXPERIENCED = "Experienced"
    EXPERT = "Expert"


# Inclusive upper bounds; anything above the last band is Expert
TIER_BANDS: tuple[tuple[int, ReputationTier], ...] = (
    (100, ReputationTier.NOVICE),
    (500, ReputationTier.CONTRIBUTOR),
    (1000, ReputationTier.ACTIVE_DEVELOPER),
    (2500, ReputationTier.EXPERIENCED),
)


def tier_for_score(score: int) -> ReputationTier:
    """Map a score to its tier band."""
    for upper, tier in TIER_BANDS:
        if score <= upper:
            return tier
    return ReputationTier.EXPERT


class RegistrationState(str, Enum):
    """States of the registration session state machine."""

    INVITE_RESERVED = "invite_reserved"
    COLLECTING_PROFILE = "collecting_profile"
    VERIFYING_IDENTITY = "verifying_identity"
    SCORING = "scoring"
    COMMITTING = "committing"
    COMPLETE = "complete"
    FAILED = "failed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (
            RegistrationState.COMPLETE,
            RegistrationState.FAILED,
            RegistrationState.ABANDONED,
        )


class FailureReason(str, Enum):
    """Why a session ended in FAILED or ABANDONED."""

    MAX_RETRIES_EXCEEDED = "max_retries_exceeded"
    VERIFICATION_UNAVAILABLE = "verification_unavailable"
    DUPLICATE_REGISTRATION = "duplicate_registration"
    RESERVATION_LOST = "reservation_lost"
    COMMIT_FAILED = "commit_failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class InvitationCode(RootValueObject[str]):
    """Opaque invitation code.

    Uppercase alphanumeric, 16-64 characters. Input is stripped and
    uppercased so codes typed into a chat still match.
    """

    @field_validator("root")
    @classmethod
    def validate_code_format(cls, v: str) -> str:
        """Normalize and validate code format."""
        v = v.strip().upper()
        if not re.match(r"^[A-Z0-9]{16,64}$", v):
            raise ValueError("Invitation code must be 16-64 letters or digits")
        return v


class GitHubHandle(RootValueObject[str]):
    """GitHub username, the member's external handle.

    Stored lowercase because GitHub logins are case-insensitive and the
    handle carries a uniqueness constraint. A leading ``@`` or a profile
    URL prefix is accepted and stripped.
    """

    @field_validator("root")
    @classmethod
    def validate_handle_format(cls, v: str) -> str:
        """Normalize and validate GitHub username rules."""
        v = v.strip()
        v = re.sub(r"^(https?://)?(www\.)?github\.com/", "", v, flags=re.IGNORECASE)
        v = v.lstrip("@").rstrip("/").lower()
        if not re.match(r"^[a-z0-9](?:[a-z0-9]|-(?=[a-z0-9])){0,38}$", v):
            raise ValueError(
                "GitHub username must be 1-39 letters, digits or single hyphens, "
                "and cannot start or end with a hyphen"
            )
        return v


class DisplayName(RootValueObject[str]):
    """Name shown in the directory."""

    @field_validator("root")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        """Collapse whitespace and check length."""
        v = " ".join(v.split())
        if len(v) < 1 or len(v) > 100:
            raise ValueError("Name must be 1-100 characters")
        return v


class Organization(RootValueObject[str]):
    """Optional organization a member belongs to."""

    @field_validator("root")
    @classmethod
    def validate_organization(cls, v: str) -> str:
        v = " ".join(v.split())
        if len(v) < 1 or len(v) > 255:
            raise ValueError("Organization must be 1-255 characters")
        return v


class Country(RootValueObject[str]):
    """Optional country, free text."""

    @field_validator("root")
    @classmethod
    def validate_country(cls, v: str) -> str:
        v = " ".join(v.split())
        if len(v) < 2 or len(v) > 100:
            raise ValueError("Country must be 2-100 characters")
        return v


class ReservationToken(ValueObject):
    """Proof that a registration session holds an invitation.

    Returned by InvitationLedger.reserve and presented back on refresh,
    release and commit.
    """

    invitation_id: InvitationId
    code: str
    token: str
    expires_at: datetime


class ActivityMetrics(ValueObject):
    """Raw activity counts fed to the reputation engine.

    Deliberately unconstrained: the engine owns validation and reports
    bad input as InvalidMetricsError.
    """

    public_repos: int
    followers: int
    total_stars: int
    contributions_last_year: int


class ReputationBreakdown(ValueObject):
    """Weighted contribution of each metric to the score."""

    repos: int
    followers: int
    stars: int
    contributions: int


class ReputationScore(ValueObject):
    """Score and tier computed from ActivityMetrics."""

    score: int
    tier: ReputationTier
    breakdown: ReputationBreakdown
