"""Member view shared by the member use cases."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from onboard.domain.model import Member
from onboard.domain.value import MemberRole, MemberStatus, ReputationTier


class MemberItem(BaseModel):
    """Directory entry."""

    member_id: UUID
    github_handle: str
    display_name: str
    role: MemberRole
    organization: str | None = None
    country: str | None = None
    reputation_score: int
    reputation_tier: ReputationTier
    public_repos: int
    followers: int
    total_stars: int
    contributions_last_year: int
    invited_by_member_id: UUID | None = None
    status: MemberStatus
    created_at: datetime

    @classmethod
    def from_member(cls, member: Member) -> "MemberItem":
        profile = member.identity_profile
        return cls(
            member_id=member.id,
            github_handle=member.external_handle,
            display_name=member.display_name,
            role=member.role,
            organization=member.organization,
            country=member.country,
            reputation_score=member.reputation_score,
            reputation_tier=member.reputation_tier,
            public_repos=profile.public_repos,
            followers=profile.followers,
            total_stars=profile.total_stars,
            contributions_last_year=profile.contributions_last_year,
            invited_by_member_id=member.invited_by_member_id,
            status=member.status,
            created_at=member.created_at,
        )
