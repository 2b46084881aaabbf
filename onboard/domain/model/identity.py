"""Identity snapshot: the verified view of a member's GitHub account."""

from datetime import datetime

from pydantic import Field

from onboard.domain.model.common import DomainModel
from onboard.domain.value import ActivityMetrics


class IdentitySnapshot(DomainModel):
    """Flattened, versioned result of one identity verification.

    Holds counts and a few descriptive fields only, never the raw API
    payload. Stored on the member as ``identity_profile`` and sufficient
    to recompute the reputation score without calling GitHub again.
    """

    version: int = 1
    handle: str
    provider_user_id: int
    display_name: str | None = None
    html_url: str | None = None
    public_repos: int = Field(ge=0)
    followers: int = Field(ge=0)
    following: int = Field(default=0, ge=0)
    total_stars: int = Field(default=0, ge=0)
    contributions_last_year: int = Field(default=0, ge=0)
    account_created_at: datetime | None = None
    fetched_at: datetime

    def metrics(self) -> ActivityMetrics:
        """Reputation input derived from this snapshot."""
        return ActivityMetrics(
            public_repos=self.public_repos,
            followers=self.followers,
            total_stars=self.total_stars,
            contributions_last_year=self.contributions_last_year,
        )
