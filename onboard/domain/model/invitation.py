"""Invitation entity.

Invitations gate membership: every member is created by redeeming exactly
one invitation issued by an existing member (or an admin issuer).
"""

from datetime import datetime, timezone

from pydantic import Field

from onboard.domain.model.common import DomainModel
from onboard.domain.value import InvitationId, InvitationStatus, MemberId


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Invitation(DomainModel):
    """Invitation entity.

    Business rules:
    - ``pending`` moves to accepted, expired or cancelled exactly once
    - ``accepted`` is written in the same transaction as the member it binds
    - a reservation (token + reserved_until) is a sub-state of pending that
      lapses on its own; at most one live reservation exists per invitation
    - every change bumps ``version``, the optimistic-lock column
    - invitations are never deleted
    """

    id: InvitationId
    code: str
    issuer_id: MemberId
    target_handle: str | None = None  # Chat handle the invitation is meant for
    status: InvitationStatus = InvitationStatus.PENDING
    expires_at: datetime
    accepted_by_member_id: MemberId | None = None
    accepted_at: datetime | None = None
    reservation_token: str | None = None
    reserved_until: datetime | None = None
    version: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def is_expired(self, now: datetime) -> bool:
        """Whether the expiry time has passed, regardless of stored status."""
        return self.expires_at <= now

    def is_reserved(self, now: datetime) -> bool:
        """Whether a live reservation holds this invitation."""
        return (
            self.reservation_token is not None
            and self.reserved_until is not None
            and self.reserved_until > now
        )

    def matches_target(self, actor_handle: str | None) -> bool:
        """Whether an untargeted invitation, or the targeted actor, redeems it."""
        if not self.target_handle:
            return True
        if not actor_handle:
            return False
        return normalize_chat_handle(actor_handle) == normalize_chat_handle(
            self.target_handle
        )


def normalize_chat_handle(handle: str) -> str:
    """Normalize a chat-platform handle (``@Alice`` -> ``alice``)."""
    return handle.strip().lstrip("@").lower()


def mask_code(code: str) -> str:
    """Shorten an invitation code for logs and messages."""
    return code[:4] + "..." if len(code) > 4 else "..."
