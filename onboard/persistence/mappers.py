"""Mappers between database rows and domain models.

Domain models are immutable pydantic models, so rows are mapped by hand
instead of through SQLAlchemy's ORM mapping.
"""

from typing import Any
from uuid import UUID

from onboard.domain.model import IdentitySnapshot, Invitation, Member
from onboard.domain.value import (
    InvitationId,
    InvitationStatus,
    MemberId,
    MemberRole,
    MemberStatus,
    SessionId,
)


def _uuid(value: Any) -> UUID | None:
    if value is None:
        return None
    return UUID(value) if isinstance(value, str) else value


def row_to_invitation(row: dict[str, Any]) -> Invitation:
    """Convert database row to Invitation domain model.

    Args:
        row: Database row as dict

    Returns:
        Invitation domain model
    """
    accepted_by = _uuid(row.get("accepted_by_member_id"))
    return Invitation(
        id=InvitationId(_uuid(row["id"])),
        code=row["code"],
        issuer_id=MemberId(_uuid(row["issuer_id"])),
        target_handle=row.get("target_handle"),
        status=InvitationStatus(row["status"]),
        expires_at=row["expires_at"],
        accepted_by_member_id=MemberId(accepted_by) if accepted_by else None,
        accepted_at=row.get("accepted_at"),
        reservation_token=row.get("reservation_token"),
        reserved_until=row.get("reserved_until"),
        version=row["version"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def invitation_to_dict(invitation: Invitation) -> dict[str, Any]:
    """Convert Invitation domain model to database dict."""
    data = invitation.model_dump()
    data["status"] = invitation.status.value
    return data


def row_to_member(row: dict[str, Any]) -> Member:
    """Convert database row to Member domain model.

    Args:
        row: Database row as dict

    Returns:
        Member domain model
    """
    invited_by = _uuid(row.get("invited_by_member_id"))
    invitation_id = _uuid(row.get("invitation_id"))
    session_id = _uuid(row.get("registration_session_id"))
    return Member(
        id=MemberId(_uuid(row["id"])),
        external_handle=row["external_handle"],
        transport_id=row["transport_id"],
        transport_handle=row.get("transport_handle"),
        display_name=row["display_name"],
        role=MemberRole(row["role"]),
        organization=row.get("organization"),
        country=row.get("country"),
        identity_profile=IdentitySnapshot.model_validate(row["identity_profile"]),
        identity_verified_at=row["identity_verified_at"],
        reputation_score=row["reputation_score"],
        invited_by_member_id=MemberId(invited_by) if invited_by else None,
        invitation_id=InvitationId(invitation_id) if invitation_id else None,
        registration_session_id=SessionId(session_id) if session_id else None,
        status=MemberStatus(row["status"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        deleted_at=row.get("deleted_at"),
    )


def member_to_dict(member: Member) -> dict[str, Any]:
    """Convert Member domain model to database dict.

    The computed tier is dropped; only the score is stored.
    """
    data = member.model_dump(exclude={"reputation_tier", "identity_profile"})
    data["role"] = member.role.value
    data["status"] = member.status.value
    data["identity_profile"] = member.identity_profile.model_dump(mode="json")
    return data
