"""Domain model entities for community onboarding."""

from onboard.domain.model.identity import IdentitySnapshot
from onboard.domain.model.invitation import Invitation, mask_code, normalize_chat_handle
from onboard.domain.model.member import Member
from onboard.domain.model.registration import ProfileDraft, RegistrationSession

__all__ = [
    "IdentitySnapshot",
    "Invitation",
    "Member",
    "mask_code",
    "normalize_chat_handle",
    "ProfileDraft",
    "RegistrationSession",
]
