"""Invitation use cases."""

from onboard.application.usecase.invitation.cancel_invitation import (
    CancelInvitationRequest,
    CancelInvitationUseCase,
)
from onboard.application.usecase.invitation.common import InvitationItem
from onboard.application.usecase.invitation.create_invitation import (
    CreateInvitationRequest,
    CreateInvitationUseCase,
)
from onboard.application.usecase.invitation.list_invitations import (
    ListInvitationsRequest,
    ListInvitationsResponse,
    ListInvitationsUseCase,
)
from onboard.application.usecase.invitation.validate_invitation import (
    ValidateInvitationRequest,
    ValidateInvitationResponse,
    ValidateInvitationUseCase,
)

__all__ = [
    "CancelInvitationRequest",
    "CancelInvitationUseCase",
    "CreateInvitationRequest",
    "CreateInvitationUseCase",
    "InvitationItem",
    "ListInvitationsRequest",
    "ListInvitationsResponse",
    "ListInvitationsUseCase",
    "ValidateInvitationRequest",
    "ValidateInvitationResponse",
    "ValidateInvitationUseCase",
]
