"""Invitation routes.

Issuer identity is taken from the request as given; authenticating the
caller is left to the gateway in front of this service.
"""

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from onboard.application.usecase.invitation import (
    CancelInvitationRequest,
    CancelInvitationUseCase,
    CreateInvitationRequest,
    CreateInvitationUseCase,
    InvitationItem,
    ListInvitationsRequest,
    ListInvitationsResponse,
    ListInvitationsUseCase,
    ValidateInvitationRequest,
    ValidateInvitationResponse,
    ValidateInvitationUseCase,
)
from onboard.domain.value import InvitationStatus

router = APIRouter(prefix="/invitations", tags=["invitations"], route_class=DishkaRoute)


class CancelInvitationAPIRequest(BaseModel):
    """API request for cancelling an invitation."""

    issuer_id: UUID


@router.post(
    "", response_model=InvitationItem, status_code=status.HTTP_201_CREATED
)
async def create_invitation(
    request: CreateInvitationRequest,
    create_invitation_use_case: FromDishka[CreateInvitationUseCase],
) -> InvitationItem:
    """Issue a new invitation code.

    Args:
        request: Issuer, optional target handle and TTL in days
        create_invitation_use_case: Create invitation use case from DI

    Returns:
        The created invitation, including its code
    """
    return await create_invitation_use_case.execute(request)


@router.get("", response_model=ListInvitationsResponse)
async def list_invitations(
    list_invitations_use_case: FromDishka[ListInvitationsUseCase],
    issuer_id: UUID = Query(...),
    status_filter: InvitationStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> ListInvitationsResponse:
    """List invitations created by an issuer, newest first."""
    return await list_invitations_use_case.execute(
        ListInvitationsRequest(
            issuer_id=issuer_id,
            status=status_filter,
            limit=limit,
            offset=offset,
        )
    )


@router.get("/{code}", response_model=ValidateInvitationResponse)
async def validate_invitation(
    code: str,
    validate_invitation_use_case: FromDishka[ValidateInvitationUseCase],
    actor_handle: str | None = Query(default=None),
) -> ValidateInvitationResponse:
    """Check whether a code could start a registration right now.

    Always answers 200; unusable codes come back with ``valid: false``.
    """
    return await validate_invitation_use_case.execute(
        ValidateInvitationRequest(code=code, actor_handle=actor_handle)
    )


@router.post("/{invitation_id}/cancel", response_model=InvitationItem)
async def cancel_invitation(
    invitation_id: UUID,
    request: CancelInvitationAPIRequest,
    cancel_invitation_use_case: FromDishka[CancelInvitationUseCase],
) -> InvitationItem:
    return await cancel_invitation_use_case.execute(
        CancelInvitationRequest(invitation_id=invitation_id, issuer_id=request.issuer_id)
    )
