"""Member directory routes."""

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query

from onboard.application.usecase.member import (
    GetMemberRequest,
    GetMemberUseCase,
    ListMembersRequest,
    ListMembersResponse,
    ListMembersUseCase,
    MemberItem,
)
from onboard.domain.value import MemberRole, MemberStatus

router = APIRouter(prefix="/members", tags=["members"], route_class=DishkaRoute)


@router.get("", response_model=ListMembersResponse)
async def list_members(
    list_members_use_case: FromDishka[ListMembersUseCase],
    search: str | None = Query(default=None, max_length=100),
    role: MemberRole | None = Query(default=None),
    status_filter: MemberStatus | None = Query(default=None, alias="status"),
    min_reputation: int | None = Query(default=None, ge=0),
    max_reputation: int | None = Query(default=None, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> ListMembersResponse:
    """Browse the directory, highest reputation first.

    Args:
        search: Case-insensitive match on display name or GitHub handle
        role: Only members with this role
        status_filter: Only members in this status
        min_reputation: Lower bound on reputation score
        max_reputation: Upper bound on reputation score
        limit: Maximum number of results (1-200)
        offset: Number of results to skip
    """
    return await list_members_use_case.execute(
        ListMembersRequest(
            search=search,
            role=role,
            status=status_filter,
            min_reputation=min_reputation,
            max_reputation=max_reputation,
            limit=limit,
            offset=offset,
        )
    )


@router.get("/{member_id}", response_model=MemberItem)
async def get_member(
    member_id: UUID,
    get_member_use_case: FromDishka[GetMemberUseCase],
) -> MemberItem:
    return await get_member_use_case.execute(GetMemberRequest(member_id=member_id))
