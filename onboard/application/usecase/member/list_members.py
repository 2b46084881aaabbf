"""List members use case."""

import logfire
from pydantic import BaseModel, Field

from onboard.application.usecase.member.common import MemberItem
from onboard.domain.repository import MemberFilter
from onboard.domain.service import MemberService
from onboard.domain.value import MemberRole, MemberStatus


class ListMembersRequest(BaseModel):
    """Directory query."""

    search: str | None = Field(default=None, max_length=100)
    role: MemberRole | None = None
    status: MemberStatus | None = None
    min_reputation: int | None = Field(default=None, ge=0)
    max_reputation: int | None = Field(default=None, ge=0)
    limit: int = Field(default=50, ge=1, le=200)
    offset: int = Field(default=0, ge=0)


class ListMembersResponse(BaseModel):
    members: list[MemberItem]
    total: int


class ListMembersUseCase:
    """Use case for browsing the member directory, highest reputation first."""

    def __init__(self, member_service: MemberService) -> None:
        self.member_service = member_service

    async def execute(self, request: ListMembersRequest) -> ListMembersResponse:
        with logfire.span("list_members.execute", search=request.search):
            members, total = await self.member_service.list_members(
                MemberFilter(**request.model_dump())
            )
            return ListMembersResponse(
                members=[MemberItem.from_member(m) for m in members], total=total
            )
