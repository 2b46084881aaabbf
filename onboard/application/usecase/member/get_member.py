"""Get member use case."""

from uuid import UUID

import logfire
from pydantic import BaseModel

from onboard.application.usecase.member.common import MemberItem
from onboard.domain.service import MemberService
from onboard.domain.value import MemberId


class GetMemberRequest(BaseModel):
    member_id: UUID


class GetMemberUseCase:
    """Use case for looking up one directory member."""

    def __init__(self, member_service: MemberService) -> None:
        self.member_service = member_service

    async def execute(self, request: GetMemberRequest) -> MemberItem:
        """Get a member.

        Raises:
            NotFoundError: If the member does not exist or was deleted
        """
        with logfire.span("get_member.execute", member_id=str(request.member_id)):
            member = await self.member_service.get_by_id(MemberId(request.member_id))
            return MemberItem.from_member(member)
