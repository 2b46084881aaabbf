"""Member use cases."""

from onboard.application.usecase.member.common import MemberItem
from onboard.application.usecase.member.get_member import (
    GetMemberRequest,
    GetMemberUseCase,
)
from onboard.application.usecase.member.list_members import (
    ListMembersRequest,
    ListMembersResponse,
    ListMembersUseCase,
)

__all__ = [
    "GetMemberRequest",
    "GetMemberUseCase",
    "ListMembersRequest",
    "ListMembersResponse",
    "ListMembersUseCase",
    "MemberItem",
]
