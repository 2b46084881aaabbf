"""In-memory member repository for testing."""

from onboard.domain.error import DuplicateRegistrationError
from onboard.domain.model import Member
from onboard.domain.repository import MemberFilter, MemberRepository
from onboard.domain.value import MemberId

from .store import InMemoryStore, Journal


class InMemoryMemberRepository(MemberRepository):
    """In-memory implementation of MemberRepository for testing."""

    def __init__(self, store: InMemoryStore, journal: Journal) -> None:
        self._store = store
        self._journal = journal

    @property
    def _members(self) -> dict[MemberId, Member]:
        return self._store.members

    async def find_by_id(self, member_id: MemberId) -> Member | None:
        return self._members.get(member_id)

    async def find_by_handle(self, external_handle: str) -> Member | None:
        for member in self._members.values():
            if member.external_handle == external_handle:
                return member
        return None

    async def find_by_transport_id(self, transport_id: str) -> Member | None:
        for member in self._members.values():
            if member.transport_id == transport_id:
                return member
        return None

    async def add(self, member: Member) -> Member:
        """Insert a new member, enforcing the same unique keys as the table."""
        existing = await self.find_by_handle(member.external_handle)
        if existing is not None:
            raise DuplicateRegistrationError(
                "external_handle", member.external_handle, existing
            )
        existing = await self.find_by_transport_id(member.transport_id)
        if existing is not None:
            raise DuplicateRegistrationError("transport_id", member.transport_id, existing)

        self._journal.put(self._members, member.id, member)
        return member

    async def search(self, member_filter: MemberFilter) -> list[Member]:
        matches = self._matching(member_filter)
        matches.sort(key=lambda m: (-m.reputation_score, m.created_at))
        return matches[member_filter.offset : member_filter.offset + member_filter.limit]

    async def count(self, member_filter: MemberFilter) -> int:
        return len(self._matching(member_filter))

    def _matching(self, member_filter: MemberFilter) -> list[Member]:
        needle = member_filter.search.lower() if member_filter.search else None
        matches = []
        for member in self._members.values():
            if member.deleted_at is not None:
                continue
            if needle and not any(
                needle in (value or "").lower()
                for value in (
                    member.display_name,
                    member.external_handle,
                    member.organization,
                )
            ):
                continue
            if member_filter.role and member.role != member_filter.role:
                continue
            if member_filter.status and member.status != member_filter.status:
                continue
            if (
                member_filter.min_reputation is not None
                and member.reputation_score < member_filter.min_reputation
            ):
                continue
            if (
                member_filter.max_reputation is not None
                and member.reputation_score > member_filter.max_reputation
            ):
                continue
            matches.append(member)
        return matches
