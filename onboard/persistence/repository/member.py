"""PostgreSQL implementation of Member repository."""

from sqlalchemy import and_, func, insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from onboard.domain.error import DuplicateRegistrationError
from onboard.domain.model import Member
from onboard.domain.repository import MemberFilter, MemberRepository
from onboard.domain.value import MemberId
from onboard.persistence.mappers import member_to_dict, row_to_member
from onboard.persistence.tables import members_table


class PostgresMemberRepository(MemberRepository):
    """PostgreSQL implementation of MemberRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, member_id: MemberId) -> Member | None:
        stmt = select(members_table).where(members_table.c.id == member_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_member(dict(row)) if row else None

    async def find_by_handle(self, external_handle: str) -> Member | None:
        stmt = select(members_table).where(
            members_table.c.external_handle == external_handle
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_member(dict(row)) if row else None

    async def find_by_transport_id(self, transport_id: str) -> Member | None:
        stmt = select(members_table).where(members_table.c.transport_id == transport_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_member(dict(row)) if row else None

    async def add(self, member: Member) -> Member:
        """Insert a member inside a savepoint.

        The savepoint keeps the surrounding transaction usable after a
        unique violation, so the conflicting member can be looked up and
        returned with the error.
        """
        stmt = insert(members_table).values(**member_to_dict(member))
        try:
            async with self.session.begin_nested():
                await self.session.execute(stmt)
        except IntegrityError as e:
            existing = await self.find_by_handle(member.external_handle)
            if existing is not None:
                raise DuplicateRegistrationError(
                    "external_handle", member.external_handle, existing
                ) from e
            existing = await self.find_by_transport_id(member.transport_id)
            if existing is not None:
                raise DuplicateRegistrationError(
                    "transport_id", member.transport_id, existing
                ) from e
            raise
        return member

    async def search(self, member_filter: MemberFilter) -> list[Member]:
        stmt = (
            select(members_table)
            .where(self._conditions(member_filter))
            .order_by(
                members_table.c.reputation_score.desc(),
                members_table.c.created_at,
            )
            .limit(member_filter.limit)
            .offset(member_filter.offset)
        )
        result = await self.session.execute(stmt)
        return [row_to_member(dict(row)) for row in result.mappings().all()]

    async def count(self, member_filter: MemberFilter) -> int:
        stmt = (
            select(func.count())
            .select_from(members_table)
            .where(self._conditions(member_filter))
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    @staticmethod
    def _conditions(member_filter: MemberFilter):
        conditions = [members_table.c.deleted_at.is_(None)]
        if member_filter.search:
            pattern = f"%{member_filter.search}%"
            conditions.append(
                or_(
                    members_table.c.display_name.ilike(pattern),
                    members_table.c.external_handle.ilike(pattern),
                    members_table.c.organization.ilike(pattern),
                )
            )
        if member_filter.role:
            conditions.append(members_table.c.role == member_filter.role.value)
        if member_filter.status:
            conditions.append(members_table.c.status == member_filter.status.value)
        if member_filter.min_reputation is not None:
            conditions.append(
                members_table.c.reputation_score >= member_filter.min_reputation
            )
        if member_filter.max_reputation is not None:
            conditions.append(
                members_table.c.reputation_score <= member_filter.max_reputation
            )
        return and_(*conditions)
