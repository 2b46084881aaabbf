"""PostgreSQL implementation of Invitation repository."""

from datetime import datetime

from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from onboard.domain.model import Invitation
from onboard.domain.repository import InvitationRepository
from onboard.domain.value import InvitationId, InvitationStatus, MemberId
from onboard.persistence.mappers import invitation_to_dict, row_to_invitation
from onboard.persistence.tables import invitations_table


class PostgresInvitationRepository(InvitationRepository):
    """PostgreSQL implementation of InvitationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, invitation_id: InvitationId) -> Invitation | None:
        stmt = select(invitations_table).where(invitations_table.c.id == invitation_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_invitation(dict(row)) if row else None

    async def find_by_code(self, code: str) -> Invitation | None:
        stmt = select(invitations_table).where(invitations_table.c.code == code)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_invitation(dict(row)) if row else None

    async def code_exists(self, code: str) -> bool:
        stmt = select(invitations_table.c.id).where(invitations_table.c.code == code)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def add(self, invitation: Invitation) -> Invitation:
        stmt = insert(invitations_table).values(**invitation_to_dict(invitation))
        await self.session.execute(stmt)
        await self.session.flush()
        return invitation

    async def compare_and_swap(
        self, invitation: Invitation, expected_version: int
    ) -> bool:
        """Conditional UPDATE on (id, version).

        Under READ COMMITTED a concurrent writer of the same row blocks
        until the first one commits, then re-evaluates the WHERE clause
        and matches nothing.
        """
        values = invitation_to_dict(invitation)
        values.pop("id")
        values.pop("created_at")
        stmt = (
            update(invitations_table)
            .where(
                and_(
                    invitations_table.c.id == invitation.id,
                    invitations_table.c.version == expected_version,
                )
            )
            .values(**values)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def count_pending_by_issuer(self, issuer_id: MemberId, now: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(invitations_table)
            .where(
                and_(
                    invitations_table.c.issuer_id == issuer_id,
                    invitations_table.c.status == InvitationStatus.PENDING.value,
                    invitations_table.c.expires_at > now,
                )
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def find_by_issuer(
        self,
        issuer_id: MemberId,
        status: InvitationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Invitation]:
        stmt = (
            select(invitations_table)
            .where(invitations_table.c.issuer_id == issuer_id)
            .order_by(invitations_table.c.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        if status:
            stmt = stmt.where(invitations_table.c.status == status.value)

        result = await self.session.execute(stmt)
        return [row_to_invitation(dict(row)) for row in result.mappings().all()]

    async def find_overdue_pending(
        self, now: datetime, limit: int = 500
    ) -> list[Invitation]:
        stmt = (
            select(invitations_table)
            .where(
                and_(
                    invitations_table.c.status == InvitationStatus.PENDING.value,
                    invitations_table.c.expires_at <= now,
                )
            )
            .order_by(invitations_table.c.expires_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [row_to_invitation(dict(row)) for row in result.mappings().all()]

    async def find_lapsed_reservations(
        self, now: datetime, limit: int = 500
    ) -> list[Invitation]:
        stmt = (
            select(invitations_table)
            .where(
                and_(
                    invitations_table.c.status == InvitationStatus.PENDING.value,
                    invitations_table.c.expires_at > now,
                    invitations_table.c.reservation_token.is_not(None),
                    invitations_table.c.reserved_until <= now,
                )
            )
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [row_to_invitation(dict(row)) for row in result.mappings().all()]
