"""SQLAlchemy unit of work."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from onboard.domain.repository import UnitOfWork, UnitOfWorkFactory
from onboard.persistence.repository.invitation import PostgresInvitationRepository
from onboard.persistence.repository.member import PostgresMemberRepository


class SqlAlchemyUnitOfWork(UnitOfWork):
    """One AsyncSession transaction shared by both repositories."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    async def begin(self) -> None:
        self.session = self.session_factory()
        self.invitations = PostgresInvitationRepository(self.session)
        self.members = PostgresMemberRepository(self.session)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def close(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None


class SqlAlchemyUnitOfWorkFactory(UnitOfWorkFactory):
    """Creates SQLAlchemy units of work from the application session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    def __call__(self) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self.session_factory)
