"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

import logfire
from dishka import Scope, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from onboard.config import Settings
from onboard.domain.repository import RegistrationSessionStore, UnitOfWorkFactory
from onboard.persistence.database import create_engine, create_session_factory
from onboard.persistence.repository import SqlAlchemyUnitOfWorkFactory
from onboard.persistence.repository.inmemory import InMemoryRegistrationSessionStore
from onboard.util.di.base import ProviderBase
from onboard.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL.

    Registration sessions are ephemeral and stay in process memory even
    in production.
    """

    __is_mock__ = False

    scope = Scope.APP

    @provide
    async def get_engine(self, settings: Settings) -> AsyncIterator[AsyncEngine]:
        """Provide database engine, disposed when the container closes."""
        engine = create_engine(settings)
        instrument_sqlalchemy(engine)
        yield engine
        await engine.dispose()
        logfire.info("Database engine disposed")

    @provide
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    @provide
    def get_unit_of_work_factory(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> UnitOfWorkFactory:
        return SqlAlchemyUnitOfWorkFactory(session_factory)

    @provide
    def get_session_store(self) -> RegistrationSessionStore:
        return InMemoryRegistrationSessionStore()
