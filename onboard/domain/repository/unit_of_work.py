"""Unit of work interface.

One unit of work is one database transaction spanning the invitation and
member repositories. Member creation and invitation acceptance share a
unit of work so neither can land without the other.

    async with uow_factory() as uow:
        await uow.members.add(member)
        await uow.invitations.compare_and_swap(accepted, invitation.version)
    # committed here, or rolled back if the block raised
"""

from abc import ABC, abstractmethod
from types import TracebackType

from onboard.domain.repository.invitation import InvitationRepository
from onboard.domain.repository.member import MemberRepository


class UnitOfWork(ABC):
    """Transaction boundary over the repositories."""

    invitations: InvitationRepository
    members: MemberRepository

    async def __aenter__(self) -> "UnitOfWork":
        await self.begin()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self.close()

    @abstractmethod
    async def begin(self) -> None:
        """Open the transaction and bind repositories to it."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass

    async def close(self) -> None:
        """Release resources held by the transaction."""
        return None


class UnitOfWorkFactory(ABC):
    """Creates a fresh UnitOfWork per transaction.

    Injected into APP-scoped services, which open short transactions of
    their own instead of sharing one per request.
    """

    @abstractmethod
    def __call__(self) -> UnitOfWork:
        pass
