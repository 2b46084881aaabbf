"""In-memory unit of work for testing."""

from onboard.domain.repository import UnitOfWork, UnitOfWorkFactory

from .invitation import InMemoryInvitationRepository
from .member import InMemoryMemberRepository
from .store import InMemoryStore, Journal


class InMemoryUnitOfWork(UnitOfWork):
    """Writes go straight to the store; rollback replays the undo journal."""

    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.journal = Journal()
        self.committed = False

    async def begin(self) -> None:
        self.invitations = InMemoryInvitationRepository(self.store, self.journal)
        self.members = InMemoryMemberRepository(self.store, self.journal)

    async def commit(self) -> None:
        self.journal.clear()
        self.committed = True

    async def rollback(self) -> None:
        self.journal.undo()


class InMemoryUnitOfWorkFactory(UnitOfWorkFactory):
    """Creates units of work over one shared in-memory store."""

    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()

    def __call__(self) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self.store)
