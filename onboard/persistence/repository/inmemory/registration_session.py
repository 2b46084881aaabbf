"""In-memory registration session store.

Sessions are ephemeral by definition, so this is the store used in
production as well as in tests. It lives for the lifetime of the process.
"""

from collections import defaultdict
from datetime import datetime

from onboard.domain.model import RegistrationSession
from onboard.domain.repository import RegistrationSessionStore
from onboard.domain.value import SessionId


class InMemoryRegistrationSessionStore(RegistrationSessionStore):
    """Dict-backed session store indexed by session id and actor id."""

    def __init__(self) -> None:
        self._sessions: dict[SessionId, RegistrationSession] = {}
        self._by_actor: dict[str, SessionId] = {}
        self._starts: defaultdict[str, list[datetime]] = defaultdict(list)

    async def get(self, session_id: SessionId) -> RegistrationSession | None:
        return self._sessions.get(session_id)

    async def find_active_by_actor(self, actor_id: str) -> RegistrationSession | None:
        session_id = self._by_actor.get(actor_id)
        if session_id is None:
            return None
        session = self._sessions.get(session_id)
        if session is None or session.is_terminal:
            return None
        return session

    async def save(self, session: RegistrationSession) -> None:
        self._sessions[session.session_id] = session
        self._by_actor[session.actor_id] = session.session_id

    async def delete(self, session_id: SessionId) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None and self._by_actor.get(session.actor_id) == session_id:
            del self._by_actor[session.actor_id]

    async def find_expired(self, now: datetime) -> list[RegistrationSession]:
        return [s for s in self._sessions.values() if s.expires_at <= now]

    async def record_start(self, actor_id: str, at: datetime) -> None:
        self._starts[actor_id].append(at)

    async def count_starts_since(self, actor_id: str, since: datetime) -> int:
        # Drop entries outside the window while counting
        recent = [at for at in self._starts.get(actor_id, []) if at >= since]
        if recent:
            self._starts[actor_id] = recent
        else:
            self._starts.pop(actor_id, None)
        return len(recent)
