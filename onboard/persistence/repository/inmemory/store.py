"""Shared in-memory state for the in-memory repositories."""

from typing import Any

from onboard.domain.model import Invitation, Member
from onboard.domain.value import InvitationId, MemberId


class InMemoryStore:
    """Tables as dicts, shared by every unit of work of one factory."""

    def __init__(self) -> None:
        self.invitations: dict[InvitationId, Invitation] = {}
        self.members: dict[MemberId, Member] = {}


class Journal:
    """Undo log of one in-memory unit of work."""

    _MISSING = object()

    def __init__(self) -> None:
        self._entries: list[tuple[dict, Any, Any]] = []

    def put(self, table: dict, key: Any, value: Any) -> None:
        self._entries.append((table, key, table.get(key, self._MISSING)))
        table[key] = value

    def undo(self) -> None:
        for table, key, previous in reversed(self._entries):
            if previous is self._MISSING:
                table.pop(key, None)
            else:
                table[key] = previous
        self._entries.clear()

    def clear(self) -> None:
        self._entries.clear()
