"""Strongly typed identifiers for onboarding entities.

Using NewType keeps member, invitation and session ids from being mixed up.
"""

from typing import NewType
from uuid import UUID

MemberId = NewType("MemberId", UUID)
InvitationId = NewType("InvitationId", UUID)
SessionId = NewType("SessionId", UUID)
