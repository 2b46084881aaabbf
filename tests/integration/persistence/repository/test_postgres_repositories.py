"""Integration tests for the PostgreSQL repositories.

Need a migrated database at ``DATABASE__URL``:

    DATABASE__URL=postgresql+asyncpg://... python scripts/run_migrations.py
    DATABASE__URL=postgresql+asyncpg://... pytest -m integration
"""

import asyncio
import os
import secrets

import pytest

from onboard.domain.error import DuplicateRegistrationError, InvitationAlreadyConsumedError
from onboard.domain.repository import MemberFilter, UnitOfWorkFactory
from onboard.domain.service import InvitationLedger
from onboard.domain.value import InvitationStatus
from tests.factories import make_invitation, make_member, seed
from tests.harness import create_env_fixture

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        "DATABASE__URL" not in os.environ, reason="DATABASE__URL is not set"
    ),
]

# Integration test fixture
integration_env = create_env_fixture(unmock={"persistence"})


def unique_code() -> str:
    return secrets.token_hex(8).upper()


def unique_handle(prefix: str) -> str:
    return f"{prefix}-{secrets.token_hex(4)}"


class TestInvitationRepositoryIntegration:
    @pytest.mark.asyncio
    async def test_round_trip(self, integration_env):
        uow_factory = await integration_env.get(UnitOfWorkFactory)
        invitation = make_invitation(unique_code(), target_handle="bob")
        await seed(uow_factory, invitation)

        async with uow_factory() as uow:
            found = await uow.invitations.find_by_code(invitation.code)

        assert found is not None
        assert found.id == invitation.id
        assert found.status == InvitationStatus.PENDING
        assert found.target_handle == "bob"
        assert found.version == 0

    @pytest.mark.asyncio
    async def test_compare_and_swap_is_version_checked(self, integration_env):
        uow_factory = await integration_env.get(UnitOfWorkFactory)
        invitation = make_invitation(unique_code())
        await seed(uow_factory, invitation)

        async with uow_factory() as uow:
            first = invitation.model_copy(update={"version": 1, "target_handle": "a"})
            assert await uow.invitations.compare_and_swap(first, 0)
        async with uow_factory() as uow:
            stale = invitation.model_copy(update={"version": 1, "target_handle": "b"})
            assert not await uow.invitations.compare_and_swap(stale, 0)
            stored = await uow.invitations.find_by_id(invitation.id)

        assert stored.target_handle == "a"

    @pytest.mark.asyncio
    async def test_concurrent_reserves_have_one_winner(self, integration_env):
        uow_factory = await integration_env.get(UnitOfWorkFactory)
        ledger = await integration_env.get(InvitationLedger)
        invitation = make_invitation(unique_code())
        await seed(uow_factory, invitation)

        results = await asyncio.gather(
            *(ledger.reserve(invitation.code) for _ in range(5)),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        assert len(winners) == 1
        assert all(
            isinstance(r, InvitationAlreadyConsumedError)
            for r in results
            if isinstance(r, Exception)
        )


class TestMemberRepositoryIntegration:
    @pytest.mark.asyncio
    async def test_duplicate_handle_is_translated(self, integration_env):
        uow_factory = await integration_env.get(UnitOfWorkFactory)
        handle = unique_handle("dup")
        original = make_member(handle)
        await seed(uow_factory, original)

        with pytest.raises(DuplicateRegistrationError) as exc_info:
            await seed(uow_factory, make_member(handle, transport_id=f"tg:{handle}:2"))

        assert exc_info.value.field == "external_handle"
        assert exc_info.value.existing.id == original.id

    @pytest.mark.asyncio
    async def test_failed_unit_of_work_leaves_nothing_behind(self, integration_env):
        uow_factory = await integration_env.get(UnitOfWorkFactory)
        member = make_member(unique_handle("gone"))

        with pytest.raises(RuntimeError):
            async with uow_factory() as uow:
                await uow.members.add(member)
                raise RuntimeError("boom")

        async with uow_factory() as uow:
            assert await uow.members.find_by_id(member.id) is None

    @pytest.mark.asyncio
    async def test_search_by_handle(self, integration_env):
        uow_factory = await integration_env.get(UnitOfWorkFactory)
        handle = unique_handle("findme")
        member = make_member(handle, reputation_score=42)
        await seed(uow_factory, member)

        async with uow_factory() as uow:
            found = await uow.members.search(MemberFilter(search=handle))

        assert [m.id for m in found] == [member.id]
        assert found[0].identity_profile.handle == handle
