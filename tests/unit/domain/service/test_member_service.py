"""Unit tests for MemberService."""

from datetime import timedelta
from uuid import uuid4

import pytest

from onboard.adapter.github.client import mock_snapshot
from onboard.domain.error import (
    DuplicateRegistrationError,
    NotFoundError,
    ReservationLostError,
)
from onboard.domain.model import ProfileDraft
from onboard.domain.repository import MemberFilter, UnitOfWorkFactory
from onboard.domain.service import InvitationLedger, MemberService, calculate_reputation
from onboard.domain.value import InvitationStatus, MemberId, MemberRole, SessionId
from onboard.persistence.repository.inmemory import InMemoryStore
from tests.factories import SCENARIO_CODE, make_invitation, make_member, seed, utcnow
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


async def reserve_invitation(env, code: str = SCENARIO_CODE):
    uow_factory = await env.get(UnitOfWorkFactory)
    invitation = make_invitation(code=code)
    await seed(uow_factory, invitation)
    ledger = await env.get(InvitationLedger)
    return invitation, await ledger.reserve(code)


def registration_args(handle: str, reservation, session_id=None, transport_id=None):
    snapshot = mock_snapshot(handle, public_repos=2, followers=1)
    return dict(
        profile=ProfileDraft(
            display_name=handle.title(),
            role=MemberRole.DEVELOPER,
            github_handle=handle,
        ),
        snapshot=snapshot,
        reputation=calculate_reputation(snapshot.metrics()),
        reservation=reservation,
        transport_id=transport_id or f"tg:{handle}",
        transport_handle=handle,
        session_id=session_id or SessionId(uuid4()),
    )


class TestCreateIfAbsent:
    """Tests for create_if_absent method."""

    @pytest.mark.asyncio
    async def test_creates_member_and_accepts_invitation(self, unit_env):
        service = await unit_env.get(MemberService)
        store = await unit_env.get(InMemoryStore)
        invitation, reservation = await reserve_invitation(unit_env)

        member = await service.create_if_absent(**registration_args("alice", reservation))

        assert member.external_handle == "alice"
        assert member.reputation_score == 13
        assert member.invited_by_member_id == invitation.issuer_id
        assert member.invitation_id == invitation.id
        assert store.members[member.id] == member
        accepted = store.invitations[invitation.id]
        assert accepted.status == InvitationStatus.ACCEPTED
        assert accepted.accepted_by_member_id == member.id

    @pytest.mark.asyncio
    async def test_same_session_returns_existing_member(self, unit_env):
        service = await unit_env.get(MemberService)
        store = await unit_env.get(InMemoryStore)
        _, reservation = await reserve_invitation(unit_env)
        args = registration_args("alice", reservation)
        first = await service.create_if_absent(**args)

        second = await service.create_if_absent(**args)

        assert second == first
        assert len(store.members) == 1

    @pytest.mark.asyncio
    async def test_duplicate_handle_rolls_back(self, unit_env):
        service = await unit_env.get(MemberService)
        store = await unit_env.get(InMemoryStore)
        uow_factory = await unit_env.get(UnitOfWorkFactory)
        await seed(uow_factory, make_member("alice", transport_id="tg:someone-else"))
        invitation, reservation = await reserve_invitation(unit_env)

        with pytest.raises(DuplicateRegistrationError) as exc_info:
            await service.create_if_absent(**registration_args("alice", reservation))

        assert exc_info.value.field == "external_handle"
        # Invitation untouched and still held by the reservation
        stored = store.invitations[invitation.id]
        assert stored.status == InvitationStatus.PENDING
        assert stored.reservation_token == reservation.token
        assert len(store.members) == 1

    @pytest.mark.asyncio
    async def test_duplicate_transport_id(self, unit_env):
        service = await unit_env.get(MemberService)
        uow_factory = await unit_env.get(UnitOfWorkFactory)
        await seed(uow_factory, make_member("bob", transport_id="tg:42"))
        _, reservation = await reserve_invitation(unit_env)

        with pytest.raises(DuplicateRegistrationError) as exc_info:
            await service.create_if_absent(
                **registration_args("alice", reservation, transport_id="tg:42")
            )

        assert exc_info.value.field == "transport_id"

    @pytest.mark.asyncio
    async def test_lost_reservation_creates_nothing(self, unit_env):
        service = await unit_env.get(MemberService)
        ledger = await unit_env.get(InvitationLedger)
        store = await unit_env.get(InMemoryStore)
        _, reservation = await reserve_invitation(unit_env)
        await ledger.release(reservation)

        with pytest.raises(ReservationLostError):
            await service.create_if_absent(**registration_args("alice", reservation))

        assert store.members == {}


class TestLookup:
    """Tests for get and list methods."""

    @pytest.mark.asyncio
    async def test_get_by_id(self, unit_env):
        service = await unit_env.get(MemberService)
        uow_factory = await unit_env.get(UnitOfWorkFactory)
        member = make_member("alice")
        await seed(uow_factory, member)

        assert await service.get_by_id(member.id) == member
        assert await service.get_by_handle("Alice") == member
        assert await service.get_by_transport_id("tg:alice") == member

    @pytest.mark.asyncio
    async def test_get_missing_or_deleted_member(self, unit_env):
        service = await unit_env.get(MemberService)
        uow_factory = await unit_env.get(UnitOfWorkFactory)
        deleted = make_member("gone", deleted_at=utcnow() - timedelta(days=1))
        await seed(uow_factory, deleted)

        with pytest.raises(NotFoundError):
            await service.get_by_id(MemberId(uuid4()))
        with pytest.raises(NotFoundError):
            await service.get_by_id(deleted.id)

    @pytest.mark.asyncio
    async def test_list_members_by_reputation(self, unit_env):
        service = await unit_env.get(MemberService)
        uow_factory = await unit_env.get(UnitOfWorkFactory)
        await seed(
            uow_factory,
            make_member("low", reputation_score=10),
            make_member("high", reputation_score=900),
            make_member("mid", reputation_score=300, organization="Acme Labs"),
        )

        members, total = await service.list_members(MemberFilter(limit=2))
        assert [m.external_handle for m in members] == ["high", "mid"]
        assert total == 3

        members, total = await service.list_members(MemberFilter(search="acme"))
        assert [m.external_handle for m in members] == ["mid"]
        assert total == 1

        members, _ = await service.list_members(MemberFilter(min_reputation=100))
        assert {m.external_handle for m in members} == {"high", "mid"}
