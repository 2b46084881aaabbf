"""Unit tests for the registration state machine."""

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest

from onboard.adapter.github import GitHubClient
from onboard.domain.error import (
    ActorAlreadyRegisteredError,
    InvitationAlreadyConsumedError,
    ProviderTransientError,
    SessionNotFoundError,
    TooManyRegistrationAttemptsError,
)
from onboard.domain.repository import RegistrationSessionStore, UnitOfWorkFactory
from onboard.domain.service import InvitationLedger, RegistrationService
from onboard.domain.value import (
    FailureReason,
    InvitationStatus,
    RegistrationState,
    ReputationTier,
)
from onboard.persistence.repository.inmemory import InMemoryStore
from tests.factories import SCENARIO_CODE, make_invitation, make_member, seed, utcnow
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()

OCTOCAT_PROFILE = {
    "display_name": "The Octocat",
    "role": "Developer",
    "github_handle": "octocat",
}


async def seed_invitation(env, **overrides):
    invitation = make_invitation(**overrides)
    await seed(await env.get(UnitOfWorkFactory), invitation)
    return invitation


async def expire_session(env, session_id) -> None:
    """Move a session's expiry into the past."""
    sessions = await env.get(RegistrationSessionStore)
    session = await sessions.get(session_id)
    await sessions.save(
        session.model_copy(update={"expires_at": utcnow() - timedelta(seconds=1)})
    )


def stored_invitation(store: InMemoryStore, invitation):
    return store.invitations[invitation.id]


class TestStart:
    """Tests for start method."""

    @pytest.mark.asyncio
    async def test_start_reserves_invitation_and_prompts(self, unit_env):
        service = await unit_env.get(RegistrationService)
        store = await unit_env.get(InMemoryStore)
        invitation = await seed_invitation(unit_env)

        result = await service.start(SCENARIO_CODE, actor_id="tg:1", actor_handle="alice")

        assert result.state == RegistrationState.COLLECTING_PROFILE
        assert "name" in result.prompt
        assert stored_invitation(store, invitation).reservation_token is not None

    @pytest.mark.asyncio
    async def test_racing_actors_one_wins(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed_invitation(unit_env)

        results = await asyncio.gather(
            service.start(SCENARIO_CODE, actor_id="tg:1"),
            service.start(SCENARIO_CODE, actor_id="tg:2"),
            return_exceptions=True,
        )

        states = [r.state for r in results if not isinstance(r, Exception)]
        errors = [r for r in results if isinstance(r, Exception)]
        assert states == [RegistrationState.COLLECTING_PROFILE]
        assert len(errors) == 1
        assert isinstance(errors[0], InvitationAlreadyConsumedError)

    @pytest.mark.asyncio
    async def test_restart_replaces_previous_session(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed_invitation(unit_env)
        first = await service.start(SCENARIO_CODE, actor_id="tg:1")

        second = await service.start(SCENARIO_CODE, actor_id="tg:1")

        assert second.session_id != first.session_id
        previous = await service.get(first.session_id)
        assert previous.state == RegistrationState.ABANDONED
        assert previous.failure_reason == FailureReason.CANCELLED

    @pytest.mark.asyncio
    async def test_registered_actor_rejected(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed(
            await unit_env.get(UnitOfWorkFactory), make_member("bob", transport_id="tg:1")
        )
        await seed_invitation(unit_env)

        with pytest.raises(ActorAlreadyRegisteredError):
            await service.start(SCENARIO_CODE, actor_id="tg:1")

    @pytest.mark.asyncio
    async def test_start_rate_limited_per_actor(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed_invitation(unit_env)
        for _ in range(service.settings.max_starts_per_actor):
            await service.start(SCENARIO_CODE, actor_id="tg:1")

        with pytest.raises(TooManyRegistrationAttemptsError):
            await service.start(SCENARIO_CODE, actor_id="tg:1")

        # Other actors are unaffected
        await seed_invitation(unit_env, code="OTHER00000000001")
        await service.start("OTHER00000000001", actor_id="tg:2")


class TestHappyPath:
    """End-to-end registration with the mock GitHub profile."""

    @pytest.mark.asyncio
    async def test_octocat_registration(self, unit_env):
        service = await unit_env.get(RegistrationService)
        store = await unit_env.get(InMemoryStore)
        invitation = await seed_invitation(unit_env)

        started = await service.start(SCENARIO_CODE, actor_id="tg:1", actor_handle="octo")
        step = await service.submit(
            started.session_id, {"display_name": "The Octocat", "role": "developer"}
        )
        assert step.state == RegistrationState.COLLECTING_PROFILE
        assert "GitHub" in step.prompt

        result = await service.submit(started.session_id, {"github_handle": "@OctoCat"})

        assert result.state == RegistrationState.COMPLETE
        assert result.reputation_score == 1125
        assert result.reputation_tier == ReputationTier.EXPERIENCED
        member = store.members[result.member_id]
        assert member.external_handle == "octocat"
        assert member.reputation_score == 1125
        assert member.transport_id == "tg:1"
        assert member.registration_session_id == started.session_id
        accepted = stored_invitation(store, invitation)
        assert accepted.status == InvitationStatus.ACCEPTED
        assert accepted.accepted_by_member_id == member.id

    @pytest.mark.asyncio
    async def test_repeated_turn_after_completion_is_stable(self, unit_env):
        service = await unit_env.get(RegistrationService)
        store = await unit_env.get(InMemoryStore)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")
        done = await service.submit(started.session_id, OCTOCAT_PROFILE)

        again = await service.submit(started.session_id, OCTOCAT_PROFILE)

        assert again == done
        assert len(store.members) == 1

    @pytest.mark.asyncio
    async def test_optional_fields_are_kept(self, unit_env):
        service = await unit_env.get(RegistrationService)
        store = await unit_env.get(InMemoryStore)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        result = await service.submit(
            started.session_id,
            {**OCTOCAT_PROFILE, "organization": " GitHub  Inc ", "country": "USA"},
        )

        member = store.members[result.member_id]
        assert member.organization == "GitHub Inc"
        assert member.country == "USA"


class TestProfileErrors:
    """Tests for invalid input and verification failures."""

    @pytest.mark.asyncio
    async def test_invalid_field_keeps_valid_ones(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        result = await service.submit(
            started.session_id, {"display_name": "Alice", "role": "wizard"}
        )

        assert result.state == RegistrationState.COLLECTING_PROFILE
        assert "Role must be one of" in result.error
        # display_name was accepted, so the prompt moves on to role
        assert "role" in result.prompt

    @pytest.mark.asyncio
    async def test_unknown_field_reported(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        result = await service.submit(started.session_id, {"favourite_color": "blue"})

        assert result.error == "Unknown field: favourite_color"

    @pytest.mark.asyncio
    async def test_too_many_invalid_answers_fails(self, unit_env):
        service = await unit_env.get(RegistrationService)
        ledger = await unit_env.get(InvitationLedger)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        for _ in range(service.settings.max_step_attempts):
            result = await service.submit(started.session_id, {"role": "wizard"})
            assert result.state == RegistrationState.COLLECTING_PROFILE
        result = await service.submit(started.session_id, {"role": "wizard"})

        assert result.state == RegistrationState.FAILED
        assert result.failure_reason == FailureReason.MAX_RETRIES_EXCEEDED
        assert result.retry_allowed is True
        assert result.new_invitation_required is False
        # Reservation released, so the same invitation works again
        await ledger.reserve(SCENARIO_CODE)

    @pytest.mark.asyncio
    async def test_unknown_github_user_loops_back(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        result = await service.submit(
            started.session_id, {**OCTOCAT_PROFILE, "github_handle": "ghost-user"}
        )

        assert result.state == RegistrationState.COLLECTING_PROFILE
        assert "ghost-user" in result.error
        assert result.prompt == "What is your GitHub username?"

        result = await service.submit(started.session_id, {"github_handle": "octocat"})
        assert result.state == RegistrationState.COMPLETE

    @pytest.mark.asyncio
    async def test_verification_unavailable_fails_with_retry(self, unit_env):
        service = await unit_env.get(RegistrationService)
        client = await unit_env.get(GitHubClient)
        store = await unit_env.get(InMemoryStore)
        invitation = await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")
        client.fail_with(ProviderTransientError("rate limited", retry_after=3600))

        result = await service.submit(started.session_id, OCTOCAT_PROFILE)

        assert result.state == RegistrationState.FAILED
        assert result.failure_reason == FailureReason.VERIFICATION_UNAVAILABLE
        assert result.retry_allowed is True
        assert stored_invitation(store, invitation).reservation_token is None
        assert store.members == {}

    @pytest.mark.asyncio
    async def test_duplicate_github_handle(self, unit_env):
        service = await unit_env.get(RegistrationService)
        store = await unit_env.get(InMemoryStore)
        await seed(
            await unit_env.get(UnitOfWorkFactory),
            make_member("octocat", transport_id="tg:original"),
        )
        invitation = await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        result = await service.submit(started.session_id, OCTOCAT_PROFILE)

        assert result.state == RegistrationState.FAILED
        assert result.failure_reason == FailureReason.DUPLICATE_REGISTRATION
        assert result.retry_allowed is False
        assert "already registered" in result.error
        stored = stored_invitation(store, invitation)
        assert stored.status == InvitationStatus.PENDING
        assert stored.reservation_token is None

    @pytest.mark.asyncio
    async def test_invitation_cancelled_mid_registration(self, unit_env):
        service = await unit_env.get(RegistrationService)
        ledger = await unit_env.get(InvitationLedger)
        invitation = await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")
        await ledger.cancel(invitation.id, invitation.issuer_id)

        result = await service.submit(started.session_id, OCTOCAT_PROFILE)

        assert result.state == RegistrationState.FAILED
        assert result.failure_reason == FailureReason.RESERVATION_LOST
        assert result.new_invitation_required is True


class TestCancellationAndTimeout:
    """Tests for cancel, timeout and sweeping."""

    @pytest.mark.asyncio
    async def test_cancel_releases_invitation(self, unit_env):
        service = await unit_env.get(RegistrationService)
        store = await unit_env.get(InMemoryStore)
        invitation = await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        result = await service.cancel(started.session_id)

        assert result.state == RegistrationState.ABANDONED
        assert result.failure_reason == FailureReason.CANCELLED
        assert stored_invitation(store, invitation).reservation_token is None
        after = await service.submit(started.session_id, OCTOCAT_PROFILE)
        assert after.state == RegistrationState.ABANDONED

    @pytest.mark.asyncio
    async def test_idle_session_times_out(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")
        await expire_session(unit_env, started.session_id)

        result = await service.submit(started.session_id, OCTOCAT_PROFILE)

        assert result.state == RegistrationState.ABANDONED
        assert result.failure_reason == FailureReason.TIMED_OUT
        # The invitation is pending again and reservable by a new session
        fresh = await service.start(SCENARIO_CODE, actor_id="tg:2")
        assert fresh.state == RegistrationState.COLLECTING_PROFILE

    @pytest.mark.asyncio
    async def test_sweep_abandons_then_purges(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")
        await expire_session(unit_env, started.session_id)

        first = await service.sweep_sessions()
        assert (first.abandoned, first.purged) == (1, 0)
        assert (await service.get(started.session_id)).state == RegistrationState.ABANDONED

        await expire_session(unit_env, started.session_id)
        second = await service.sweep_sessions()
        assert (second.abandoned, second.purged) == (0, 1)
        with pytest.raises(SessionNotFoundError):
            await service.get(started.session_id)

    @pytest.mark.asyncio
    async def test_cancel_during_verification_discards_result(self, unit_env):
        service = await unit_env.get(RegistrationService)
        client = await unit_env.get(GitHubClient)
        store = await unit_env.get(InMemoryStore)
        invitation = await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        verifying = asyncio.Event()
        proceed = asyncio.Event()
        fetch = client.fetch_snapshot

        async def slow_fetch(handle):
            verifying.set()
            await proceed.wait()
            return await fetch(handle)

        client.fetch_snapshot = slow_fetch

        turn = asyncio.create_task(service.submit(started.session_id, OCTOCAT_PROFILE))
        await verifying.wait()
        cancelled = await service.cancel(started.session_id)
        proceed.set()
        result = await turn

        assert cancelled.state == RegistrationState.ABANDONED
        assert result.state == RegistrationState.ABANDONED
        assert store.members == {}
        stored = stored_invitation(store, invitation)
        assert stored.status == InvitationStatus.PENDING
        assert stored.reservation_token is None

    @pytest.mark.asyncio
    async def test_unknown_session(self, unit_env):
        service = await unit_env.get(RegistrationService)

        with pytest.raises(SessionNotFoundError):
            await service.get(uuid4())


class TestTurnLocks:
    """Per-session turn locks live only while a turn needs them."""

    @pytest.mark.asyncio
    async def test_unknown_sessions_leave_no_locks(self, unit_env):
        service = await unit_env.get(RegistrationService)

        for _ in range(100):
            with pytest.raises(SessionNotFoundError):
                await service.submit(uuid4(), {"display_name": "Nobody"})

        assert service._locks == {}
        assert not service._lock_users

    @pytest.mark.asyncio
    async def test_finished_session_releases_its_lock(self, unit_env):
        service = await unit_env.get(RegistrationService)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        result = await service.submit(started.session_id, OCTOCAT_PROFILE)

        assert result.state == RegistrationState.COMPLETE
        assert service._locks == {}

    @pytest.mark.asyncio
    async def test_concurrent_turns_share_one_lock(self, unit_env):
        service = await unit_env.get(RegistrationService)
        client = await unit_env.get(GitHubClient)
        store = await unit_env.get(InMemoryStore)
        await seed_invitation(unit_env)
        started = await service.start(SCENARIO_CODE, actor_id="tg:1")

        verifying = asyncio.Event()
        proceed = asyncio.Event()
        fetch = client.fetch_snapshot

        async def slow_fetch(handle):
            verifying.set()
            await proceed.wait()
            return await fetch(handle)

        client.fetch_snapshot = slow_fetch

        first = asyncio.create_task(service.submit(started.session_id, OCTOCAT_PROFILE))
        await verifying.wait()
        second = asyncio.create_task(service.submit(started.session_id, OCTOCAT_PROFILE))
        await asyncio.sleep(0)

        assert list(service._locks) == [started.session_id]
        assert service._lock_users[started.session_id] == 2

        proceed.set()
        done, again = await asyncio.gather(first, second)

        assert done.state == RegistrationState.COMPLETE
        assert again == done
        assert len(store.members) == 1
        assert service._locks == {}
