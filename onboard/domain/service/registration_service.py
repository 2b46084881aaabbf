"""Registration session state machine.

A registration is a sequence of conversational turns driving one session
through

    invite_reserved -> collecting_profile -> verifying_identity
        -> scoring -> committing -> complete

with ``failed`` and ``abandoned`` reachable from every non-terminal state.
A complete profile is verified, scored and committed within the turn
that completes it.

Turns on one session are serialized by a per-session lock. Cancellation
does not take the lock; instead every turn re-reads the session after its
only slow call (identity verification) and discards its result if the
session went terminal in the meantime.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import logfire
from pydantic import ValidationError as PydanticValidationError

from onboard.config import RegistrationSettings
from onboard.domain.error import (
    ActorAlreadyRegisteredError,
    DomainError,
    DuplicateRegistrationError,
    IdentityNotFoundError,
    ReservationLostError,
    SessionNotFoundError,
    TooManyRegistrationAttemptsError,
    VerificationUnavailableError,
)
from onboard.domain.model import Member, ProfileDraft, RegistrationSession
from onboard.domain.model.registration import COLLECT_PROFILE_STEP, VERIFY_IDENTITY_STEP
from onboard.domain.repository import RegistrationSessionStore
from onboard.domain.value import (
    Country,
    DisplayName,
    FailureReason,
    GitHubHandle,
    MemberId,
    MemberRole,
    Organization,
    RegistrationState,
    ReputationTier,
    SessionId,
)
from onboard.domain.value.common import ValueObject

from .base import Service
from .identity_verifier import IdentityVerifier
from .invitation_ledger import InvitationLedger
from .member_service import MemberService
from .reputation import ReputationEngine

FIELD_PROMPTS: dict[str, str] = {
    "display_name": "What name should appear in the member directory?",
    "role": "What is your primary role? Choose one of: "
    + ", ".join(role.value for role in MemberRole),
    "github_handle": "What is your GitHub username?",
}

OPTIONAL_FIELDS_HINT = "You may also share your organization and country."

FIELD_PARSERS: dict[str, Callable[[str], object]] = {
    "display_name": lambda value: DisplayName(value).root,
    "role": MemberRole.parse,
    "github_handle": lambda value: GitHubHandle(value).root,
    "organization": lambda value: Organization(value).root,
    "country": lambda value: Country(value).root,
}

# (may start again with the same invitation, must request a new invitation)
RETRY_POLICY: dict[FailureReason, tuple[bool, bool]] = {
    FailureReason.MAX_RETRIES_EXCEEDED: (True, False),
    FailureReason.VERIFICATION_UNAVAILABLE: (True, False),
    FailureReason.DUPLICATE_REGISTRATION: (False, False),
    FailureReason.RESERVATION_LOST: (False, True),
    FailureReason.COMMIT_FAILED: (True, False),
    FailureReason.CANCELLED: (True, False),
    FailureReason.TIMED_OUT: (True, False),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepResult(ValueObject):
    """Outcome of one turn, as seen by the chat transport."""

    session_id: SessionId
    state: RegistrationState
    prompt: str | None = None
    error: str | None = None
    failure_reason: FailureReason | None = None
    retry_allowed: bool = False
    new_invitation_required: bool = False
    member_id: MemberId | None = None
    reputation_score: int | None = None
    reputation_tier: ReputationTier | None = None


class SessionSweepResult(ValueObject):
    abandoned: int = 0
    purged: int = 0


class RegistrationService(Service):
    """Drives registration sessions across conversational turns."""

    def __init__(
        self,
        invitation_ledger: InvitationLedger,
        identity_verifier: IdentityVerifier,
        reputation_engine: ReputationEngine,
        member_service: MemberService,
        session_store: RegistrationSessionStore,
        settings: RegistrationSettings,
    ) -> None:
        """Initialize registration service.

        Args:
            invitation_ledger: Ledger holding the session's reservation
            identity_verifier: GitHub identity verifier
            reputation_engine: Reputation scorer
            member_service: Member creation service
            session_store: Ephemeral session storage
            settings: Registration configuration
        """
        self.invitation_ledger = invitation_ledger
        self.identity_verifier = identity_verifier
        self.reputation_engine = reputation_engine
        self.member_service = member_service
        self.session_store = session_store
        self.settings = settings
        self._locks: dict[SessionId, asyncio.Lock] = {}
        self._lock_users: Counter[SessionId] = Counter()

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(seconds=self.settings.session_ttl_seconds)

    @property
    def terminal_retention(self) -> timedelta:
        return timedelta(seconds=self.settings.terminal_retention_seconds)

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    async def start(
        self, invitation_code: str, actor_id: str, actor_handle: str | None = None
    ) -> StepResult:
        """Start a registration bound to one invitation code.

        Any live session of the same actor is abandoned first.

        Args:
            invitation_code: Code as typed by the user
            actor_id: Chat identity of the user
            actor_handle: Chat handle of the user, for targeted invitations

        Returns:
            Result in ``collecting_profile`` with the first prompt

        Raises:
            TooManyRegistrationAttemptsError: If the actor started too often
            ActorAlreadyRegisteredError: If the actor is already a member
            InvitationError: If the code cannot be reserved
        """
        with logfire.span("registration_service.start", actor_id=actor_id):
            now = _utcnow()
            window = timedelta(seconds=self.settings.start_window_seconds)
            starts = await self.session_store.count_starts_since(actor_id, now - window)
            if starts >= self.settings.max_starts_per_actor:
                logfire.warn("Registration start limit reached", actor_id=actor_id)
                raise TooManyRegistrationAttemptsError(
                    actor_id, self.settings.start_window_seconds
                )
            await self.session_store.record_start(actor_id, now)

            if await self.member_service.get_by_transport_id(actor_id) is not None:
                logfire.warn("Registered actor tried to register again", actor_id=actor_id)
                raise ActorAlreadyRegisteredError(actor_id)

            previous = await self.session_store.find_active_by_actor(actor_id)
            if previous is not None:
                await self._abandon(
                    previous,
                    FailureReason.CANCELLED,
                    "Replaced by a newer registration",
                )

            reservation = await self.invitation_ledger.reserve(
                invitation_code, actor_handle=actor_handle, ttl=self.session_ttl
            )

            session = RegistrationSession(
                session_id=SessionId(uuid4()),
                actor_id=actor_id,
                actor_handle=actor_handle,
                invitation_code=reservation.code,
                reservation=reservation,
                state=RegistrationState.INVITE_RESERVED,
                started_at=now,
                last_activity_at=now,
                expires_at=now + self.session_ttl,
            )
            session = self._move(session, RegistrationState.COLLECTING_PROFILE)
            await self.session_store.save(session)

            logfire.info(
                "Registration started",
                session_id=str(session.session_id),
                invitation_id=str(reservation.invitation_id),
            )
            return self._result(session)

    async def submit(self, session_id: SessionId, fields: Mapping[str, str]) -> StepResult:
        """Process one turn of profile input.

        Args:
            session_id: Session to advance
            fields: Field name to raw user input

        Returns:
            Result after the turn; terminal sessions return their outcome
            unchanged

        Raises:
            SessionNotFoundError: If the session is unknown or purged
        """
        with logfire.span("registration_service.submit", session_id=str(session_id)):
            async with self._turn_lock(session_id):
                session = await self._load(session_id)
                if session.is_terminal:
                    return self._result(session)

                now = _utcnow()
                if session.expires_at <= now:
                    return await self._time_out(session)

                try:
                    reservation = await self.invitation_ledger.refresh(
                        session.reservation, ttl=self.session_ttl
                    )
                except ReservationLostError as e:
                    return await self._fail(session, FailureReason.RESERVATION_LOST, str(e))

                profile, errors = self._apply_fields(session.profile, fields)
                session = session.model_copy(
                    update={
                        "reservation": reservation,
                        "profile": profile,
                        "last_activity_at": now,
                        "expires_at": now + self.session_ttl,
                    }
                )

                if errors:
                    session = session.with_attempt(COLLECT_PROFILE_STEP)
                    if session.attempt_count(COLLECT_PROFILE_STEP) > self.settings.max_step_attempts:
                        return await self._fail(
                            session,
                            FailureReason.MAX_RETRIES_EXCEEDED,
                            "Too many invalid answers. " + "; ".join(errors),
                        )
                    await self.session_store.save(session)
                    logfire.info(
                        "Invalid profile input",
                        session_id=str(session_id),
                        attempts=session.attempt_count(COLLECT_PROFILE_STEP),
                    )
                    return self._result(session, error="; ".join(errors))

                if not profile.is_complete():
                    await self.session_store.save(session)
                    return self._result(session)

                return await self._verify_and_commit(session)

    async def cancel(self, session_id: SessionId) -> StepResult:
        """Abandon a session at the user's request.

        Never waits for an in-flight turn; that turn notices the
        cancellation when it re-reads the session.
        """
        with logfire.span("registration_service.cancel", session_id=str(session_id)):
            session = await self._load(session_id)
            if session.is_terminal:
                return self._result(session)
            return await self._abandon(
                session, FailureReason.CANCELLED, "Registration cancelled"
            )

    async def get(self, session_id: SessionId) -> StepResult:
        """Current result of a session without advancing it."""
        session = await self._load(session_id)
        if not session.is_terminal and session.expires_at <= _utcnow():
            return await self._time_out(session)
        return self._result(session)

    async def sweep_sessions(self) -> SessionSweepResult:
        """Abandon timed-out sessions and purge retained terminal ones."""
        with logfire.span("registration_service.sweep_sessions"):
            abandoned = 0
            purged = 0
            for session in await self.session_store.find_expired(_utcnow()):
                if session.is_terminal:
                    await self.session_store.delete(session.session_id)
                    purged += 1
                else:
                    await self._time_out(session)
                    abandoned += 1
            logfire.info("Session sweep finished", abandoned=abandoned, purged=purged)
            return SessionSweepResult(abandoned=abandoned, purged=purged)

    # ------------------------------------------------------------------
    # Verify, score, commit
    # ------------------------------------------------------------------

    async def _verify_and_commit(self, session: RegistrationSession) -> StepResult:
        session = self._move(session, RegistrationState.VERIFYING_IDENTITY)
        await self.session_store.save(session)
        handle = session.profile.github_handle

        try:
            snapshot = await self.identity_verifier.verify(handle)
        except IdentityNotFoundError as e:
            current = await self._reread(session)
            if current.state != RegistrationState.VERIFYING_IDENTITY:
                return self._result(current)
            current = current.with_attempt(VERIFY_IDENTITY_STEP)
            if current.attempt_count(VERIFY_IDENTITY_STEP) > self.settings.max_step_attempts:
                return await self._fail(current, FailureReason.MAX_RETRIES_EXCEEDED, str(e))
            current = self._move(
                current,
                RegistrationState.COLLECTING_PROFILE,
                profile=current.profile.model_copy(update={"github_handle": None}),
            )
            await self.session_store.save(current)
            return self._result(
                current,
                error=f"No GitHub account named {handle} exists. Please check the username.",
            )
        except VerificationUnavailableError as e:
            current = await self._reread(session)
            if current.state != RegistrationState.VERIFYING_IDENTITY:
                return self._result(current)
            return await self._fail(
                current,
                FailureReason.VERIFICATION_UNAVAILABLE,
                f"GitHub is unavailable right now. Try again in {e.cooldown_seconds} seconds.",
            )

        # Cancelled or timed out while the verifier was running
        current = await self._reread(session)
        if current.state != RegistrationState.VERIFYING_IDENTITY:
            logfire.info(
                "Discarding verification for finished session",
                session_id=str(session.session_id),
                state=current.state.value,
            )
            return self._result(current)
        if current.expires_at <= _utcnow():
            return await self._time_out(current)

        session = self._move(current, RegistrationState.SCORING, snapshot=snapshot)
        reputation = self.reputation_engine.score(snapshot.metrics())
        session = self._move(session, RegistrationState.COMMITTING, reputation=reputation)
        await self.session_store.save(session)

        try:
            member = await self.member_service.create_if_absent(
                profile=session.profile,
                snapshot=snapshot,
                reputation=reputation,
                reservation=session.reservation,
                transport_id=session.actor_id,
                transport_handle=session.actor_handle,
                session_id=session.session_id,
            )
        except DuplicateRegistrationError as e:
            if e.existing is not None and e.existing.registration_session_id == session.session_id:
                return await self._complete(session, e.existing)
            return await self._fail(
                session,
                FailureReason.DUPLICATE_REGISTRATION,
                f"The GitHub account {handle} is already registered"
                if e.field == "external_handle"
                else "You are already a registered member",
            )
        except ReservationLostError:
            return await self._fail(
                session,
                FailureReason.RESERVATION_LOST,
                "Your invitation is no longer valid. Please request a new one.",
            )
        except DomainError as e:
            return await self._fail(session, FailureReason.COMMIT_FAILED, str(e))
        except Exception:
            await self._fail(
                session,
                FailureReason.COMMIT_FAILED,
                "Registration could not be saved. Please try again.",
            )
            raise

        return await self._complete(session, member)

    async def _complete(self, session: RegistrationSession, member: Member) -> StepResult:
        session = self._move(
            session,
            RegistrationState.COMPLETE,
            member_id=member.id,
            expires_at=_utcnow() + self.terminal_retention,
        )
        await self.session_store.save(session)
        logfire.info(
            "Registration complete",
            session_id=str(session.session_id),
            member_id=str(member.id),
            reputation_score=member.reputation_score,
        )
        return self._result(session)

    # ------------------------------------------------------------------
    # Terminal transitions
    # ------------------------------------------------------------------

    async def _fail(
        self, session: RegistrationSession, reason: FailureReason, message: str
    ) -> StepResult:
        return await self._finish(session, RegistrationState.FAILED, reason, message)

    async def _abandon(
        self, session: RegistrationSession, reason: FailureReason, message: str
    ) -> StepResult:
        return await self._finish(session, RegistrationState.ABANDONED, reason, message)

    async def _time_out(self, session: RegistrationSession) -> StepResult:
        minutes = max(1, self.settings.session_ttl_seconds // 60)
        return await self._abandon(
            session,
            FailureReason.TIMED_OUT,
            f"Registration timed out after {minutes} minutes without input",
        )

    async def _finish(
        self,
        session: RegistrationSession,
        state: RegistrationState,
        reason: FailureReason,
        message: str,
    ) -> StepResult:
        session = self._move(
            session,
            state,
            failure_reason=reason,
            failure_message=message,
            expires_at=_utcnow() + self.terminal_retention,
        )
        await self.session_store.save(session)
        await self.invitation_ledger.release(session.reservation)
        logfire.warn(
            "Registration ended",
            session_id=str(session.session_id),
            state=state.value,
            reason=reason.value,
        )
        return self._result(session)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _turn_lock(self, session_id: SessionId) -> AsyncIterator[None]:
        """Hold the session's turn lock.

        A lock exists only while some turn holds or waits for it, so unknown
        and finished sessions leave nothing behind.
        """
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[session_id] -= 1
            if not self._lock_users[session_id]:
                del self._lock_users[session_id]
                del self._locks[session_id]

    async def _load(self, session_id: SessionId) -> RegistrationSession:
        session = await self.session_store.get(session_id)
        if session is None:
            raise SessionNotFoundError(str(session_id))
        return session

    async def _reread(self, session: RegistrationSession) -> RegistrationSession:
        return await self._load(session.session_id)

    @staticmethod
    def _move(
        session: RegistrationSession, state: RegistrationState, **changes: object
    ) -> RegistrationSession:
        logfire.info(
            "Registration state changed",
            session_id=str(session.session_id),
            from_state=session.state.value,
            to_state=state.value,
        )
        changes["state"] = state
        return session.model_copy(update=changes)

    @staticmethod
    def _apply_fields(
        profile: ProfileDraft, fields: Mapping[str, str]
    ) -> tuple[ProfileDraft, list[str]]:
        """Validate submitted fields; valid ones are applied even if others fail."""
        updates: dict[str, object] = {}
        errors: list[str] = []
        for name, raw in fields.items():
            parser = FIELD_PARSERS.get(name)
            if parser is None:
                errors.append(f"Unknown field: {name}")
                continue
            if raw is None:
                continue
            try:
                updates[name] = parser(str(raw))
            except PydanticValidationError as e:
                errors.append(_validation_message(e))
            except ValueError as e:
                errors.append(str(e))
        return profile.model_copy(update=updates), errors

    def _result(self, session: RegistrationSession, error: str | None = None) -> StepResult:
        result = StepResult(session_id=session.session_id, state=session.state, error=error)

        if session.state == RegistrationState.COMPLETE:
            score = session.reputation.score if session.reputation else None
            tier = session.reputation.tier if session.reputation else None
            return result.model_copy(
                update={
                    "member_id": session.member_id,
                    "reputation_score": score,
                    "reputation_tier": tier,
                    "prompt": f"Welcome aboard! Your reputation tier is {tier.value}."
                    if tier
                    else "Welcome aboard!",
                }
            )

        if session.is_terminal:
            retry_allowed, new_invitation_required = RETRY_POLICY[session.failure_reason]
            return result.model_copy(
                update={
                    "error": session.failure_message,
                    "failure_reason": session.failure_reason,
                    "retry_allowed": retry_allowed,
                    "new_invitation_required": new_invitation_required,
                }
            )

        missing = session.profile.missing_fields()
        if missing:
            prompt = FIELD_PROMPTS[missing[0]]
            if missing[0] == "display_name":
                prompt = f"{prompt} {OPTIONAL_FIELDS_HINT}"
            return result.model_copy(update={"prompt": prompt})
        return result


def _validation_message(error: PydanticValidationError) -> str:
    """First validator message without pydantic's prefix."""
    message = error.errors()[0]["msg"]
    return message.removeprefix("Value error, ")
