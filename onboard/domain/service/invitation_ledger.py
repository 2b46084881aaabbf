"""Invitation ledger domain service.

The ledger owns invitation codes from creation to their single terminal
transition. Concurrency is handled with optimistic locking only: every
write is a compare-and-swap on the invitation's ``version``, so two
sessions racing for one code resolve without any lock held across an
await, and the loser learns immediately.
"""

import secrets
import string
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import logfire
from pydantic import ValidationError as PydanticValidationError

from onboard.config import InvitationSettings
from onboard.domain.error import (
    InvitationAlreadyConsumedError,
    InvitationExpiredError,
    InvitationNotFoundError,
    InvitationTargetMismatchError,
    IssuerNotAuthorizedError,
    NotFoundError,
    ReservationLostError,
    ValidationError,
)
from onboard.domain.model.invitation import Invitation, mask_code, normalize_chat_handle
from onboard.domain.repository import UnitOfWork, UnitOfWorkFactory
from onboard.domain.value import (
    InvitationCode,
    InvitationId,
    InvitationStatus,
    MemberId,
    MemberStatus,
    ReservationToken,
)
from onboard.domain.value.common import ValueObject

from .base import Service

CODE_ALPHABET = string.ascii_uppercase + string.digits

# Re-reads allowed when a cancel loses its compare-and-swap to a concurrent writer
CANCEL_CAS_RETRIES = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SweepResult(ValueObject):
    """Outcome of one sweep pass."""

    expired: int = 0
    released: int = 0


class InvitationLedger(Service):
    """Domain service for the invitation lifecycle.

    Each operation opens its own short unit of work, except ``commit``,
    which joins the caller's so member creation and acceptance land in one
    transaction.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        settings: InvitationSettings,
        reservation_ttl: timedelta,
    ) -> None:
        """Initialize invitation ledger.

        Args:
            uow_factory: Unit of work factory
            settings: Invitation configuration
            reservation_ttl: Default lifetime of a reservation
        """
        self.uow_factory = uow_factory
        self.settings = settings
        self.reservation_ttl = reservation_ttl

    # ------------------------------------------------------------------
    # Issuer operations
    # ------------------------------------------------------------------

    async def create(
        self,
        issuer_id: MemberId,
        target_handle: str | None = None,
        ttl: timedelta | None = None,
    ) -> Invitation:
        """Create a new invitation with a random, collision-checked code.

        Args:
            issuer_id: Member issuing the invitation
            target_handle: Optional chat handle the invitation is meant for
            ttl: Lifetime, defaults to ``default_ttl_days``

        Returns:
            Created invitation

        Raises:
            IssuerNotAuthorizedError: If the issuer may not issue invitations
            ValidationError: If the TTL is out of range
        """
        with logfire.span("invitation_ledger.create", issuer_id=str(issuer_id)):
            if ttl is None:
                ttl = timedelta(days=self.settings.default_ttl_days)
            max_ttl = timedelta(days=self.settings.max_ttl_days)
            if ttl <= timedelta(0) or ttl > max_ttl:
                raise ValidationError(
                    f"Invitation TTL must be positive and at most "
                    f"{self.settings.max_ttl_days} days"
                )

            async with self.uow_factory() as uow:
                await self._authorize_issuer(uow, issuer_id)

                now = _utcnow()
                if self.settings.enforce_quota and not self._is_admin(issuer_id):
                    pending = await uow.invitations.count_pending_by_issuer(
                        issuer_id, now
                    )
                    if pending >= self.settings.max_pending_per_issuer:
                        logfire.warn(
                            "Invitation quota reached",
                            issuer_id=str(issuer_id),
                            pending=pending,
                        )
                        raise IssuerNotAuthorizedError(
                            str(issuer_id),
                            f"{pending} pending invitations, "
                            f"limit is {self.settings.max_pending_per_issuer}",
                        )

                code = await self._generate_code(uow)
                invitation = Invitation(
                    id=InvitationId(uuid4()),
                    code=code,
                    issuer_id=issuer_id,
                    target_handle=(
                        normalize_chat_handle(target_handle) if target_handle else None
                    ),
                    status=InvitationStatus.PENDING,
                    expires_at=now + ttl,
                    created_at=now,
                    updated_at=now,
                )
                saved = await uow.invitations.add(invitation)

            logfire.info(
                "Invitation created",
                invitation_id=str(saved.id),
                issuer_id=str(issuer_id),
                code=mask_code(saved.code),
                targeted=saved.target_handle is not None,
                expires_at=saved.expires_at.isoformat(),
            )
            return saved

    async def cancel(self, invitation_id: InvitationId, by_issuer: MemberId) -> Invitation:
        """Cancel a pending invitation.

        Cancelling an invitation that is already terminal is a no-op that
        returns it unchanged.

        Raises:
            NotFoundError: If the invitation does not exist
            IssuerNotAuthorizedError: If the caller is neither issuer nor admin
        """
        with logfire.span(
            "invitation_ledger.cancel",
            invitation_id=str(invitation_id),
            by_issuer=str(by_issuer),
        ):
            for _ in range(CANCEL_CAS_RETRIES):
                async with self.uow_factory() as uow:
                    invitation = await uow.invitations.find_by_id(invitation_id)
                    if invitation is None:
                        raise NotFoundError("Invitation", str(invitation_id))
                    if invitation.issuer_id != by_issuer and not self._is_admin(by_issuer):
                        logfire.warn(
                            "Cancel by non-issuer rejected",
                            invitation_id=str(invitation_id),
                            by_issuer=str(by_issuer),
                        )
                        raise IssuerNotAuthorizedError(
                            str(by_issuer), "only the issuer may cancel an invitation"
                        )
                    if invitation.status != InvitationStatus.PENDING:
                        return invitation

                    cancelled = self._transition(
                        invitation,
                        status=InvitationStatus.CANCELLED,
                        reservation_token=None,
                        reserved_until=None,
                    )
                    if await uow.invitations.compare_and_swap(
                        cancelled, invitation.version
                    ):
                        logfire.info(
                            "Invitation cancelled",
                            invitation_id=str(invitation_id),
                            was_reserved=invitation.is_reserved(_utcnow()),
                        )
                        return cancelled

            raise InvitationAlreadyConsumedError(
                invitation.code, "concurrent updates prevented cancellation"
            )

    async def get_by_code(self, code: str) -> Invitation:
        """Look up an invitation by code.

        Raises:
            InvitationNotFoundError: If the code is malformed or unknown
        """
        normalized = self._normalize_code(code)
        async with self.uow_factory() as uow:
            invitation = await uow.invitations.find_by_code(normalized)
        if invitation is None:
            raise InvitationNotFoundError(normalized)
        return invitation

    async def list_by_issuer(
        self,
        issuer_id: MemberId,
        status: InvitationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Invitation]:
        """List an issuer's invitations, newest first."""
        async with self.uow_factory() as uow:
            return await uow.invitations.find_by_issuer(
                issuer_id, status=status, limit=limit, offset=offset
            )

    # ------------------------------------------------------------------
    # Reservation protocol
    # ------------------------------------------------------------------

    async def check_available(
        self, code: str, actor_handle: str | None = None
    ) -> Invitation:
        """Run every reserve check without taking the reservation.

        Raises:
            InvitationNotFoundError, InvitationExpiredError,
            InvitationAlreadyConsumedError, InvitationTargetMismatchError
        """
        with logfire.span("invitation_ledger.check_available", code=mask_code(code)):
            invitation = await self.get_by_code(code)
            self._check_redeemable(invitation, actor_handle, _utcnow())
            return invitation

    async def reserve(
        self,
        code: str,
        actor_handle: str | None = None,
        ttl: timedelta | None = None,
    ) -> ReservationToken:
        """Take the exclusive, short-lived hold on a pending invitation.

        Args:
            code: Invitation code as typed by the user
            actor_handle: Chat handle of the redeeming actor, for targeted codes
            ttl: Reservation lifetime, defaults to the session TTL

        Returns:
            Token proving the hold, presented on refresh, release and commit

        Raises:
            InvitationNotFoundError: If the code is malformed or unknown
            InvitationExpiredError: If the expiry time has passed
            InvitationAlreadyConsumedError: If accepted, cancelled, held by a
                live reservation, or lost to a concurrent reserve
            InvitationTargetMismatchError: If targeted at someone else
        """
        with logfire.span("invitation_ledger.reserve", code=mask_code(code)):
            normalized = self._normalize_code(code)
            ttl = ttl or self.reservation_ttl

            async with self.uow_factory() as uow:
                invitation = await uow.invitations.find_by_code(normalized)
                if invitation is None:
                    logfire.warn("Invitation not found", code=mask_code(normalized))
                    raise InvitationNotFoundError(normalized)

                now = _utcnow()
                self._check_redeemable(invitation, actor_handle, now)

                token = secrets.token_urlsafe(24)
                reserved = self._transition(
                    invitation,
                    reservation_token=token,
                    reserved_until=now + ttl,
                    now=now,
                )
                if not await uow.invitations.compare_and_swap(
                    reserved, invitation.version
                ):
                    logfire.warn(
                        "Reservation lost to concurrent session",
                        invitation_id=str(invitation.id),
                    )
                    raise InvitationAlreadyConsumedError(
                        normalized, "reserved by another session"
                    )

            logfire.info(
                "Invitation reserved",
                invitation_id=str(invitation.id),
                reserved_until=reserved.reserved_until.isoformat(),
            )
            return ReservationToken(
                invitation_id=invitation.id,
                code=normalized,
                token=token,
                expires_at=reserved.reserved_until,
            )

    async def refresh(
        self, token: ReservationToken, ttl: timedelta | None = None
    ) -> ReservationToken:
        """Extend a reservation on user activity.

        Raises:
            ReservationLostError: If the token no longer holds the invitation
        """
        with logfire.span(
            "invitation_ledger.refresh", invitation_id=str(token.invitation_id)
        ):
            ttl = ttl or self.reservation_ttl
            async with self.uow_factory() as uow:
                invitation = await self._held_invitation(uow, token)
                now = _utcnow()
                refreshed = self._transition(
                    invitation, reserved_until=now + ttl, now=now
                )
                if not await uow.invitations.compare_and_swap(
                    refreshed, invitation.version
                ):
                    raise ReservationLostError(token.code)

            return token.model_copy(update={"expires_at": refreshed.reserved_until})

    async def release(self, token: ReservationToken) -> bool:
        """Give the invitation back to plain pending.

        Idempotent: returns False when the token no longer holds anything.
        """
        with logfire.span(
            "invitation_ledger.release", invitation_id=str(token.invitation_id)
        ):
            async with self.uow_factory() as uow:
                invitation = await uow.invitations.find_by_id(token.invitation_id)
                if (
                    invitation is None
                    or invitation.status != InvitationStatus.PENDING
                    or invitation.reservation_token != token.token
                ):
                    return False

                released = self._transition(
                    invitation, reservation_token=None, reserved_until=None
                )
                landed = await uow.invitations.compare_and_swap(
                    released, invitation.version
                )

            if landed:
                logfire.info("Reservation released", invitation_id=str(invitation.id))
            return landed

    async def commit(
        self,
        token: ReservationToken,
        member_id: MemberId,
        uow: UnitOfWork | None = None,
    ) -> Invitation:
        """Accept the invitation on behalf of a newly created member.

        Args:
            token: Reservation held by the registering session
            member_id: Member the invitation admits
            uow: Caller's unit of work; when given, acceptance lands or rolls
                back together with the caller's other writes

        Returns:
            The accepted invitation

        Raises:
            ReservationLostError: If the token no longer holds the invitation
                and it was not already accepted by the same member
        """
        with logfire.span(
            "invitation_ledger.commit",
            invitation_id=str(token.invitation_id),
            member_id=str(member_id),
        ):
            if uow is not None:
                return await self._commit(uow, token, member_id)
            async with self.uow_factory() as own_uow:
                return await self._commit(own_uow, token, member_id)

    async def _commit(
        self, uow: UnitOfWork, token: ReservationToken, member_id: MemberId
    ) -> Invitation:
        current = await uow.invitations.find_by_id(token.invitation_id)
        if (
            current is not None
            and current.status == InvitationStatus.ACCEPTED
            and current.accepted_by_member_id == member_id
        ):
            logfire.info("Invitation already accepted by member", member_id=str(member_id))
            return current

        invitation = await self._held_invitation(uow, token)
        now = _utcnow()
        accepted = self._transition(
            invitation,
            status=InvitationStatus.ACCEPTED,
            accepted_by_member_id=member_id,
            accepted_at=now,
            reservation_token=None,
            reserved_until=None,
            now=now,
        )
        if not await uow.invitations.compare_and_swap(accepted, invitation.version):
            logfire.warn(
                "Invitation changed before commit", invitation_id=str(invitation.id)
            )
            raise ReservationLostError(token.code)

        logfire.info(
            "Invitation accepted",
            invitation_id=str(invitation.id),
            member_id=str(member_id),
        )
        return accepted

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def sweep_expired(self, batch_size: int = 500) -> SweepResult:
        """Expire overdue pending invitations and clear lapsed reservations.

        Every row moves by its own compare-and-swap, so concurrent sweeps
        (or a sweep racing a reserve) never double-apply a transition.
        """
        with logfire.span("invitation_ledger.sweep_expired"):
            now = _utcnow()
            expired = 0
            released = 0

            async with self.uow_factory() as uow:
                for invitation in await uow.invitations.find_overdue_pending(
                    now, limit=batch_size
                ):
                    updated = self._transition(
                        invitation,
                        status=InvitationStatus.EXPIRED,
                        reservation_token=None,
                        reserved_until=None,
                        now=now,
                    )
                    if await uow.invitations.compare_and_swap(
                        updated, invitation.version
                    ):
                        expired += 1

                for invitation in await uow.invitations.find_lapsed_reservations(
                    now, limit=batch_size
                ):
                    updated = self._transition(
                        invitation, reservation_token=None, reserved_until=None, now=now
                    )
                    if await uow.invitations.compare_and_swap(
                        updated, invitation.version
                    ):
                        released += 1

            logfire.info("Invitation sweep finished", expired=expired, released=released)
            return SweepResult(expired=expired, released=released)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_admin(self, member_id: MemberId) -> bool:
        return str(member_id) in self.settings.admin_issuers

    async def _authorize_issuer(self, uow: UnitOfWork, issuer_id: MemberId) -> None:
        if self._is_admin(issuer_id):
            return
        issuer = await uow.members.find_by_id(issuer_id)
        if issuer is None or issuer.deleted_at is not None:
            logfire.warn("Unknown issuer rejected", issuer_id=str(issuer_id))
            raise IssuerNotAuthorizedError(str(issuer_id), "issuer is not a member")
        if issuer.status != MemberStatus.ACTIVE:
            logfire.warn(
                "Inactive issuer rejected",
                issuer_id=str(issuer_id),
                status=issuer.status.value,
            )
            raise IssuerNotAuthorizedError(
                str(issuer_id), f"issuer status is {issuer.status.value}"
            )

    async def _generate_code(self, uow: UnitOfWork) -> str:
        for _ in range(self.settings.max_code_attempts):
            code = "".join(
                secrets.choice(CODE_ALPHABET) for _ in range(self.settings.code_length)
            )
            if not await uow.invitations.code_exists(code):
                return code
            logfire.warn("Invitation code collision", code=mask_code(code))
        raise ValidationError(
            f"Could not generate a unique invitation code in "
            f"{self.settings.max_code_attempts} attempts"
        )

    @staticmethod
    def _normalize_code(code: str) -> str:
        try:
            return InvitationCode(code).root
        except PydanticValidationError:
            raise InvitationNotFoundError(code.strip().upper()) from None

    @staticmethod
    def _check_redeemable(
        invitation: Invitation, actor_handle: str | None, now: datetime
    ) -> None:
        # Expiry wins over stored status: the sweep may not have run yet
        if invitation.is_expired(now):
            raise InvitationExpiredError(invitation.code, invitation.expires_at)
        if invitation.status != InvitationStatus.PENDING:
            raise InvitationAlreadyConsumedError(
                invitation.code, f"invitation is {invitation.status.value}"
            )
        if invitation.is_reserved(now):
            raise InvitationAlreadyConsumedError(
                invitation.code, "a registration with this code is in progress"
            )
        if not invitation.matches_target(actor_handle):
            raise InvitationTargetMismatchError(invitation.code)

    @staticmethod
    async def _held_invitation(uow: UnitOfWork, token: ReservationToken) -> Invitation:
        """Re-read the invitation and check the token still holds it."""
        invitation = await uow.invitations.find_by_id(token.invitation_id)
        if (
            invitation is None
            or invitation.status != InvitationStatus.PENDING
            or invitation.reservation_token != token.token
            or invitation.is_expired(_utcnow())
        ):
            raise ReservationLostError(token.code)
        return invitation

    @staticmethod
    def _transition(
        invitation: Invitation, now: datetime | None = None, **changes: object
    ) -> Invitation:
        """Copy with changes applied and the version bumped."""
        changes["version"] = invitation.version + 1
        changes["updated_at"] = now or _utcnow()
        return invitation.model_copy(update=changes)
