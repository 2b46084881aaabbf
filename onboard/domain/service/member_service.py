"""Member domain service."""

from datetime import datetime, timezone
from uuid import uuid4

import logfire

from onboard.domain.error import DuplicateRegistrationError, NotFoundError
from onboard.domain.model import IdentitySnapshot, Member, ProfileDraft
from onboard.domain.repository import MemberFilter, UnitOfWorkFactory
from onboard.domain.value import (
    MemberId,
    MemberStatus,
    ReputationScore,
    ReservationToken,
    SessionId,
)

from .base import Service
from .invitation_ledger import InvitationLedger


class MemberService(Service):
    """Domain service for member creation and lookup."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        invitation_ledger: InvitationLedger,
        initial_status: MemberStatus = MemberStatus.ACTIVE,
    ) -> None:
        """Initialize member service.

        Args:
            uow_factory: Unit of work factory
            invitation_ledger: Ledger that accepts the invitation on commit
            initial_status: Status given to newly registered members
        """
        self.uow_factory = uow_factory
        self.invitation_ledger = invitation_ledger
        self.initial_status = initial_status

    async def create_if_absent(
        self,
        *,
        profile: ProfileDraft,
        snapshot: IdentitySnapshot,
        reputation: ReputationScore,
        reservation: ReservationToken,
        transport_id: str,
        transport_handle: str | None,
        session_id: SessionId,
    ) -> Member:
        """Create the member and accept its invitation in one transaction.

        If this same session already created the member (a repeated commit
        after a lost response), the existing member is returned unchanged.

        Args:
            profile: Complete, validated profile draft
            snapshot: Verified identity snapshot
            reputation: Score computed from the snapshot
            reservation: Reservation held on the invitation
            transport_id: Chat identity of the registering actor
            transport_handle: Chat handle of the registering actor
            session_id: Registration session performing the commit

        Returns:
            The created (or previously created) member

        Raises:
            DuplicateRegistrationError: If the handle or chat identity
                belongs to a member created elsewhere
            ReservationLostError: If the reservation no longer holds
        """
        with logfire.span(
            "member_service.create_if_absent",
            handle=profile.github_handle,
            session_id=str(session_id),
        ):
            now = datetime.now(timezone.utc)

            async with self.uow_factory() as uow:
                invitation = await uow.invitations.find_by_id(reservation.invitation_id)
                member = Member(
                    id=MemberId(uuid4()),
                    external_handle=profile.github_handle,
                    transport_id=transport_id,
                    transport_handle=transport_handle,
                    display_name=profile.display_name,
                    role=profile.role,
                    organization=profile.organization,
                    country=profile.country,
                    identity_profile=snapshot,
                    identity_verified_at=snapshot.fetched_at,
                    reputation_score=reputation.score,
                    invited_by_member_id=invitation.issuer_id if invitation else None,
                    invitation_id=reservation.invitation_id,
                    registration_session_id=session_id,
                    status=self.initial_status,
                    created_at=now,
                    updated_at=now,
                )

                try:
                    saved = await uow.members.add(member)
                except DuplicateRegistrationError as e:
                    existing = e.existing
                    if existing is not None and existing.registration_session_id == session_id:
                        logfire.info(
                            "Member already created by this session",
                            member_id=str(existing.id),
                        )
                        return existing
                    logfire.warn(
                        "Duplicate registration rejected",
                        field=e.field,
                        value=e.value,
                    )
                    raise

                await self.invitation_ledger.commit(reservation, saved.id, uow=uow)

            logfire.info(
                "Member created",
                member_id=str(saved.id),
                handle=saved.external_handle,
                reputation_score=saved.reputation_score,
                tier=saved.reputation_tier.value,
            )
            return saved

    async def get_by_id(self, member_id: MemberId) -> Member:
        """Get a member by ID.

        Raises:
            NotFoundError: If no such member exists or it was deleted
        """
        with logfire.span("member_service.get_by_id", member_id=str(member_id)):
            async with self.uow_factory() as uow:
                member = await uow.members.find_by_id(member_id)
            if member is None or member.deleted_at is not None:
                logfire.warn("Member not found", member_id=str(member_id))
                raise NotFoundError("Member", str(member_id))
            return member

    async def get_by_handle(self, external_handle: str) -> Member | None:
        async with self.uow_factory() as uow:
            return await uow.members.find_by_handle(external_handle.lower())

    async def get_by_transport_id(self, transport_id: str) -> Member | None:
        async with self.uow_factory() as uow:
            return await uow.members.find_by_transport_id(transport_id)

    async def list_members(self, member_filter: MemberFilter) -> tuple[list[Member], int]:
        """List directory members.

        Returns:
            Page of members and total count ignoring pagination
        """
        with logfire.span("member_service.list_members"):
            async with self.uow_factory() as uow:
                members = await uow.members.search(member_filter)
                total = await uow.members.count(member_filter)
            logfire.info("Members listed", count=len(members), total=total)
            return members, total
