"""Domain layer DI providers."""

from datetime import timedelta

from dishka import Scope, provide

from onboard.adapter.github import GitHubClient
from onboard.config import InvitationSettings, RegistrationSettings, VerificationSettings
from onboard.domain.repository import RegistrationSessionStore, UnitOfWorkFactory
from onboard.domain.service import (
    IdentityVerifier,
    InvitationLedger,
    MemberService,
    RegistrationService,
    ReputationEngine,
)
from onboard.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Domain services provider - concrete, no mocks needed.

    Domain services are APP-scoped: a registration spans many requests,
    the verifier cache and per-session locks must outlive any one of them,
    and every service opens its own short units of work.
    """

    scope = Scope.APP

    @provide
    def get_reputation_engine(self) -> ReputationEngine:
        return ReputationEngine()

    @provide
    def get_invitation_ledger(
        self,
        uow_factory: UnitOfWorkFactory,
        invitation_settings: InvitationSettings,
        registration_settings: RegistrationSettings,
    ) -> InvitationLedger:
        """Provide invitation ledger; reservations live as long as a session."""
        return InvitationLedger(
            uow_factory=uow_factory,
            settings=invitation_settings,
            reservation_ttl=timedelta(seconds=registration_settings.session_ttl_seconds),
        )

    @provide
    def get_identity_verifier(
        self, github_client: GitHubClient, settings: VerificationSettings
    ) -> IdentityVerifier:
        return IdentityVerifier(client=github_client, settings=settings)

    @provide
    def get_member_service(
        self,
        uow_factory: UnitOfWorkFactory,
        invitation_ledger: InvitationLedger,
        settings: RegistrationSettings,
    ) -> MemberService:
        return MemberService(
            uow_factory=uow_factory,
            invitation_ledger=invitation_ledger,
            initial_status=settings.initial_member_status,
        )

    @provide
    def get_registration_service(
        self,
        invitation_ledger: InvitationLedger,
        identity_verifier: IdentityVerifier,
        reputation_engine: ReputationEngine,
        member_service: MemberService,
        session_store: RegistrationSessionStore,
        settings: RegistrationSettings,
    ) -> RegistrationService:
        """Provide the registration state machine."""
        return RegistrationService(
            invitation_ledger=invitation_ledger,
            identity_verifier=identity_verifier,
            reputation_engine=reputation_engine,
            member_service=member_service,
            session_store=session_store,
            settings=settings,
        )
