"""Application layer DI providers."""

from dishka import Scope, provide

from onboard.application.usecase.invitation import (
    CancelInvitationUseCase,
    CreateInvitationUseCase,
    ListInvitationsUseCase,
    ValidateInvitationUseCase,
)
from onboard.application.usecase.maintenance import SweepExpiredUseCase
from onboard.application.usecase.member import GetMemberUseCase, ListMembersUseCase
from onboard.application.usecase.registration import (
    CancelRegistrationUseCase,
    GetRegistrationUseCase,
    StartRegistrationUseCase,
    SubmitStepUseCase,
)
from onboard.domain.service import InvitationLedger, MemberService, RegistrationService
from onboard.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Application use cases provider - concrete, no mocks needed."""

    scope = Scope.REQUEST

    # Registration use cases
    @provide
    def get_start_registration_use_case(
        self, registration_service: RegistrationService
    ) -> StartRegistrationUseCase:
        return StartRegistrationUseCase(registration_service=registration_service)

    @provide
    def get_submit_step_use_case(
        self, registration_service: RegistrationService
    ) -> SubmitStepUseCase:
        return SubmitStepUseCase(registration_service=registration_service)

    @provide
    def get_cancel_registration_use_case(
        self, registration_service: RegistrationService
    ) -> CancelRegistrationUseCase:
        return CancelRegistrationUseCase(registration_service=registration_service)

    @provide
    def get_get_registration_use_case(
        self, registration_service: RegistrationService
    ) -> GetRegistrationUseCase:
        return GetRegistrationUseCase(registration_service=registration_service)

    # Invitation use cases
    @provide
    def get_create_invitation_use_case(
        self, invitation_ledger: InvitationLedger
    ) -> CreateInvitationUseCase:
        return CreateInvitationUseCase(invitation_ledger=invitation_ledger)

    @provide
    def get_cancel_invitation_use_case(
        self, invitation_ledger: InvitationLedger
    ) -> CancelInvitationUseCase:
        return CancelInvitationUseCase(invitation_ledger=invitation_ledger)

    @provide
    def get_list_invitations_use_case(
        self, invitation_ledger: InvitationLedger
    ) -> ListInvitationsUseCase:
        return ListInvitationsUseCase(invitation_ledger=invitation_ledger)

    @provide
    def get_validate_invitation_use_case(
        self, invitation_ledger: InvitationLedger
    ) -> ValidateInvitationUseCase:
        return ValidateInvitationUseCase(invitation_ledger=invitation_ledger)

    # Member use cases
    @provide
    def get_get_member_use_case(self, member_service: MemberService) -> GetMemberUseCase:
        return GetMemberUseCase(member_service=member_service)

    @provide
    def get_list_members_use_case(
        self, member_service: MemberService
    ) -> ListMembersUseCase:
        return ListMembersUseCase(member_service=member_service)

    # Maintenance use cases
    @provide
    def get_sweep_expired_use_case(
        self,
        invitation_ledger: InvitationLedger,
        registration_service: RegistrationService,
    ) -> SweepExpiredUseCase:
        return SweepExpiredUseCase(
            invitation_ledger=invitation_ledger,
            registration_service=registration_service,
        )
