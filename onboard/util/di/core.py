"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from onboard.config import (
    GitHubSettings,
    InvitationSettings,
    RegistrationSettings,
    Settings,
    VerificationSettings,
)
from onboard.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Configuration provider.

    Settings are loaded once from environment variables and the .env file;
    each section is provided on its own so services depend only on theirs.
    """

    scope = Scope.APP

    @provide
    def provide_settings(self) -> Settings:
        return Settings()

    @provide
    def provide_github_settings(self, settings: Settings) -> GitHubSettings:
        return settings.github

    @provide
    def provide_verification_settings(self, settings: Settings) -> VerificationSettings:
        return settings.verification

    @provide
    def provide_invitation_settings(self, settings: Settings) -> InvitationSettings:
        return settings.invitations

    @provide
    def provide_registration_settings(self, settings: Settings) -> RegistrationSettings:
        return settings.registration
