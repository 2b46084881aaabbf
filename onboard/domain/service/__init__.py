"""Domain services for community onboarding."""

from .base import Service
from .identity_verifier import IdentityClient, IdentityVerifier
from .invitation_ledger import InvitationLedger, SweepResult
from .member_service import MemberService
from .registration_service import RegistrationService, SessionSweepResult, StepResult
from .reputation import ReputationEngine, calculate_reputation

__all__ = [
    "Service",
    "IdentityClient",
    "IdentityVerifier",
    "InvitationLedger",
    "SweepResult",
    "MemberService",
    "RegistrationService",
    "SessionSweepResult",
    "StepResult",
    "ReputationEngine",
    "calculate_reputation",
]
