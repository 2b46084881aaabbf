"""Domain layer errors.

Every error carries an ErrorCategory so callers can react to the class of
failure without matching on concrete types:

- USER_CORRECTABLE: bad format, unknown handle; the user fixes the input
- CONTENTION: invitation already consumed or held; surfaced immediately
- TRANSIENT: external service unavailable; retry later
- INVARIANT_VIOLATION: duplicate handle at commit; resolved by lookup
- FATAL: caller lacks rights; rejected without retry
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from onboard.domain.model.member import Member


class ErrorCategory(str, Enum):
    """Error taxonomy shared by the pipeline and its transport."""

    USER_CORRECTABLE = "user_correctable"
    CONTENTION = "contention"
    TRANSIENT = "transient"
    INVARIANT_VIOLATION = "invariant_violation"
    FATAL = "fatal"


class DomainError(Exception):
    """Base domain error."""

    category: ErrorCategory = ErrorCategory.FATAL


class ValidationError(DomainError):
    """Domain validation error."""

    category = ErrorCategory.USER_CORRECTABLE


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    category = ErrorCategory.USER_CORRECTABLE

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


# ============================================================================
# Invitations
# ============================================================================


class InvitationError(DomainError):
    """Base for invitation ledger errors."""


class IssuerNotAuthorizedError(InvitationError):
    """Raised when a member may not issue or cancel an invitation."""

    category = ErrorCategory.FATAL

    def __init__(self, issuer_id: str, reason: str):
        self.issuer_id = issuer_id
        super().__init__(f"Issuer {issuer_id} is not authorized: {reason}")


class InvitationNotFoundError(NotFoundError, InvitationError):
    """Raised when no invitation matches a code."""

    def __init__(self, code: str):
        super().__init__("Invitation", code[:4] + "...")


class InvitationExpiredError(InvitationError):
    """Raised when an invitation's expiry time has passed."""

    category = ErrorCategory.USER_CORRECTABLE

    def __init__(self, code: str, expired_at: datetime):
        self.expired_at = expired_at
        super().__init__(f"Invitation {code[:4]}... expired at {expired_at.isoformat()}")


class InvitationAlreadyConsumedError(InvitationError):
    """Raised when an invitation is accepted, cancelled or held by another session."""

    category = ErrorCategory.CONTENTION

    def __init__(self, code: str, detail: str):
        self.detail = detail
        super().__init__(f"Invitation {code[:4]}... is not available: {detail}")


class InvitationTargetMismatchError(InvitationError):
    """Raised when a targeted invitation is redeemed by someone else."""

    category = ErrorCategory.CONTENTION

    def __init__(self, code: str):
        super().__init__(f"Invitation {code[:4]}... was issued for a different user")


class ReservationLostError(InvitationError):
    """Raised when a reservation token no longer holds its invitation."""

    category = ErrorCategory.CONTENTION

    def __init__(self, code: str):
        super().__init__(f"Reservation on invitation {code[:4]}... is no longer held")


# ============================================================================
# Identity verification and reputation
# ============================================================================


class IdentityNotFoundError(DomainError):
    """The external identity source has no such handle. Not retryable."""

    category = ErrorCategory.USER_CORRECTABLE

    def __init__(self, handle: str):
        self.handle = handle
        super().__init__(f"GitHub user not found: {handle}")


class ProviderTransientError(DomainError):
    """Rate limit, 5xx or network failure talking to the identity source.

    Raised by identity clients and retried inside IdentityVerifier; it never
    crosses the verifier boundary.
    """

    category = ErrorCategory.TRANSIENT

    def __init__(self, message: str, retry_after: float | None = None):
        self.retry_after = retry_after
        super().__init__(message)


class MalformedProfileError(DomainError):
    """The identity source answered with an unexpected shape."""

    category = ErrorCategory.TRANSIENT


class VerificationUnavailableError(DomainError):
    """Identity could not be verified right now; retry after the cooldown."""

    category = ErrorCategory.TRANSIENT

    def __init__(self, handle: str, cooldown_seconds: int):
        self.handle = handle
        self.cooldown_seconds = cooldown_seconds
        super().__init__(
            f"Identity verification for {handle} is unavailable, "
            f"retry in {cooldown_seconds}s"
        )


class InvalidMetricsError(DomainError):
    """Reputation input contained negative or non-integer counts."""

    category = ErrorCategory.USER_CORRECTABLE


# ============================================================================
# Members and registration
# ============================================================================


class DuplicateRegistrationError(DomainError):
    """A member with this external handle or transport identity exists."""

    category = ErrorCategory.INVARIANT_VIOLATION

    def __init__(self, field: str, value: str, existing: "Member | None" = None):
        self.field = field
        self.value = value
        self.existing = existing
        super().__init__(f"Member already registered with {field}={value}")


class ActorAlreadyRegisteredError(DomainError):
    """The chat identity starting a registration is already a member."""

    category = ErrorCategory.CONTENTION

    def __init__(self, actor_id: str):
        self.actor_id = actor_id
        super().__init__(f"Actor {actor_id} is already a registered member")


class TooManyRegistrationAttemptsError(DomainError):
    """Per-actor start limit reached."""

    category = ErrorCategory.TRANSIENT

    def __init__(self, actor_id: str, window_seconds: int):
        self.window_seconds = window_seconds
        super().__init__(
            f"Too many registration attempts by {actor_id} "
            f"in the last {window_seconds}s"
        )


class SessionNotFoundError(NotFoundError):
    """Raised for unknown or already purged registration sessions."""

    def __init__(self, session_id: str):
        super().__init__("Registration session", session_id)
