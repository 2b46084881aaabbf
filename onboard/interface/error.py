"""Interface layer errors.

Domain errors cross the HTTP boundary as JSON problem bodies. The status
code follows the error's category, so new domain errors need no changes
here unless they want a more specific status.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from onboard.domain.error import (
    DomainError,
    ErrorCategory,
    NotFoundError,
    TooManyRegistrationAttemptsError,
    VerificationUnavailableError,
)

CATEGORY_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.USER_CORRECTABLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCategory.CONTENTION: status.HTTP_409_CONFLICT,
    ErrorCategory.INVARIANT_VIOLATION: status.HTTP_409_CONFLICT,
    ErrorCategory.TRANSIENT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCategory.FATAL: status.HTTP_403_FORBIDDEN,
}


def status_for(error: DomainError) -> int:
    """HTTP status for a domain error."""
    if isinstance(error, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, TooManyRegistrationAttemptsError):
        return status.HTTP_429_TOO_MANY_REQUESTS
    return CATEGORY_STATUS.get(error.category, status.HTTP_500_INTERNAL_SERVER_ERROR)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a domain error as ``{"detail", "error", "category"}``."""
    headers = {}
    if isinstance(exc, VerificationUnavailableError):
        headers["Retry-After"] = str(exc.cooldown_seconds)
    elif isinstance(exc, TooManyRegistrationAttemptsError):
        headers["Retry-After"] = str(exc.window_seconds)

    return JSONResponse(
        status_code=status_for(exc),
        content={
            "detail": str(exc),
            "error": type(exc).__name__,
            "category": exc.category.value,
        },
        headers=headers or None,
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Register domain error handlers on the application."""
    app.add_exception_handler(DomainError, domain_error_handler)
