"""Observability configuration using Logfire.

Every domain service opens a span per operation and logs outcomes with
keyword attributes:

    with logfire.span("invitation_ledger.reserve", code=mask_code(code)):
        ...
        logfire.info("Invitation reserved", invitation_id=str(invitation.id))

Invitation codes are bearer secrets, so only their prefix is ever logged
(see ``onboard.domain.model.invitation.mask_code``).
"""

import logfire
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from onboard.config import Settings

SECRET_ATTRIBUTES = ["invitation_code", "reservation_token", "github_token"]


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire for observability.

    Cloud sending is enabled when explicitly requested or when a token is
    present; otherwise telemetry stays on the console.

    Args:
        settings: Application settings
    """
    send_to_logfire = settings.observability.send_to_logfire
    if send_to_logfire is None:
        send_to_logfire = bool(settings.observability.logfire_token)

    config_kwargs = {
        "service_name": "onboard",
        "service_version": "0.1.0",
        "environment": settings.environment,
        "send_to_logfire": send_to_logfire,
        "console": logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
        # Codes and reservation tokens are bearer secrets
        "scrubbing": logfire.ScrubbingOptions(extra_patterns=SECRET_ATTRIBUTES),
    }

    if settings.observability.logfire_token:
        config_kwargs["token"] = settings.observability.logfire_token

    logfire.configure(**config_kwargs)

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        debug=settings.debug,
        send_to_logfire=send_to_logfire,
        has_token=bool(settings.observability.logfire_token),
    )


def instrument_fastapi(app: FastAPI) -> None:
    """Instrument the transport API with Logfire.

    Args:
        app: FastAPI application instance
    """
    logfire.instrument_fastapi(app, capture_headers=False)
    logfire.info("FastAPI instrumented")


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Instrument SQLAlchemy engine with Logfire.

    Traces queries and transaction boundaries, which makes the
    reservation compare-and-swap updates visible per registration.

    Args:
        engine: SQLAlchemy async engine
    """
    logfire.instrument_sqlalchemy(
        engine=engine.sync_engine,
        enable_commenter=True,
    )
    logfire.info("SQLAlchemy instrumented")


def instrument_httpx() -> None:
    """Instrument httpx so every GitHub API call gets a span."""
    logfire.instrument_httpx()
    logfire.info("httpx instrumented")
