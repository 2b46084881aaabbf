"""FastAPI application."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

import logfire
from dishka import AsyncContainer
from fastapi import FastAPI

from onboard.application.usecase.maintenance import (
    SweepExpiredRequest,
    SweepExpiredUseCase,
)
from onboard.config import Settings
from onboard.interface.api.routes import health, invitations, members, registrations
from onboard.interface.error import setup_error_handlers
from onboard.util.di.container import create_container, setup_di
from onboard.util.observability import instrument_fastapi


async def run_periodic_sweep(container: AsyncContainer, interval: float) -> None:
    """Sweep expired invitations and sessions until cancelled.

    Sessions live in this process, so only this loop (or a lazy access)
    can time them out.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            async with container() as request_container:
                use_case = await request_container.get(SweepExpiredUseCase)
                await use_case.execute(SweepExpiredRequest())
        except Exception as e:
            # Keep sweeping; the next pass retries whatever this one missed
            logfire.error(
                "Periodic sweep failed",
                error=str(e),
                error_type=type(e).__name__,
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    container: AsyncContainer = app.state.dishka_container
    settings = await container.get(Settings)

    sweeper = None
    if settings.registration.sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            run_periodic_sweep(container, settings.registration.sweep_interval_seconds)
        )

    yield

    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    # Runs provider finalizers (engine disposal)
    await container.close()


def create_app(container: AsyncContainer | None = None) -> FastAPI:
    """Create FastAPI application.

    Note: Logfire should be configured before calling this function.
    In production, start_app.py handles this and uvicorn calls this
    factory. In tests, conftest.py configures it and passes a test
    container.

    Args:
        container: DI container to use; the production container if omitted
    """
    app_instance = FastAPI(
        title="Onboard API",
        description="Invitation-gated member onboarding with GitHub identity verification",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Instrument FastAPI for automatic tracing of HTTP requests
    instrument_fastapi(app_instance)

    # Setup dependency injection
    # Settings are loaded from environment automatically
    setup_di(app_instance, container or create_container())

    setup_error_handlers(app_instance)

    # Register routes
    app_instance.include_router(health.router)
    app_instance.include_router(registrations.router)
    app_instance.include_router(invitations.router)
    app_instance.include_router(members.router)

    return app_instance
