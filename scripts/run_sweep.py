#!/usr/bin/env python3
"""Run one maintenance sweep: expire invitations, time out sessions.

Meant for a scheduler (cron, Kubernetes CronJob). Registration sessions
live in the API process, so a standalone run only expires invitations
and clears lapsed reservations; the API process sweeps its own sessions
in the background.
"""

import argparse
import asyncio
import sys

import logfire

from onboard.application.usecase.maintenance import (
    SweepExpiredRequest,
    SweepExpiredUseCase,
)
from onboard.config import Settings
from onboard.util.di.container import create_container
from onboard.util.logging import get_logger, setup_logging
from onboard.util.observability import configure_logfire

logger = get_logger(__name__)


async def run_sweep(batch_size: int) -> None:
    container = create_container(with_fastapi=False)
    try:
        async with container() as request_container:
            use_case = await request_container.get(SweepExpiredUseCase)
            result = await use_case.execute(SweepExpiredRequest(batch_size=batch_size))
    finally:
        await container.close()

    logger.info(
        "Sweep done: expired=%d released=%d",
        result.expired_invitations,
        result.released_reservations,
    )


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--batch-size", type=int, default=500)
    args = parser.parse_args()

    settings = Settings()
    configure_logfire(settings)
    setup_logging(settings)

    try:
        asyncio.run(run_sweep(args.batch_size))
        return 0
    except Exception as e:
        logfire.error(
            "Sweep failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        raise


if __name__ == "__main__":
    sys.exit(main())
