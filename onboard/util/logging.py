"""Logging configuration for the onboarding service."""

import logging
import sys

import logfire

from onboard.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure stdlib logging for scripts and third-party libraries.

    Records are written to stdout and forwarded to Logfire, so library
    warnings (SQLAlchemy, uvicorn, alembic) land next to our own spans.

    Args:
        settings: Application settings
    """
    if settings.debug:
        level = logging.DEBUG
    elif settings.environment == "production":
        level = logging.WARNING
    else:
        level = logging.INFO

    stream_handler = logging.StreamHandler(stream=sys.stdout)
    stream_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    logging.basicConfig(
        level=level,
        handlers=[stream_handler, logfire.LogfireLoggingHandler()],
        force=True,  # Override any existing configuration
    )

    # GitHub calls are traced through logfire.instrument_httpx already
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("onboard").setLevel(level)

    logging.getLogger(__name__).info(
        "Logging configured: environment=%s, level=%s",
        settings.environment,
        logging.getLevelName(level),
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__)
    """
    return logging.getLogger(name)
