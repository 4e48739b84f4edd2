"""
Logging configuration with Sentry.io integration.
"""

import logging
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from .config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Per-request client chatter, shown only in debug mode
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")

# User-facing sprint and catalog errors; these never reach Sentry
EXPECTED_ERRORS = {
    "InvalidTransitionError",
    "TransitionInProgressError",
    "ValidationError",
    "ProblemNotFoundError",
    "AuthError",
}


def drop_expected_errors(
    event: dict[str, Any],
    hint: dict[str, Any]
) -> Optional[dict[str, Any]]:
    """Sentry ``before_send`` hook."""
    exc_info = hint.get("exc_info")
    if exc_info and exc_info[0].__name__ in EXPECTED_ERRORS:
        return None
    return event


def init_sentry(settings: Settings) -> bool:
    """
    Initialize Sentry for the API if a DSN is configured.

    Returns:
        bool: True when Sentry was initialized
    """
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        profiles_sample_rate=settings.sentry_profiles_sample_rate,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR
            ),
        ],
        before_send=drop_expected_errors,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    return True


def setup_logging(
    settings: Settings,
    service_name: str = "studysprint-api"
) -> None:
    """
    Configure application logging and Sentry integration.

    Args:
        settings: Application settings (debug flag and Sentry fields)
        service_name: Name of the service for logging context
    """
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT
    )
    if not settings.debug:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    if init_sentry(settings):
        logging.info(
            f"Sentry initialized for {service_name} in "
            f"{settings.sentry_environment} environment"
        )
    else:
        logging.info(f"Sentry disabled for {service_name} (no DSN provided)")
