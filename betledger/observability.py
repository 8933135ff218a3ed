"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire

from betledger import __version__
from betledger.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings, app=None) -> bool:
    """
    Initialize Logfire when a token is configured.

    Bridges stdlib logging into Logfire and, when a FastAPI ``app`` is
    passed, instruments its requests. Observability is optional: any
    failure is logged and the caller carries on.

    Args:
        settings: Application settings containing the Logfire token
        app: Optional FastAPI application to instrument

    Returns:
        True if Logfire was configured, False otherwise.
    """
    if not settings.logfire_token:
        logger.debug("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="betledger",
            service_version=__version__,
        )

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        if app is not None:
            logfire.instrument_fastapi(app)

        logger.info("Logfire tracking initialized")
        return True

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        return False
