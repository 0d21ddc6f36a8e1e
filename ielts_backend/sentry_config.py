"""
Sentry configuration for error tracking.

Captures unhandled exceptions and the failures swallowed by the login flow.
"""
import sentry_sdk
import structlog
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from ielts_backend.config import Settings

logger = structlog.get_logger()


def configure_sentry(settings: Settings) -> bool:
    """
    Initialize Sentry with FastAPI and SQLAlchemy integrations.

    Does nothing unless SENTRY_DSN is set. Returns whether Sentry was enabled.
    """
    dsn = settings.SENTRY_DSN

    if not dsn:
        logger.info("sentry_disabled", reason="SENTRY_DSN not set")
        return False

    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
        ],
        before_send=scrub_event,
        # Sample rate: capture 10% of transactions for performance monitoring
        traces_sample_rate=0.1,
        environment=settings.ENVIRONMENT,
        release=settings.APP_VERSION,
    )

    logger.info("sentry_enabled", environment=settings.ENVIRONMENT)
    return True


def scrub_event(event, hint):
    """
    Drop OAuth secrets from the captured request before it leaves the process.

    The callback URL carries the single-use authorization code in its query
    string, and the token endpoint body carries the ID token.
    """
    request = event.get("request")
    if request:
        if request.get("query_string"):
            request["query_string"] = "[Filtered]"
        if request.get("data"):
            request["data"] = "[Filtered]"
    return event


def capture_exception(exc_info=None):
    """
    Capture an exception to Sentry.

    Usage:
        try:
            # some code
        except Exception:
            capture_exception()
    """
    if sentry_sdk.get_client().is_active():
        sentry_sdk.capture_exception(exc_info)
