"""Sentry error reporting. No-op unless SENTRY_DSN is set."""

import logging

import sentry_sdk

from services.roadside.config import settings

logger = logging.getLogger(__name__)


def setup_sentry() -> bool:
    if not settings.sentry_dsn:
        return False
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"{settings.app_name}@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )
    logger.info("Sentry enabled (environment=%s)", settings.environment)
    return True
