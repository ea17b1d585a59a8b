from __future__ import annotations

import logging

import sentry_sdk

from resume_ats.core.config import settings


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.log_level).upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn)
