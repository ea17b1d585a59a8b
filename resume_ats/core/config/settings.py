from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    min_document_bytes: int
    max_document_bytes: int
    max_uncompressed_bytes: int
    scoring_config_path: str | None


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    min_document_bytes=_get_env_int("ATS_MIN_DOCUMENT_BYTES", 100),
    max_document_bytes=_get_env_int("ATS_MAX_DOCUMENT_BYTES", 10 * 1024 * 1024),
    max_uncompressed_bytes=_get_env_int("ATS_MAX_UNCOMPRESSED_BYTES", 50 * 1024 * 1024),
    scoring_config_path=_get_env("ATS_SCORING_CONFIG_PATH"),
)

if settings.min_document_bytes < 0 or settings.max_document_bytes <= settings.min_document_bytes:
    raise RuntimeError("ATS_MAX_DOCUMENT_BYTES must be greater than ATS_MIN_DOCUMENT_BYTES.")
