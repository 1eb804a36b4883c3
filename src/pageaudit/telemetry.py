"""Best-effort crash telemetry backed by Sentry."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import sentry_sdk

from pageaudit import __version__
from pageaudit.core.exceptions import PageAuditError

logger = logging.getLogger(__name__)

_initialized = False

FATAL_LEVEL = "fatal"


def init_telemetry(dsn: Optional[str], environment: str = "production") -> bool:
    """Initialize Sentry when a DSN is configured; return whether it is active."""
    global _initialized
    if not dsn:
        return False
    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            release=f"pageaudit@{__version__}",
            attach_stacktrace=True,
            send_default_pii=False,
        )
    except Exception:
        logger.exception("Failed to initialize telemetry")
        return False
    _initialized = True
    return True


def is_enabled() -> bool:
    return _initialized


def capture_exception(
    error: BaseException,
    *,
    tags: Optional[Mapping[str, str]] = None,
    level: str = "error",
) -> None:
    """Report ``error``; telemetry failures are ignored.

    Errors marked ``is_expected`` are skipped unless reported at the fatal level.
    """
    if level != FATAL_LEVEL and isinstance(error, PageAuditError) and error.is_expected:
        return
    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            scope.set_level(level)
            sentry_sdk.capture_exception(error)
    except Exception:
        logger.exception("Telemetry capture_exception failed")


def capture_breadcrumb(
    message: str,
    *,
    category: str = "lifecycle",
    data: Optional[Mapping[str, Any]] = None,
) -> None:
    """Record a breadcrumb on the current scope."""
    try:
        sentry_sdk.add_breadcrumb(message=message, category=category, data=dict(data or {}))
    except Exception:
        logger.exception("Telemetry capture_breadcrumb failed")
