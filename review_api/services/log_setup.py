"""structlog configuration, applied once at startup."""

from __future__ import annotations

import logging

import structlog

# Third-party loggers that are chatty at INFO
_SUPPRESSED_LOGGERS = ("httpx", "httpcore")

_configured = False


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Set the level filter and renderer for every ``structlog.get_logger()``.

    Idempotent: the second call is a no-op.
    """
    global _configured
    if _configured:
        return
    _configured = True

    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(message)s")
    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )
