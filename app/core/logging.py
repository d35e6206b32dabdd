"""Logging configuration and setup for the application.

Configures structlog on top of the standard library so every module can emit
event-style log lines (``logger.info("session_created", session_id=...)``)
rendered either for a developer console or as JSON lines in deployed
environments.
"""

import logging
import sys

import structlog

from app.core.config import (
    Environment,
    settings,
)


def _resolve_renderer():
    """Pick the final renderer from LOG_FORMAT and the environment."""
    use_json = settings.LOG_FORMAT.lower() == "json" or settings.APP_ENV in (
        Environment.PRODUCTION,
        Environment.STAGING,
    )
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging() -> None:
    """Configure structlog and the root logger."""
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    # Provider SDKs are chatty at INFO
    for noisy in ("httpx", "httpcore", "google", "urllib3"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.CallsiteParameterAdder(
                {structlog.processors.CallsiteParameter.MODULE}
            ),
            _resolve_renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


setup_logging()

logger = structlog.get_logger("app")
