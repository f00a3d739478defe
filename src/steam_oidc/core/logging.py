"""Logging configuration for the Steam OIDC bridge."""

import logging
import os
import sys
from contextvars import ContextVar

# Context variable to store request_id across async calls
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Logging filter that adds request_id to log records."""

    def filter(self, record):
        """Add request_id to the log record if available."""
        request_id = request_id_ctx.get()
        record.request_id = f"[{request_id}] " if request_id else ""
        return True


def configure_logging() -> logging.Logger:
    """Configure and return the logger for the application."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] [%(name)s] %(request_id)s%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    logger = logging.getLogger("steam_oidc")

    # httpx logs full request URLs at INFO; the Steam Web API key is a query parameter
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    request_filter = RequestIdFilter()
    for handler in logging.root.handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(request_filter)

    if os.getenv("LOG_DEBUG", "").lower() in ("true", "1", "yes"):
        logger.setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled")

    return logger


# Initialize logger
logger = configure_logging()
