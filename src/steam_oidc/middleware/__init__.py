"""Middleware for the Steam OIDC bridge."""

from .request_logging import RequestLoggingMiddleware
from .setup import setup_middleware

__all__ = ["RequestLoggingMiddleware", "setup_middleware"]
