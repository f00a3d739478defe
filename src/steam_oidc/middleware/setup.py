"""
Middleware configuration for the Steam OIDC bridge.

Order matters: Starlette wraps the first entry outermost, so request
logging sees every response, including CORS preflights.
"""

from typing import TYPE_CHECKING

from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from steam_oidc.core import logger

from .request_logging import RequestLoggingMiddleware

if TYPE_CHECKING:
    from steam_oidc.config import Settings


def setup_middleware(settings: "Settings") -> list[Middleware]:
    """
    Configure middleware from settings.

    - RequestLoggingMiddleware (request id and access log)
    - CORSMiddleware (discovery, token and userinfo are called cross-origin)
    - SessionMiddleware (signed cookie carrying the pending authorization)

    Args:
        settings: Application settings

    Returns:
        List of configured Middleware instances
    """
    middleware = [Middleware(RequestLoggingMiddleware)]

    middleware.append(
        Middleware(
            CORSMiddleware,
            allow_origins=settings.get_cors_origins_list(),
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        )
    )

    middleware.append(
        Middleware(
            SessionMiddleware,
            secret_key=settings.session_secret,
            session_cookie=settings.session_name,
            https_only=settings.secure_cookies,
            same_site="lax",
        )
    )
    logger.info(
        "✓ Session middleware enabled (cookie=%s, secure=%s)",
        settings.session_name,
        settings.secure_cookies,
    )

    return middleware
