"""
OIDC route registration.

Creates closure adapters around the handlers in ``auth.routes`` so the
provider and configuration are injected instead of looked up globally.
"""

from typing import TYPE_CHECKING

from starlette.routing import Route

from steam_oidc.core import logger
from steam_oidc.core.constants import STEAM_CALLBACK_PATH

if TYPE_CHECKING:
    from steam_oidc.auth.oidc_server import OIDCProvider
    from steam_oidc.config import Settings


def setup_oidc_routes(provider: "OIDCProvider", settings: "Settings") -> list[Route]:
    """
    Build the OIDC and Steam callback routes.

    Registers:
    - /.well-known/openid-configuration
    - /.well-known/jwks.json
    - /authorize
    - /auth/steam/return
    - /token
    - /userinfo

    Args:
        provider: OIDCProvider instance
        settings: Application settings

    Returns:
        Starlette routes, in registration order
    """
    from steam_oidc.auth.routes import (
        authorize,
        discovery_document,
        jwks,
        steam_callback,
        token_endpoint,
        userinfo_endpoint,
    )

    async def _discovery_document(request):
        return await discovery_document(request, provider)

    async def _jwks(request):
        return await jwks(request, provider)

    async def _authorize(request):
        return await authorize(request, provider)

    async def _steam_callback(request):
        return await steam_callback(
            request, provider, settings.pending_request_ttl_seconds
        )

    async def _token_endpoint(request):
        return await token_endpoint(request, provider)

    async def _userinfo_endpoint(request):
        return await userinfo_endpoint(request, provider)

    routes = [
        Route("/.well-known/openid-configuration", _discovery_document, methods=["GET"]),
        Route("/.well-known/jwks.json", _jwks, methods=["GET"]),
        Route("/authorize", _authorize, methods=["GET"]),
        Route(STEAM_CALLBACK_PATH, _steam_callback, methods=["GET"]),
        Route("/token", _token_endpoint, methods=["POST"]),
        Route("/userinfo", _userinfo_endpoint, methods=["GET"]),
    ]

    logger.info("✓ OIDC endpoints registered (%d routes)", len(routes))
    return routes
