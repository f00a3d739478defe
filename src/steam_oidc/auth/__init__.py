"""OpenID Connect provider with Steam-backed sign-in.

Key material, ephemeral stores, session correlation and the authorization
engine, plus the Starlette routes exposing them.
"""

from .keys import SigningKeyProvider
from .oidc_server import AuthorizationRedirect, OIDCProvider, TokenResponse, UserInfo
from .session import PendingAuthorization
from .storage import (
    AccessTokenStore,
    AuthorizationCodeStore,
    ClientStore,
    RegisteredClient,
)

__all__ = [
    "AccessTokenStore",
    "AuthorizationCodeStore",
    "AuthorizationRedirect",
    "ClientStore",
    "OIDCProvider",
    "PendingAuthorization",
    "RegisteredClient",
    "SigningKeyProvider",
    "TokenResponse",
    "UserInfo",
]
