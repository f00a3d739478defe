"""Protocol constants for the Steam OIDC bridge."""

from typing import Final

# ========================================
# OpenID Connect
# ========================================
SIGNING_ALGORITHM: Final[str] = "RS256"
RESPONSE_TYPE_CODE: Final[str] = "code"
GRANT_TYPE_AUTHORIZATION_CODE: Final[str] = "authorization_code"
TOKEN_TYPE_BEARER: Final[str] = "Bearer"
DEFAULT_SCOPE: Final[str] = "openid profile"

SUPPORTED_SCOPES: Final[list[str]] = ["openid", "profile"]
SUPPORTED_CLAIMS: Final[list[str]] = [
    "sub",
    "iss",
    "aud",
    "exp",
    "iat",
    "name",
    "picture",
    "profile",
]

AUTHORIZATION_CODE_TTL_SECONDS: Final[int] = 600
ID_TOKEN_TTL_SECONDS: Final[int] = 3600

# Session key holding the pending authorization request
SESSION_PENDING_KEY: Final[str] = "oidc"

# ========================================
# OpenID 2.0 / Steam
# ========================================
OPENID_NS: Final[str] = "http://specs.openid.net/auth/2.0"
OPENID_SERVER_TYPE: Final[str] = "http://specs.openid.net/auth/2.0/server"
OPENID_IDENTIFIER_SELECT: Final[str] = (
    "http://specs.openid.net/auth/2.0/identifier_select"
)
XRDS_CONTENT_TYPE: Final[str] = "application/xrds+xml"

STEAM_OPENID_URL: Final[str] = "https://steamcommunity.com/openid"
STEAM_API_URL: Final[str] = "https://api.steampowered.com"
STEAM_CALLBACK_PATH: Final[str] = "/auth/steam/return"

HTTP_OK: Final[int] = 200
