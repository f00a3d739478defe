"""Custom exceptions for the Steam OIDC bridge."""


class SteamOIDCError(Exception):
    """Base exception for all Steam OIDC bridge errors."""


# ========================================
# OIDC Protocol Errors
# ========================================


class OIDCError(SteamOIDCError):
    """Error reported to the downstream client in OIDC error shape.

    The ``description`` is client-visible and must never carry internal
    exception text.
    """

    error = "server_error"
    status_code = 500
    default_description = "The server encountered an unexpected error"

    def __init__(self, description: str | None = None):
        self.description = description or self.default_description
        super().__init__(f"{self.error}: {self.description}")

    @property
    def headers(self) -> dict[str, str]:
        return {}

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "error_description": self.description}


class UnauthorizedClientError(OIDCError):
    error = "unauthorized_client"
    status_code = 400
    default_description = "Invalid client_id"


class InvalidRequestError(OIDCError):
    error = "invalid_request"
    status_code = 400
    default_description = "Invalid redirect_uri"


class UnsupportedResponseTypeError(OIDCError):
    error = "unsupported_response_type"
    status_code = 400
    default_description = "Invalid response_type"


class InvalidGrantError(OIDCError):
    error = "invalid_grant"
    status_code = 400
    default_description = "Invalid or expired authorization code"


class InvalidClientError(OIDCError):
    error = "invalid_client"
    status_code = 401
    default_description = "Client authentication failed"


class InvalidTokenError(OIDCError):
    error = "invalid_token"
    status_code = 401
    default_description = "Invalid or missing access token"

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": 'Bearer error="invalid_token"'}


class ServerError(OIDCError):
    """Unexpected downstream failure (bridge, profile fetch or signing)."""


# ========================================
# Identity Provider Bridge Errors
# ========================================


class SteamBridgeError(SteamOIDCError):
    """Base exception for Steam OpenID and Web API failures."""


class OpenIDDiscoveryError(SteamBridgeError):
    """OpenID provider discovery or redirect construction failed."""


class AssertionVerificationError(SteamBridgeError):
    """Positive assertion could not be verified."""


class ProfileFetchError(SteamBridgeError):
    """Steam Web API profile lookup failed."""


# ========================================
# Flow and Startup Errors
# ========================================


class SessionCorrelationError(SteamOIDCError):
    """Pending authorization request is missing, corrupt or expired."""


class SigningKeyError(SteamOIDCError):
    """Signing key could not be generated or loaded."""
