"""Core functionality for the Steam OIDC bridge."""

from .decorators import track_operation
from .exceptions import (
    AssertionVerificationError,
    InvalidClientError,
    InvalidGrantError,
    InvalidRequestError,
    InvalidTokenError,
    OIDCError,
    OpenIDDiscoveryError,
    ProfileFetchError,
    ServerError,
    SessionCorrelationError,
    SigningKeyError,
    SteamBridgeError,
    SteamOIDCError,
    UnauthorizedClientError,
    UnsupportedResponseTypeError,
)
from .logging import configure_logging, logger, request_id_ctx

__all__ = [
    # Core
    "configure_logging",
    "logger",
    "request_id_ctx",
    "track_operation",
    # Exceptions
    "AssertionVerificationError",
    "InvalidClientError",
    "InvalidGrantError",
    "InvalidRequestError",
    "InvalidTokenError",
    "OIDCError",
    "OpenIDDiscoveryError",
    "ProfileFetchError",
    "ServerError",
    "SessionCorrelationError",
    "SigningKeyError",
    "SteamBridgeError",
    "SteamOIDCError",
    "UnauthorizedClientError",
    "UnsupportedResponseTypeError",
]
