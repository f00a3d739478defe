"""
OpenID Connect authorization engine.

Implements the Authorization Code flow for the single registered client,
with user authentication delegated to Steam through the identity provider
bridge:

- discovery document and JWKS
- authorization request validation
- authorization code issuance after a verified Steam callback
- code exchange for a signed ID token and an opaque access token
- userinfo for bearer access tokens
"""

import asyncio
import hmac
import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import httpx
from pydantic import BaseModel

from steam_oidc.core.constants import (
    GRANT_TYPE_AUTHORIZATION_CODE,
    ID_TOKEN_TTL_SECONDS,
    RESPONSE_TYPE_CODE,
    SIGNING_ALGORITHM,
    SUPPORTED_CLAIMS,
    SUPPORTED_SCOPES,
    TOKEN_TYPE_BEARER,
)
from steam_oidc.core.decorators import track_operation
from steam_oidc.core.exceptions import (
    InvalidClientError,
    InvalidGrantError,
    InvalidRequestError,
    InvalidTokenError,
    ServerError,
    SessionCorrelationError,
    SigningKeyError,
    SteamBridgeError,
    UnauthorizedClientError,
    UnsupportedResponseTypeError,
)
from steam_oidc.utils import format_time_remaining, sanitize

from .keys import SigningKeyProvider
from .session import PendingAuthorization
from .storage import AccessTokenStore, AuthorizationCodeStore, ClientStore

if TYPE_CHECKING:
    from steam_oidc.services.steam import SteamBridge, SteamPlayer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TokenResponse(BaseModel):
    """Token endpoint response."""

    access_token: str
    token_type: str = TOKEN_TYPE_BEARER
    expires_in: int
    id_token: str


class UserInfo(BaseModel):
    """Userinfo endpoint response."""

    sub: str
    name: str
    picture: str
    profile: str


@dataclass(frozen=True)
class AuthorizationRedirect:
    """Result of a validated authorization request."""

    url: str
    pending: PendingAuthorization


def append_query_params(url: str, params: dict[str, str | None]) -> str:
    """Append non-empty query parameters, keeping any already present."""
    result = httpx.URL(url)
    for key, value in params.items():
        if value:
            result = result.copy_add_param(key, value)
    return str(result)


class OIDCProvider:
    """
    OpenID Connect provider backed by Steam sign-in.

    All collaborators are injected; the provider itself only holds the
    issuer and token lifetimes.
    """

    def __init__(
        self,
        issuer: str,
        client_store: ClientStore,
        code_store: AuthorizationCodeStore,
        token_store: AccessTokenStore,
        key_provider: SigningKeyProvider,
        bridge: "SteamBridge",
        id_token_ttl_seconds: int = ID_TOKEN_TTL_SECONDS,
        upstream_timeout_seconds: float | None = 10.0,
    ):
        """
        Initialize the provider.

        Args:
            issuer: Issuer URL, also the base of every endpoint URL
            client_store: Registered client lookup
            code_store: Authorization code store
            token_store: Access token store
            key_provider: ID token signing key
            bridge: Steam identity provider bridge
            id_token_ttl_seconds: ID token lifetime, reported as expires_in
                when access tokens do not expire
            upstream_timeout_seconds: Bound on each call to Steam or the signer
        """
        self.issuer = issuer
        self.client_store = client_store
        self.code_store = code_store
        self.token_store = token_store
        self.key_provider = key_provider
        self.bridge = bridge
        self.id_token_ttl_seconds = id_token_ttl_seconds
        self.upstream_timeout_seconds = upstream_timeout_seconds

    @property
    def _base(self) -> str:
        return self.issuer.rstrip("/")

    def get_discovery_document(self) -> dict:
        """
        Get the OpenID Provider Metadata document.

        Returns:
            Discovery document
        """
        return {
            "issuer": self.issuer,
            "authorization_endpoint": f"{self._base}/authorize",
            "token_endpoint": f"{self._base}/token",
            "userinfo_endpoint": f"{self._base}/userinfo",
            "jwks_uri": f"{self._base}/.well-known/jwks.json",
            "response_types_supported": [RESPONSE_TYPE_CODE],
            "subject_types_supported": ["public"],
            "id_token_signing_alg_values_supported": [SIGNING_ALGORITHM],
            "scopes_supported": list(SUPPORTED_SCOPES),
            "token_endpoint_auth_methods_supported": ["client_secret_post"],
            "claims_supported": list(SUPPORTED_CLAIMS),
            "grant_types_supported": [GRANT_TYPE_AUTHORIZATION_CODE],
        }

    def get_jwks(self) -> dict:
        return self.key_provider.jwks()

    async def _call_upstream(self, awaitable: Awaitable[T], action: str) -> T:
        """Await a Steam or signing call, mapping every failure to ServerError."""
        try:
            return await asyncio.wait_for(awaitable, self.upstream_timeout_seconds)
        except TimeoutError as e:
            logger.error("Timed out while %s", action)
            raise ServerError(f"Timed out while {action}") from e
        except (SteamBridgeError, SigningKeyError) as e:
            logger.error("Failed while %s: %s", action, e)
            raise ServerError(f"Failed while {action}") from e

    @track_operation("authorize")
    async def authorize(
        self,
        client_id: str | None,
        redirect_uri: str | None,
        response_type: str | None,
        scope: str | None = None,
        state: str | None = None,
        nonce: str | None = None,
    ) -> AuthorizationRedirect:
        """
        Validate an authorization request and build the Steam redirect.

        The caller must store the returned pending request in the user
        agent's session before redirecting.

        Raises:
            UnauthorizedClientError: unknown client_id
            InvalidRequestError: redirect_uri not registered for the client
            UnsupportedResponseTypeError: response_type other than ``code``
            ServerError: the Steam redirect could not be built
        """
        client = self.client_store.get(client_id)
        if not client:
            raise UnauthorizedClientError("Invalid client_id")

        if not client.allows_redirect_uri(redirect_uri):
            raise InvalidRequestError("Invalid redirect_uri")

        if response_type != RESPONSE_TYPE_CODE:
            raise UnsupportedResponseTypeError("Invalid response_type")

        auth_url = await self._call_upstream(
            self.bridge.build_authentication_redirect(),
            "generating the Steam auth URL",
        )

        pending = PendingAuthorization(
            client_id=client.client_id,
            redirect_uri=redirect_uri,
            state=state,
            nonce=nonce,
        )
        logger.info(
            "Authorization request accepted for client %s (scope=%r)",
            client.client_id,
            scope,
        )
        return AuthorizationRedirect(url=auth_url, pending=pending)

    @track_operation("steam_callback")
    async def verify_callback(self, params: dict[str, str]) -> str:
        """
        Verify the Steam callback parameters.

        Returns:
            Steam ID of the authenticated user

        Raises:
            ServerError: verification failed or timed out
        """
        return await self._call_upstream(
            self.bridge.verify_callback(params),
            "verifying the Steam assertion",
        )

    def complete_authorization(
        self, subject_id: str, pending: PendingAuthorization | None
    ) -> str:
        """
        Mint an authorization code for a verified Steam subject.

        Args:
            subject_id: Steam ID recovered from the callback
            pending: Request stored in the session by ``authorize``

        Returns:
            Redirect URL to the client carrying ``code`` and ``state``

        Raises:
            SessionCorrelationError: pending request missing or incomplete
        """
        if pending is None or not pending.client_id or not pending.redirect_uri:
            logger.error("Missing OIDC session data")
            raise SessionCorrelationError("Missing OIDC session data")

        auth_code = self.code_store.issue(
            subject_id=subject_id,
            client_id=pending.client_id,
            redirect_uri=pending.redirect_uri,
            nonce=pending.nonce,
        )
        logger.info(
            "Issued authorization code %s for client %s (expires in %s)",
            sanitize(auth_code.code, "code"),
            pending.client_id,
            format_time_remaining(auth_code.expires_at),
        )
        return append_query_params(
            pending.redirect_uri, {"code": auth_code.code, "state": pending.state}
        )

    @track_operation("token")
    async def exchange_code(
        self,
        grant_type: str | None,
        code: str | None,
        redirect_uri: str | None,
        client_id: str | None,
        client_secret: str | None,
    ) -> TokenResponse:
        """
        Exchange an authorization code for tokens.

        The code is removed from the store as soon as it is looked up, so
        a code can be exchanged at most once even under concurrent requests.

        Raises:
            InvalidGrantError: wrong grant type, or unknown, expired,
                foreign or redirect-mismatched code
            InvalidClientError: unknown client or wrong secret
            ServerError: profile fetch or signing failed
        """
        if grant_type != GRANT_TYPE_AUTHORIZATION_CODE:
            raise InvalidGrantError("Unsupported grant_type")

        client = self.client_store.get(client_id)
        if not client or not client_secret or not hmac.compare_digest(
            client.client_secret.encode("utf-8"), client_secret.encode("utf-8")
        ):
            raise InvalidClientError("Invalid client credentials")

        auth_code = self.code_store.consume(code) if code else None
        if not auth_code or auth_code.client_id != client.client_id:
            raise InvalidGrantError()

        if auth_code.redirect_uri != redirect_uri:
            raise InvalidGrantError("redirect_uri does not match the authorization request")

        player = await self._call_upstream(
            self.bridge.fetch_profile(auth_code.subject_id),
            "fetching the Steam profile",
        )
        id_token = await self._call_upstream(
            asyncio.to_thread(
                self.key_provider.sign,
                self._id_token_claims(player, client.client_id, auth_code.nonce),
            ),
            "signing the ID token",
        )
        access_token = self.token_store.issue(auth_code.subject_id)

        logger.info(
            "Issued tokens for subject %s to client %s",
            auth_code.subject_id,
            client.client_id,
        )
        return TokenResponse(
            access_token=access_token.token,
            expires_in=self.token_store.ttl_seconds or self.id_token_ttl_seconds,
            id_token=id_token,
        )

    def _id_token_claims(
        self, player: "SteamPlayer", client_id: str, nonce: str | None
    ) -> dict:
        issued_at = int(time.time())
        claims = {
            "iss": self.issuer,
            "sub": player.steamid,
            "aud": client_id,
            "iat": issued_at,
            "exp": issued_at + self.id_token_ttl_seconds,
            "name": player.personaname,
            "picture": player.avatarfull,
            "profile": player.profileurl,
        }
        if nonce:
            claims["nonce"] = nonce
        return claims

    def validate_access_token(self, token: str) -> str | None:
        """
        Validate an access token.

        Returns:
            Subject id if the token is known, None otherwise
        """
        return self.token_store.get(token)

    @track_operation("userinfo")
    async def userinfo(self, authorization: str | None) -> UserInfo:
        """
        Resolve an ``Authorization: Bearer`` header to the user's claims.

        Raises:
            InvalidTokenError: header missing, malformed or token unknown
            ServerError: profile fetch failed
        """
        if not authorization or not authorization.startswith("Bearer "):
            raise InvalidTokenError("Missing or invalid Authorization header")

        token = authorization[7:]
        subject_id = self.validate_access_token(token) if token else None
        if not subject_id:
            raise InvalidTokenError()

        player = await self._call_upstream(
            self.bridge.fetch_profile(subject_id),
            "fetching the Steam profile",
        )
        return UserInfo(
            sub=player.steamid,
            name=player.personaname,
            picture=player.avatarfull,
            profile=player.profileurl,
        )
