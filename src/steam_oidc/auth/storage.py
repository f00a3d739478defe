"""In-memory stores for the registered client, authorization codes and access tokens.

Nothing here survives a restart. Every store guards its mapping with a lock
so that inserts, deletes and the consume-on-read of authorization codes are
atomic per key.
"""

import secrets
import threading
import time
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from steam_oidc.core.constants import (
    DEFAULT_SCOPE,
    GRANT_TYPE_AUTHORIZATION_CODE,
    RESPONSE_TYPE_CODE,
)

Clock = Callable[[], float]


def generate_secure_token() -> str:
    """Opaque, unguessable token (32 random bytes, hex encoded)."""
    return secrets.token_hex(32)


class RegisteredClient(BaseModel):
    """The single downstream client, created from configuration at startup."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    redirect_uris: frozenset[str]
    grant_types: tuple[str, ...] = (GRANT_TYPE_AUTHORIZATION_CODE,)
    response_types: tuple[str, ...] = (RESPONSE_TYPE_CODE,)
    scope: str = DEFAULT_SCOPE

    def allows_redirect_uri(self, redirect_uri: str | None) -> bool:
        """Exact string match against the allowed set, no normalization."""
        return redirect_uri is not None and redirect_uri in self.redirect_uris


class StoredAuthCode(BaseModel):
    """Authorization code bound to a Steam subject and the requesting client."""

    code: str
    subject_id: str
    client_id: str
    redirect_uri: str
    nonce: str | None = None
    issued_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at < now


class StoredAccessToken(BaseModel):
    """Opaque access token resolving to a Steam subject."""

    token: str
    subject_id: str
    issued_at: float = Field(default_factory=time.time)
    expires_at: float | None = None  # None = no expiry

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at < now


class AuthorizationCodeStore:
    """Single-use authorization codes with lazy expiry."""

    def __init__(self, ttl_seconds: int, clock: Clock = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._codes: dict[str, StoredAuthCode] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._codes)

    def issue(
        self,
        subject_id: str,
        client_id: str,
        redirect_uri: str,
        nonce: str | None = None,
    ) -> StoredAuthCode:
        """Mint and store a fresh code."""
        now = self._clock()
        auth_code = StoredAuthCode(
            code=generate_secure_token(),
            subject_id=subject_id,
            client_id=client_id,
            redirect_uri=redirect_uri,
            nonce=nonce,
            issued_at=now,
            expires_at=now + self.ttl_seconds,
        )
        self.put(auth_code)
        return auth_code

    def put(self, auth_code: StoredAuthCode) -> None:
        with self._lock:
            self._codes[auth_code.code] = auth_code

    def get(self, code: str) -> StoredAuthCode | None:
        """Return the code if present and not expired."""
        with self._lock:
            auth_code = self._codes.get(code)
        if auth_code is None or auth_code.is_expired(self._clock()):
            return None
        return auth_code

    def delete(self, code: str) -> None:
        with self._lock:
            self._codes.pop(code, None)

    def consume(self, code: str) -> StoredAuthCode | None:
        """Atomically remove and return the code.

        The entry is gone after this call whatever the caller decides about
        it. Expired codes are removed and reported as absent.
        """
        with self._lock:
            auth_code = self._codes.pop(code, None)
        if auth_code is None or auth_code.is_expired(self._clock()):
            return None
        return auth_code

    def purge_expired(self) -> int:
        """Drop expired codes; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [c for c, entry in self._codes.items() if entry.is_expired(now)]
            for code in expired:
                del self._codes[code]
        return len(expired)


class AccessTokenStore:
    """Opaque bearer tokens mapped to Steam subjects.

    With ``ttl_seconds=None`` tokens stay valid until deleted.
    """

    def __init__(self, ttl_seconds: int | None = None, clock: Clock = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._tokens: dict[str, StoredAccessToken] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._tokens)

    def issue(self, subject_id: str) -> StoredAccessToken:
        now = self._clock()
        access_token = StoredAccessToken(
            token=generate_secure_token(),
            subject_id=subject_id,
            issued_at=now,
            expires_at=now + self.ttl_seconds if self.ttl_seconds else None,
        )
        self.put(access_token)
        return access_token

    def put(self, access_token: StoredAccessToken) -> None:
        with self._lock:
            self._tokens[access_token.token] = access_token

    def get(self, token: str) -> str | None:
        """Resolve a token to its subject id."""
        with self._lock:
            access_token = self._tokens.get(token)
        if access_token is None or access_token.is_expired(self._clock()):
            return None
        return access_token.subject_id

    def delete(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)

    def purge_expired(self) -> int:
        if self.ttl_seconds is None:
            return 0
        now = self._clock()
        with self._lock:
            expired = [t for t, entry in self._tokens.items() if entry.is_expired(now)]
            for token in expired:
                del self._tokens[token]
        return len(expired)


class ClientStore:
    """client_id -> RegisteredClient, populated once at startup."""

    def __init__(self, *clients: RegisteredClient):
        self._clients: dict[str, RegisteredClient] = {}
        self._lock = threading.Lock()
        for client in clients:
            self.register(client)

    def register(self, client: RegisteredClient) -> None:
        with self._lock:
            self._clients[client.client_id] = client

    def get(self, client_id: str | None) -> RegisteredClient | None:
        if not client_id:
            return None
        with self._lock:
            return self._clients.get(client_id)
