"""Pending authorization requests carried across the Steam round trip.

``/authorize`` stores a :class:`PendingAuthorization` in the user agent's
signed session cookie; the Steam callback reads it back, removes it and
turns it into an authorization code.
"""

import logging
import time
from collections.abc import MutableMapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from steam_oidc.core.constants import SESSION_PENDING_KEY

logger = logging.getLogger(__name__)


class PendingAuthorization(BaseModel):
    """Original OIDC request parameters awaiting the Steam callback."""

    client_id: str
    redirect_uri: str
    state: str | None = None
    nonce: str | None = None
    created_at: float = Field(default_factory=time.time)

    def is_expired(self, ttl_seconds: int, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return current - self.created_at > ttl_seconds

    def to_session(self) -> dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_session(
        cls,
        data: Any,
        ttl_seconds: int | None = None,
        now: float | None = None,
    ) -> "PendingAuthorization | None":
        """Rebuild from session data.

        Returns None when the record is absent, lacks ``client_id`` or
        ``redirect_uri``, is otherwise malformed, or is older than
        ``ttl_seconds``.
        """
        if not isinstance(data, dict):
            return None
        try:
            pending = cls.model_validate(data)
        except ValidationError as e:
            logger.warning("Discarding malformed pending authorization: %s", e)
            return None
        if not pending.client_id or not pending.redirect_uri:
            return None
        if ttl_seconds is not None and pending.is_expired(ttl_seconds, now):
            logger.info("Pending authorization expired")
            return None
        return pending


def store_pending(session: MutableMapping[str, Any], pending: PendingAuthorization) -> None:
    session[SESSION_PENDING_KEY] = pending.to_session()


def pop_pending(
    session: MutableMapping[str, Any], ttl_seconds: int | None = None
) -> PendingAuthorization | None:
    """Remove the pending request from the session and return it if usable."""
    return PendingAuthorization.from_session(
        session.pop(SESSION_PENDING_KEY, None), ttl_seconds
    )
