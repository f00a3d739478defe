"""Application assembly and lifecycle for the Steam OIDC bridge."""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from starlette.applications import Starlette

from steam_oidc.auth import (
    AccessTokenStore,
    AuthorizationCodeStore,
    ClientStore,
    OIDCProvider,
    RegisteredClient,
    SigningKeyProvider,
)
from steam_oidc.auth.setup import setup_oidc_routes
from steam_oidc.config import Settings, get_settings
from steam_oidc.core import logger
from steam_oidc.middleware import setup_middleware
from steam_oidc.services.steam import SteamBridge, create_steam_bridge


@dataclass
class BridgeContext:
    """Everything built once at startup and shared by all requests."""

    settings: Settings
    key_provider: SigningKeyProvider
    client_store: ClientStore
    code_store: AuthorizationCodeStore
    token_store: AccessTokenStore
    http_client: httpx.AsyncClient
    bridge: SteamBridge
    provider: OIDCProvider


def load_signing_key(settings: Settings) -> SigningKeyProvider:
    """Load the configured key or generate one. Failure is fatal."""
    if settings.signing_key_path:
        return SigningKeyProvider.from_pem_file(settings.signing_key_path)
    return SigningKeyProvider.generate()


def build_context(
    settings: Settings,
    key_provider: SigningKeyProvider | None = None,
    http_client: httpx.AsyncClient | None = None,
    bridge: SteamBridge | None = None,
) -> BridgeContext:
    """Wire key material, stores, the Steam bridge and the OIDC engine."""
    key_provider = key_provider or load_signing_key(settings)

    client_store = ClientStore(
        RegisteredClient(
            client_id=settings.oidc_client_id,
            client_secret=settings.oidc_client_secret,
            redirect_uris=frozenset(settings.get_allowed_redirect_uris()),
        )
    )
    code_store = AuthorizationCodeStore(settings.authorization_code_ttl_seconds)
    token_store = AccessTokenStore(settings.access_token_ttl_seconds)

    http_client = http_client or httpx.AsyncClient(
        timeout=settings.upstream_timeout_seconds
    )
    bridge = bridge or create_steam_bridge(settings, http_client)

    provider = OIDCProvider(
        issuer=settings.issuer,
        client_store=client_store,
        code_store=code_store,
        token_store=token_store,
        key_provider=key_provider,
        bridge=bridge,
        id_token_ttl_seconds=settings.id_token_ttl_seconds,
        upstream_timeout_seconds=settings.upstream_timeout_seconds,
    )

    return BridgeContext(
        settings=settings,
        key_provider=key_provider,
        client_store=client_store,
        code_store=code_store,
        token_store=token_store,
        http_client=http_client,
        bridge=bridge,
        provider=provider,
    )


def purge_expired_entries(context: BridgeContext) -> int:
    """Drop expired codes and tokens; returns the number removed."""
    removed = context.code_store.purge_expired() + context.token_store.purge_expired()
    if removed:
        logger.debug(
            "Purged %d expired entries (%d codes, %d tokens remain)",
            removed,
            len(context.code_store),
            len(context.token_store),
        )
    return removed


async def sweep_expired_entries(context: BridgeContext, interval_seconds: float) -> None:
    """Background task: purge expired entries every ``interval_seconds``."""
    while True:
        await asyncio.sleep(interval_seconds)
        purge_expired_entries(context)


def create_app(
    settings: Settings | None = None,
    key_provider: SigningKeyProvider | None = None,
    http_client: httpx.AsyncClient | None = None,
    bridge: SteamBridge | None = None,
) -> Starlette:
    """
    Create the Starlette application.

    Key material is generated (or loaded) here, before any route can be
    served. Collaborators may be injected for testing.
    """
    settings = settings or get_settings()
    context = build_context(settings, key_provider, http_client, bridge)
    owns_http_client = http_client is None

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(
            sweep_expired_entries(context, settings.store_sweep_interval_seconds)
        )
        logger.info("✓ Store sweep every %ss", settings.store_sweep_interval_seconds)
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            if owns_http_client:
                await context.http_client.aclose()
            logger.info("Shut down cleanly")

    app = Starlette(
        routes=setup_oidc_routes(context.provider, settings),
        middleware=setup_middleware(settings),
        lifespan=lifespan,
    )
    app.state.context = context
    return app
