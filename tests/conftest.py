"""
Shared pytest fixtures for the Steam OIDC bridge tests.

The Steam bridge is replaced by AsyncMock-based fakes everywhere except in
the services tests, which drive the real relying party and profile client
through httpx.MockTransport.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.testclient import TestClient

from steam_oidc.app import create_app
from steam_oidc.auth import (
    AccessTokenStore,
    AuthorizationCodeStore,
    ClientStore,
    OIDCProvider,
    RegisteredClient,
    SigningKeyProvider,
)
from steam_oidc.config import Settings
from steam_oidc.services.steam import SteamPlayer

from tests.helpers import (
    BASE_URL,
    CLIENT_ID,
    CLIENT_SECRET,
    OTHER_REDIRECT_URI,
    REDIRECT_URI,
    STEAM_AUTH_URL,
    STEAM_ID,
    FakeClock,
)


@pytest.fixture(scope="session")
def key_provider():
    """RSA keys are slow to generate; share one pair per test session."""
    return SigningKeyProvider.generate()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        base_url=BASE_URL,
        oidc_client_id=CLIENT_ID,
        oidc_client_secret=CLIENT_SECRET,
        allowed_redirect_uris=f"{REDIRECT_URI},{OTHER_REDIRECT_URI}",
        steam_api_key="test-steam-api-key",
        session_secret="test-session-secret",
    )


@pytest.fixture
def steam_player():
    return SteamPlayer(
        steamid=STEAM_ID,
        personaname="Gabe",
        profileurl=f"https://steamcommunity.com/profiles/{STEAM_ID}/",
        avatar="https://avatars.example.com/small.jpg",
        avatarmedium="https://avatars.example.com/medium.jpg",
        avatarfull="https://avatars.example.com/full.jpg",
    )


@pytest.fixture
def fake_bridge(steam_player):
    """Steam bridge double with successful defaults."""
    bridge = MagicMock()
    bridge.build_authentication_redirect = AsyncMock(return_value=STEAM_AUTH_URL)
    bridge.verify_callback = AsyncMock(return_value=STEAM_ID)
    bridge.fetch_profile = AsyncMock(return_value=steam_player)
    return bridge


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registered_client():
    return RegisteredClient(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        redirect_uris=frozenset({REDIRECT_URI, OTHER_REDIRECT_URI}),
    )


@pytest.fixture
def provider(registered_client, key_provider, fake_bridge, clock):
    """OIDC provider wired to in-memory stores and the fake bridge."""
    return OIDCProvider(
        issuer=BASE_URL,
        client_store=ClientStore(registered_client),
        code_store=AuthorizationCodeStore(600, clock=clock),
        token_store=AccessTokenStore(clock=clock),
        key_provider=key_provider,
        bridge=fake_bridge,
        upstream_timeout_seconds=1.0,
    )


@pytest.fixture
def app(settings, key_provider, fake_bridge):
    return create_app(settings, key_provider=key_provider, bridge=fake_bridge)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
