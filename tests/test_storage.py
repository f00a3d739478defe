"""
Tests for auth.storage.

Covers single-use consumption, lazy expiry, purging and the atomicity of
consume under concurrent access.
"""

import threading

import pytest

from steam_oidc.auth.storage import (
    AccessTokenStore,
    AuthorizationCodeStore,
    ClientStore,
    RegisteredClient,
    generate_secure_token,
)

from tests.helpers import CLIENT_ID, REDIRECT_URI, STEAM_ID, FakeClock


@pytest.fixture
def code_store(clock):
    return AuthorizationCodeStore(600, clock=clock)


class TestGenerateSecureToken:
    def test_tokens_are_64_hex_chars(self):
        token = generate_secure_token()

        assert len(token) == 64
        int(token, 16)

    def test_tokens_are_unique(self):
        assert len({generate_secure_token() for _ in range(100)}) == 100


class TestAuthorizationCodeStore:
    """Authorization codes: single-use, 10 minute lifetime."""

    def test_issue_binds_all_fields(self, code_store, clock):
        auth_code = code_store.issue(STEAM_ID, CLIENT_ID, REDIRECT_URI, "n1")

        assert auth_code.subject_id == STEAM_ID
        assert auth_code.client_id == CLIENT_ID
        assert auth_code.redirect_uri == REDIRECT_URI
        assert auth_code.nonce == "n1"
        assert auth_code.expires_at == clock.now + 600
        assert code_store.get(auth_code.code) == auth_code

    def test_consume_is_single_use(self, code_store):
        auth_code = code_store.issue(STEAM_ID, CLIENT_ID, REDIRECT_URI)

        assert code_store.consume(auth_code.code) == auth_code
        assert code_store.consume(auth_code.code) is None
        assert len(code_store) == 0

    def test_unknown_code_is_absent(self, code_store):
        assert code_store.get("nope") is None
        assert code_store.consume("nope") is None

    def test_expired_code_is_absent(self, code_store, clock):
        auth_code = code_store.issue(STEAM_ID, CLIENT_ID, REDIRECT_URI)
        clock.advance(601)

        assert code_store.get(auth_code.code) is None
        assert code_store.consume(auth_code.code) is None

    def test_code_valid_until_expiry(self, code_store, clock):
        auth_code = code_store.issue(STEAM_ID, CLIENT_ID, REDIRECT_URI)
        clock.advance(600)

        assert code_store.get(auth_code.code) is not None

    def test_expired_code_stays_resident_until_purged(self, code_store, clock):
        code_store.issue(STEAM_ID, CLIENT_ID, REDIRECT_URI)
        clock.advance(601)
        fresh = code_store.issue(STEAM_ID, CLIENT_ID, REDIRECT_URI)

        assert len(code_store) == 2
        assert code_store.purge_expired() == 1
        assert len(code_store) == 1
        assert code_store.get(fresh.code) is not None

    def test_delete(self, code_store):
        auth_code = code_store.issue(STEAM_ID, CLIENT_ID, REDIRECT_URI)
        code_store.delete(auth_code.code)
        code_store.delete(auth_code.code)

        assert code_store.get(auth_code.code) is None

    def test_concurrent_consume_succeeds_once(self):
        store = AuthorizationCodeStore(600)
        auth_code = store.issue(STEAM_ID, CLIENT_ID, REDIRECT_URI)
        results = []
        barrier = threading.Barrier(16)

        def worker():
            barrier.wait()
            results.append(store.consume(auth_code.code))

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(1 for r in results if r is not None) == 1


class TestAccessTokenStore:
    def test_issue_and_resolve(self):
        store = AccessTokenStore()
        access_token = store.issue(STEAM_ID)

        assert store.get(access_token.token) == STEAM_ID
        assert access_token.expires_at is None

    def test_tokens_never_expire_without_ttl(self):
        clock = FakeClock()
        store = AccessTokenStore(clock=clock)
        access_token = store.issue(STEAM_ID)
        clock.advance(10 * 365 * 24 * 3600)

        assert store.get(access_token.token) == STEAM_ID
        assert store.purge_expired() == 0

    def test_ttl_expires_tokens(self):
        clock = FakeClock()
        store = AccessTokenStore(ttl_seconds=3600, clock=clock)
        access_token = store.issue(STEAM_ID)
        clock.advance(3601)

        assert store.get(access_token.token) is None
        assert store.purge_expired() == 1
        assert len(store) == 0

    def test_delete(self):
        store = AccessTokenStore()
        access_token = store.issue(STEAM_ID)
        store.delete(access_token.token)

        assert store.get(access_token.token) is None


class TestClientStore:
    def test_lookup(self, registered_client):
        store = ClientStore(registered_client)

        assert store.get(CLIENT_ID) is registered_client
        assert store.get("other") is None
        assert store.get(None) is None
        assert store.get("") is None

    def test_redirect_uri_exact_match(self, registered_client):
        assert registered_client.allows_redirect_uri(REDIRECT_URI)
        assert not registered_client.allows_redirect_uri(REDIRECT_URI + "/")
        assert not registered_client.allows_redirect_uri(REDIRECT_URI.upper())
        assert not registered_client.allows_redirect_uri(None)

    def test_registered_client_defaults(self):
        client = RegisteredClient(
            client_id="c", client_secret="s", redirect_uris=frozenset({"https://x"})
        )

        assert client.grant_types == ("authorization_code",)
        assert client.response_types == ("code",)
        assert client.scope == "openid profile"
