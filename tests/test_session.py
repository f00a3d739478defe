"""Tests for the pending authorization carried in the session."""

from steam_oidc.auth.session import PendingAuthorization, pop_pending, store_pending
from steam_oidc.core.constants import SESSION_PENDING_KEY

from tests.helpers import CLIENT_ID, REDIRECT_URI


def make_pending(**overrides):
    values = {
        "client_id": CLIENT_ID,
        "redirect_uri": REDIRECT_URI,
        "state": "s1",
        "nonce": "n1",
        "created_at": 1_000.0,
    }
    values.update(overrides)
    return PendingAuthorization(**values)


class TestPendingAuthorization:
    def test_session_round_trip(self):
        pending = make_pending()

        assert PendingAuthorization.from_session(pending.to_session()) == pending

    def test_optional_fields_may_be_absent(self):
        pending = PendingAuthorization.from_session(
            {"client_id": CLIENT_ID, "redirect_uri": REDIRECT_URI}
        )

        assert pending.state is None
        assert pending.nonce is None

    def test_expiry(self):
        pending = make_pending()

        assert not pending.is_expired(600, now=1_600.0)
        assert pending.is_expired(600, now=1_600.1)

    def test_expired_record_is_discarded(self):
        data = make_pending().to_session()

        assert PendingAuthorization.from_session(data, 600, now=2_000.0) is None
        assert PendingAuthorization.from_session(data, 600, now=1_100.0) is not None

    def test_malformed_records(self):
        assert PendingAuthorization.from_session(None) is None
        assert PendingAuthorization.from_session("oidc") is None
        assert PendingAuthorization.from_session({"client_id": CLIENT_ID}) is None
        assert (
            PendingAuthorization.from_session({"client_id": "", "redirect_uri": ""})
            is None
        )


class TestSessionHelpers:
    def test_store_then_pop(self):
        session = {}
        pending = make_pending()

        store_pending(session, pending)
        assert SESSION_PENDING_KEY in session

        assert pop_pending(session) == pending
        assert SESSION_PENDING_KEY not in session
        assert pop_pending(session) is None

    def test_store_replaces_previous_request(self):
        session = {}
        store_pending(session, make_pending(state="first"))
        store_pending(session, make_pending(state="second"))

        assert pop_pending(session).state == "second"

    def test_pop_removes_expired_record(self):
        session = {}
        store_pending(session, make_pending(created_at=0.0))

        assert pop_pending(session, ttl_seconds=600) is None
        assert session == {}
