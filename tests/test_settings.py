"""Tests for config.settings."""

import pytest
from pydantic import ValidationError

from steam_oidc.config import Settings, get_settings, reset_settings

from tests.helpers import BASE_URL, CLIENT_SECRET, OTHER_REDIRECT_URI, REDIRECT_URI

ENV_VARS = (
    "BASE_URL",
    "OIDC_CLIENT_ID",
    "OIDC_CLIENT_SECRET",
    "ALLOWED_REDIRECT_URIS",
    "STEAM_API_KEY",
    "SESSION_SECRET",
    "PORT",
    "LOCAL_HTTPS",
    "LOCAL_HTTPS_ENABLED",
    "ENVIRONMENT",
    "ACCESS_TOKEN_TTL_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


def make_settings(**overrides):
    values = {"_env_file": None, "base_url": BASE_URL, "oidc_client_secret": CLIENT_SECRET}
    values.update(overrides)
    return Settings(**values)


class TestRequiredSettings:
    def test_base_url_required(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, oidc_client_secret=CLIENT_SECRET)

    def test_empty_base_url_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(base_url="  ")

    def test_client_secret_required(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, base_url=BASE_URL)

    def test_invalid_port_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(port=70000)


class TestDefaults:
    def test_defaults(self):
        settings = make_settings()

        assert settings.port == 19000
        assert settings.oidc_client_id == "steam-auth-client"
        assert settings.session_name == "steam_auth_session"
        assert settings.authorization_code_ttl_seconds == 600
        assert settings.id_token_ttl_seconds == 3600
        assert settings.access_token_ttl_seconds is None
        assert settings.local_https is False

    def test_random_session_secret_when_unset(self):
        first = make_settings()
        second = make_settings()

        assert first.session_secret
        assert first.session_secret != second.session_secret

    def test_configured_session_secret_kept(self):
        assert make_settings(session_secret="s3cret").session_secret == "s3cret"


class TestDerivedValues:
    def test_issuer_and_realm_are_base_url(self):
        settings = make_settings()

        assert settings.issuer == BASE_URL
        assert settings.steam_realm == BASE_URL

    def test_return_url(self):
        settings = make_settings(base_url=f"{BASE_URL}/")

        assert settings.steam_return_url == f"{BASE_URL}/auth/steam/return"

    def test_redirect_uris_default_to_base_url(self):
        assert make_settings().get_allowed_redirect_uris() == [BASE_URL]

    def test_redirect_uris_split_and_trimmed(self):
        settings = make_settings(
            allowed_redirect_uris=f" {REDIRECT_URI} ,, {OTHER_REDIRECT_URI}"
        )

        assert settings.get_allowed_redirect_uris() == [REDIRECT_URI, OTHER_REDIRECT_URI]

    def test_to_dict_has_no_secrets(self):
        settings = make_settings(steam_api_key="steam-key-value", session_secret="sess-secret-value-xyz")
        exported = str(settings.to_dict())

        assert CLIENT_SECRET not in exported
        assert "steam-key-value" not in exported
        assert "sess-secret-value-xyz" not in exported


class TestEnvironment:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("BASE_URL", BASE_URL)
        monkeypatch.setenv("OIDC_CLIENT_SECRET", CLIENT_SECRET)
        monkeypatch.setenv("ACCESS_TOKEN_TTL_SECONDS", "3600")
        monkeypatch.setenv("LOCAL_HTTPS", "true")

        settings = Settings(_env_file=None)

        assert settings.base_url == BASE_URL
        assert settings.access_token_ttl_seconds == 3600
        assert settings.local_https is True
        assert settings.secure_cookies is True

    def test_local_https_enabled_alias(self, monkeypatch):
        monkeypatch.setenv("BASE_URL", BASE_URL)
        monkeypatch.setenv("OIDC_CLIENT_SECRET", CLIENT_SECRET)
        monkeypatch.setenv("LOCAL_HTTPS_ENABLED", "true")

        settings = Settings(_env_file=None)

        assert settings.local_https is True

    def test_local_https_by_field_name(self):
        settings = make_settings(local_https=True)

        assert settings.local_https is True

    def test_get_settings_is_cached(self, monkeypatch):
        monkeypatch.setenv("BASE_URL", BASE_URL)
        monkeypatch.setenv("OIDC_CLIENT_SECRET", CLIENT_SECRET)
        monkeypatch.chdir("/")

        assert get_settings() is get_settings()


class TestLogConfiguration:
    def test_secrets_redacted(self, caplog):
        settings = make_settings(steam_api_key="ABCD1234567890WXYZ")

        with caplog.at_level("INFO"):
            settings.log_configuration()

        text = caplog.text
        assert CLIENT_SECRET not in text
        assert "ABCD1234567890WXYZ" not in text
        assert "ABCD****WXYZ" in text
        assert "[REDACTED]" in text
