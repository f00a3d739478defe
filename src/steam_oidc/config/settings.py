"""Configuration settings for the Steam OIDC bridge using Pydantic Settings.

All values are read once at startup from environment variables (or a ``.env``
file) and never change while the process is running.
"""

import logging
import secrets
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from steam_oidc.core.constants import (
    AUTHORIZATION_CODE_TTL_SECONDS,
    ID_TOKEN_TTL_SECONDS,
    STEAM_API_URL,
    STEAM_CALLBACK_PATH,
    STEAM_OPENID_URL,
)
from steam_oidc.utils import sanitize, sanitize_secret

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central configuration management with Pydantic validation.

    ``BASE_URL`` and ``OIDC_CLIENT_SECRET`` are mandatory; startup fails
    without them. Everything else has a usable default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # ========================================
    # Server Settings
    # ========================================
    base_url: str = Field(
        ...,
        description="Public base URL of this service (issuer and OpenID realm)",
    )

    host: str = Field(
        default="0.0.0.0",
        description="Server host address",
    )

    port: int = Field(
        default=19000,
        ge=1,
        le=65535,
        description="Server port number",
    )

    local_https: bool = Field(
        default=False,
        validation_alias=AliasChoices("local_https", "local_https_enabled"),
        description="Serve HTTPS with a generated self-signed certificate",
    )

    environment: str = Field(
        default="development",
        description="Deployment environment; 'production' forces secure cookies",
    )

    log_debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    cors_allow_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    # ========================================
    # Registered Client
    # ========================================
    oidc_client_id: str = Field(
        default="steam-auth-client",
        description="client_id of the single registered downstream client",
    )

    oidc_client_secret: str = Field(
        ...,
        description="client_secret of the registered downstream client",
    )

    allowed_redirect_uris: str | None = Field(
        default=None,
        description="Comma-separated redirect URIs (defaults to BASE_URL)",
    )

    # ========================================
    # Steam Settings
    # ========================================
    steam_api_key: str | None = Field(
        default=None,
        description="Steam Web API key used for profile lookups",
    )

    steam_openid_url: str = Field(
        default=STEAM_OPENID_URL,
        description="Steam OpenID 2.0 discovery endpoint",
    )

    steam_api_url: str = Field(
        default=STEAM_API_URL,
        description="Steam Web API base URL",
    )

    upstream_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout for calls to Steam (handshake, verification, profile)",
    )

    # ========================================
    # Session Settings
    # ========================================
    session_secret: str | None = Field(
        default=None,
        description="Secret used to sign the session cookie",
    )

    session_name: str = Field(
        default="steam_auth_session",
        description="Session cookie name",
    )

    pending_request_ttl_seconds: int = Field(
        default=600,
        ge=30,
        description="Lifetime of a pending authorization request in the session",
    )

    # ========================================
    # Token Settings
    # ========================================
    signing_key_path: str | None = Field(
        default=None,
        description="PEM file with the RSA signing key (generated when unset)",
    )

    authorization_code_ttl_seconds: int = Field(
        default=AUTHORIZATION_CODE_TTL_SECONDS,
        ge=1,
        description="Authorization code lifetime",
    )

    id_token_ttl_seconds: int = Field(
        default=ID_TOKEN_TTL_SECONDS,
        ge=1,
        description="ID token lifetime (also reported as expires_in)",
    )

    access_token_ttl_seconds: int | None = Field(
        default=None,
        ge=1,
        description="Access token lifetime; unset means tokens never expire",
    )

    store_sweep_interval_seconds: int = Field(
        default=60,
        ge=1,
        description="Interval of the background purge of expired entries",
    )

    # ========================================
    # Validators
    # ========================================
    @field_validator("base_url")
    @classmethod
    def require_base_url(cls, v: str) -> str:
        """Reject an empty BASE_URL."""
        if not v or not v.strip():
            msg = "BASE_URL must not be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("session_secret")
    @classmethod
    def default_session_secret(cls, v: str | None) -> str:
        """Fall back to a random per-process secret."""
        if v:
            return v
        logger.warning(
            "SESSION_SECRET is not set; using a random secret. "
            "Sessions will not survive a restart."
        )
        return secrets.token_urlsafe(32)

    # ========================================
    # Derived Values
    # ========================================
    @property
    def issuer(self) -> str:
        return self.base_url

    @property
    def steam_realm(self) -> str:
        return self.base_url

    @property
    def steam_return_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{STEAM_CALLBACK_PATH}"

    @property
    def secure_cookies(self) -> bool:
        return self.environment.lower() == "production" or self.local_https

    # ========================================
    # Helper Methods
    # ========================================
    def get_allowed_redirect_uris(self) -> list[str]:
        """Get allowed redirect URIs as a list (BASE_URL when unset)."""
        if self.allowed_redirect_uris:
            return [
                uri.strip()
                for uri in self.allowed_redirect_uris.split(",")
                if uri.strip()
            ]
        return [self.base_url]

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    def to_dict(self) -> dict[str, Any]:
        """Export settings as a dictionary (safe version without secrets)."""
        return {
            "host": self.host,
            "port": self.port,
            "local_https": self.local_https,
            "environment": self.environment,
            "base_url": self.base_url,
            "issuer": self.issuer,
            "steam_return_url": self.steam_return_url,
            "oidc_client_id": self.oidc_client_id,
            "allowed_redirect_uris": self.get_allowed_redirect_uris(),
            "has_steam_api_key": bool(self.steam_api_key),
            "session_name": self.session_name,
            "signing_key_path": self.signing_key_path,
            "access_token_ttl_seconds": self.access_token_ttl_seconds,
        }

    def log_configuration(self) -> None:
        """Log the effective configuration with secrets redacted."""
        redirect_uris = self.get_allowed_redirect_uris()
        logger.info("=== Steam OIDC Bridge Configuration ===")
        logger.info("Port: %s", self.port)
        logger.info("HTTPS Enabled: %s", self.local_https)
        logger.info("Base URL: %s", self.base_url)
        logger.info("Steam Return URL: %s", self.steam_return_url)
        logger.info("OIDC Issuer: %s", self.issuer)
        logger.info("OIDC Client ID: %s", self.oidc_client_id)
        logger.info("OIDC Client Secret: %s", sanitize_secret(self.oidc_client_secret))
        logger.info("Allowed Redirect URIs: %d configured", len(redirect_uris))
        for index, uri in enumerate(redirect_uris, start=1):
            logger.info("  [%d] %s", index, uri)
        logger.info("Steam API Key: %s", sanitize(self.steam_api_key, "key"))
        logger.info("Session Name: %s", self.session_name)
        logger.info(
            "Access Token TTL: %s",
            f"{self.access_token_ttl_seconds}s"
            if self.access_token_ttl_seconds
            else "none (tokens never expire)",
        )
        logger.info("=======================================")


# Singleton pattern with proper typing
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
        logger.info("Settings initialized from environment")
        if not _settings_instance.steam_api_key:
            logger.warning(
                "STEAM_API_KEY is missing. Token and userinfo requests will fail.",
            )
    return _settings_instance


def reset_settings() -> None:
    """Reset settings instance (useful for testing)."""
    global _settings_instance
    _settings_instance = None
