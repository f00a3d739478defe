"""
Identity provider bridge.

Single entry point for everything the OIDC engine needs from Steam:
the sign-in redirect, verification of the callback, and profile lookups.
Holds no per-request state; the only configuration is the realm and the
callback URL.
"""

import logging
from collections.abc import Mapping

import httpx

from steam_oidc.config import Settings
from steam_oidc.core.exceptions import AssertionVerificationError
from steam_oidc.utils import sanitize

from .openid import SteamRelyingParty, subject_id_from_claimed_id
from .profile import SteamPlayer, SteamProfileClient

logger = logging.getLogger(__name__)


class SteamBridge:
    """Facade over the Steam OpenID relying party and the Web API."""

    def __init__(
        self,
        relying_party: SteamRelyingParty,
        profile_client: SteamProfileClient,
        return_url: str,
    ):
        self.relying_party = relying_party
        self.profile_client = profile_client
        self.return_url = return_url

    async def build_authentication_redirect(self, return_url: str | None = None) -> str:
        """URL of the Steam sign-in page for this relying party."""
        auth_url = await self.relying_party.authentication_url(return_url or self.return_url)
        logger.debug("Generated Steam auth URL: %s", auth_url)
        return auth_url

    async def verify_callback(self, params: Mapping[str, str]) -> str:
        """Verify the Steam callback and return the Steam ID.

        Raises:
            AssertionVerificationError: if verification fails or yields no id
        """
        claimed_id = await self.relying_party.verify_assertion(
            params, expected_return_url=self.return_url
        )
        steam_id = subject_id_from_claimed_id(claimed_id)
        if not steam_id:
            raise AssertionVerificationError("Claimed identifier has no account id.")
        logger.info("Successfully verified Steam ID: %s", steam_id)
        return steam_id

    async def fetch_profile(self, steam_id: str) -> SteamPlayer:
        player = await self.profile_client.get_player_summary(steam_id)
        logger.debug(
            "Fetched profile for %s (key %s)",
            steam_id,
            sanitize(self.profile_client.api_key, "key"),
        )
        return player


def create_steam_bridge(settings: Settings, http_client: httpx.AsyncClient) -> SteamBridge:
    """Build the bridge from configuration."""
    relying_party = SteamRelyingParty(
        http_client=http_client,
        realm=settings.steam_realm,
        provider_url=settings.steam_openid_url,
        strict=True,
    )
    profile_client = SteamProfileClient(
        http_client=http_client,
        api_key=settings.steam_api_key,
        api_url=settings.steam_api_url,
    )
    return SteamBridge(relying_party, profile_client, settings.steam_return_url)
