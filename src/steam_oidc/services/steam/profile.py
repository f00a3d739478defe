"""Steam Web API client for player profiles."""

import logging

import httpx
from pydantic import BaseModel, ValidationError

from steam_oidc.core.exceptions import ProfileFetchError

logger = logging.getLogger(__name__)

PLAYER_SUMMARIES_PATH = "/ISteamUser/GetPlayerSummaries/v0002/"


class SteamPlayer(BaseModel):
    """Player summary as returned by ``GetPlayerSummaries``."""

    steamid: str
    personaname: str = ""
    profileurl: str = ""
    avatar: str = ""
    avatarmedium: str = ""
    avatarfull: str = ""
    communityvisibilitystate: int | None = None
    profilestate: int | None = None
    lastlogoff: int | None = None
    personastate: int | None = None
    primaryclanid: str | None = None
    timecreated: int | None = None
    personastateflags: int | None = None


class SteamProfileClient:
    """Looks up player summaries with the configured Web API key."""

    def __init__(self, http_client: httpx.AsyncClient, api_key: str | None, api_url: str):
        self.http_client = http_client
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")

    async def get_player_summary(self, steam_id: str) -> SteamPlayer:
        if not self.api_key:
            raise ProfileFetchError("Steam API key not configured.")

        try:
            response = await self.http_client.get(
                f"{self.api_url}{PLAYER_SUMMARIES_PATH}",
                params={"key": self.api_key, "steamids": steam_id},
            )
            response.raise_for_status()
            players = response.json()["response"]["players"]
        except httpx.HTTPStatusError as e:
            msg = f"Steam API returned HTTP {e.response.status_code}"
            raise ProfileFetchError(msg) from e
        except httpx.HTTPError as e:
            msg = f"Steam API request failed: {e}"
            raise ProfileFetchError(msg) from e
        except (ValueError, KeyError, TypeError) as e:
            msg = f"Unexpected Steam API response: {e}"
            raise ProfileFetchError(msg) from e

        for player in players:
            if isinstance(player, dict) and str(player.get("steamid")) == steam_id:
                try:
                    return SteamPlayer.model_validate(player)
                except ValidationError as e:
                    msg = f"Malformed player summary: {e}"
                    raise ProfileFetchError(msg) from e

        raise ProfileFetchError("User not found.")
