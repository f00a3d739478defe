"""Steam OpenID 2.0 and Web API integration."""

from .bridge import SteamBridge, create_steam_bridge
from .openid import SteamRelyingParty, parse_xrds, subject_id_from_claimed_id
from .profile import SteamPlayer, SteamProfileClient

__all__ = [
    "SteamBridge",
    "SteamPlayer",
    "SteamProfileClient",
    "SteamRelyingParty",
    "create_steam_bridge",
    "parse_xrds",
    "subject_id_from_claimed_id",
]
