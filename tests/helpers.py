"""Constants and small doubles shared by the test modules."""

BASE_URL = "https://auth.example.com"
CLIENT_ID = "steam-auth-client"
CLIENT_SECRET = "test-client-secret-0123456789"
REDIRECT_URI = "https://client.example.com/callback"
OTHER_REDIRECT_URI = "https://client.example.com/alt-callback"
STEAM_ID = "76561197960287930"
STEAM_AUTH_URL = "https://steamcommunity.com/openid/login?openid.mode=checkid_setup"


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, now: float = 1_800_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
