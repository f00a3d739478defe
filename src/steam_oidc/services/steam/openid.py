"""
OpenID 2.0 relying party for Steam sign-in.

Stateless, strict-mode relying party:
- provider discovery through Yadis/XRDS
- ``checkid_setup`` redirect using identifier select
- verification of positive assertions by direct ``check_authentication``
  requests to the OP endpoint (no associations are kept)

Strict mode rejects assertions whose ``return_to`` does not match the
expected callback URL, whose ``op_endpoint`` differs from the discovered
one, or whose claimed identifier does not resolve to the same endpoint.
Claimed identifiers outside the provider's ``/id/`` namespace are rejected
before any request is made for them.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from urllib.parse import parse_qsl, urlsplit

import httpx

from steam_oidc.core.constants import (
    HTTP_OK,
    OPENID_IDENTIFIER_SELECT,
    OPENID_NS,
    OPENID_SERVER_TYPE,
    XRDS_CONTENT_TYPE,
)
from steam_oidc.core.exceptions import (
    AssertionVerificationError,
    OpenIDDiscoveryError,
)

logger = logging.getLogger(__name__)

OPENID_SIGNON_TYPE = "http://specs.openid.net/auth/2.0/signon"

# Fields that must be covered by openid.signed in a positive assertion
REQUIRED_SIGNED_FIELDS = ("op_endpoint", "return_to", "response_nonce", "assoc_handle")


def parse_xrds(document: str | bytes) -> str | None:
    """Return the OP endpoint advertised in an XRDS document.

    Server (OP identifier) services are preferred over signon services;
    within a type, lower ``priority`` wins.
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError:
        return None

    candidates: list[tuple[int, int, str]] = []
    for service in root.findall(".//{*}Service"):
        types = {(t.text or "").strip() for t in service.findall("{*}Type")}
        uri = service.find("{*}URI")
        if uri is None or not (uri.text or "").strip():
            continue
        if OPENID_SERVER_TYPE in types:
            rank = 0
        elif OPENID_SIGNON_TYPE in types:
            rank = 1
        else:
            continue
        try:
            priority = int(service.get("priority", "0"))
        except ValueError:
            priority = 0
        candidates.append((rank, priority, uri.text.strip()))

    if not candidates:
        return None
    return min(candidates)[2]


def parse_key_value_form(body: str) -> dict[str, str]:
    """Parse an OpenID key-value form response (``key:value`` per line)."""
    result = {}
    for line in body.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            result[key.strip()] = value.strip()
    return result


def subject_id_from_claimed_id(claimed_id: str) -> str:
    """Final path segment of the claimed identifier URL."""
    return urlsplit(claimed_id).path.rstrip("/").rsplit("/", 1)[-1]


class SteamRelyingParty:
    """Stateless OpenID 2.0 relying party."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        realm: str,
        provider_url: str,
        strict: bool = True,
    ):
        self.http_client = http_client
        self.realm = realm
        self.provider_url = provider_url
        self.strict = strict

    @property
    def identifier_namespace(self) -> str:
        """Prefix every claimed identifier issued by the provider starts with."""
        return f"{self.provider_url.rstrip('/')}/id/"

    async def discover(self, identifier: str | None = None) -> str:
        """Resolve an identifier (the provider URL by default) to its OP endpoint."""
        url = identifier or self.provider_url
        headers = {"Accept": XRDS_CONTENT_TYPE}
        try:
            response = await self.http_client.get(
                url, headers=headers, follow_redirects=True
            )
            content_type = response.headers.get("content-type", "")
            location = response.headers.get("x-xrds-location")
            if XRDS_CONTENT_TYPE not in content_type and location:
                response = await self.http_client.get(
                    location, headers=headers, follow_redirects=True
                )
        except httpx.HTTPError as e:
            msg = f"OpenID discovery request to {url} failed: {e}"
            raise OpenIDDiscoveryError(msg) from e

        if response.status_code != HTTP_OK:
            msg = f"OpenID discovery for {url} returned HTTP {response.status_code}"
            raise OpenIDDiscoveryError(msg)

        endpoint = parse_xrds(response.content)
        if not endpoint:
            msg = f"No OpenID 2.0 endpoint found for {url}"
            raise OpenIDDiscoveryError(msg)

        logger.debug("Discovered OP endpoint %s for %s", endpoint, url)
        return endpoint

    async def authentication_url(self, return_url: str) -> str:
        """Build the ``checkid_setup`` URL the user agent must visit."""
        endpoint = await self.discover()
        params = {
            "openid.ns": OPENID_NS,
            "openid.mode": "checkid_setup",
            "openid.claimed_id": OPENID_IDENTIFIER_SELECT,
            "openid.identity": OPENID_IDENTIFIER_SELECT,
            "openid.return_to": return_url,
            "openid.realm": self.realm,
        }
        try:
            auth_url = str(httpx.URL(endpoint).copy_merge_params(params))
        except httpx.InvalidURL as e:
            msg = f"Authentication URL not generated: {e}"
            raise OpenIDDiscoveryError(msg) from e
        if not auth_url:
            raise OpenIDDiscoveryError("Authentication URL not generated.")
        return auth_url

    async def verify_assertion(
        self,
        params: Mapping[str, str],
        expected_return_url: str | None = None,
    ) -> str:
        """Verify a positive assertion and return the claimed identifier.

        Raises:
            AssertionVerificationError: on any failed check
        """
        mode = params.get("openid.mode")
        if mode == "cancel":
            raise AssertionVerificationError("Authentication cancelled by user.")
        if mode == "error":
            msg = f"Provider returned an error: {params.get('openid.error', 'unknown')}"
            raise AssertionVerificationError(msg)
        if mode != "id_res":
            msg = f"Invalid openid.mode: {mode!r}"
            raise AssertionVerificationError(msg)

        if params.get("openid.ns") != OPENID_NS:
            raise AssertionVerificationError("Assertion is not an OpenID 2.0 response.")

        return_to = params.get("openid.return_to")
        if not return_to:
            raise AssertionVerificationError("Assertion is missing openid.return_to.")
        if self.strict:
            self._verify_return_to(return_to, params, expected_return_url)

        claimed_id = params.get("openid.claimed_id")
        if not claimed_id:
            raise AssertionVerificationError("Assertion is missing a claimed identifier.")
        if not claimed_id.startswith(self.identifier_namespace):
            msg = f"Claimed identifier {claimed_id!r} is outside {self.identifier_namespace!r}"
            raise AssertionVerificationError(msg)

        self._verify_signed_fields(params)

        op_endpoint = params.get("openid.op_endpoint")
        try:
            discovered = await self.discover()
            if self.strict and op_endpoint != discovered:
                msg = f"op_endpoint {op_endpoint!r} does not match discovered endpoint"
                raise AssertionVerificationError(msg)
            if self.strict and await self.discover(claimed_id) != op_endpoint:
                msg = f"Claimed identifier {claimed_id!r} is not served by {op_endpoint!r}"
                raise AssertionVerificationError(msg)
        except OpenIDDiscoveryError as e:
            msg = f"Discovery during verification failed: {e}"
            raise AssertionVerificationError(msg) from e

        await self._check_authentication(op_endpoint or discovered, params)
        return claimed_id

    def _verify_return_to(
        self,
        return_to: str,
        params: Mapping[str, str],
        expected_return_url: str | None,
    ) -> None:
        received = urlsplit(return_to)
        if expected_return_url:
            expected = urlsplit(expected_return_url)
            if (received.scheme, received.netloc, received.path) != (
                expected.scheme,
                expected.netloc,
                expected.path,
            ):
                msg = f"return_to {return_to!r} does not match {expected_return_url!r}"
                raise AssertionVerificationError(msg)

        for key, value in parse_qsl(received.query, keep_blank_values=True):
            if params.get(key) != value:
                msg = f"return_to parameter {key!r} does not match the request"
                raise AssertionVerificationError(msg)

    def _verify_signed_fields(self, params: Mapping[str, str]) -> None:
        signed = set((params.get("openid.signed") or "").split(","))
        required = set(REQUIRED_SIGNED_FIELDS)
        if "openid.claimed_id" in params:
            required.add("claimed_id")
        if "openid.identity" in params:
            required.add("identity")
        missing = required - signed
        if missing:
            msg = f"Assertion does not sign {', '.join(sorted(missing))}"
            raise AssertionVerificationError(msg)

    async def _check_authentication(
        self, op_endpoint: str, params: Mapping[str, str]
    ) -> None:
        data = {k: v for k, v in params.items() if k.startswith("openid.")}
        data["openid.mode"] = "check_authentication"
        try:
            response = await self.http_client.post(op_endpoint, data=data)
        except httpx.HTTPError as e:
            msg = f"check_authentication request failed: {e}"
            raise AssertionVerificationError(msg) from e

        if response.status_code != HTTP_OK:
            msg = f"check_authentication returned HTTP {response.status_code}"
            raise AssertionVerificationError(msg)

        result = parse_key_value_form(response.text)
        if result.get("is_valid") != "true":
            raise AssertionVerificationError("Failed to verify assertion.")
