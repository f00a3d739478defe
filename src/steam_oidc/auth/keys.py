"""
Signing key material for ID tokens.

One RSA key pair is held for the whole process lifetime. The private half
only ever leaves this module as a signature; the public half is exported
as a JWK for the discovery document.
"""

import base64
import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt
from jose.exceptions import JOSEError

from steam_oidc.core.constants import SIGNING_ALGORITHM
from steam_oidc.core.exceptions import SigningKeyError

logger = logging.getLogger(__name__)


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class SigningKeyProvider:
    """Holds the RS256 signing key pair."""

    def __init__(self, private_key: rsa.RSAPrivateKey):
        self._private_pem = private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode("utf-8")
        public_pem = (
            private_key.public_key()
            .public_bytes(
                serialization.Encoding.PEM,
                serialization.PublicFormat.SubjectPublicKeyInfo,
            )
            .decode("utf-8")
        )

        exported = jwk.construct(public_pem, algorithm=SIGNING_ALGORITHM).to_dict()
        self.kid = self._thumbprint(exported["n"], exported["e"])
        self._public_jwk = {
            "kty": "RSA",
            "use": "sig",
            "alg": SIGNING_ALGORITHM,
            "kid": self.kid,
            "n": exported["n"],
            "e": exported["e"],
        }

    @classmethod
    def generate(cls, key_size: int = 2048) -> "SigningKeyProvider":
        """Generate a fresh key pair."""
        try:
            private_key = rsa.generate_private_key(
                public_exponent=65537, key_size=key_size
            )
        except Exception as e:
            msg = f"Failed to generate signing key: {e}"
            raise SigningKeyError(msg) from e

        provider = cls(private_key)
        logger.info("Generated %d-bit RSA signing key (kid=%s)", key_size, provider.kid)
        return provider

    @classmethod
    def from_pem_file(cls, path: str | Path) -> "SigningKeyProvider":
        """Load an unencrypted RSA private key from a PEM file."""
        try:
            data = Path(path).read_bytes()
            private_key = serialization.load_pem_private_key(data, password=None)
        except (OSError, ValueError, TypeError) as e:
            msg = f"Failed to load signing key from {path}: {e}"
            raise SigningKeyError(msg) from e

        if not isinstance(private_key, rsa.RSAPrivateKey):
            msg = f"Signing key in {path} is not an RSA key"
            raise SigningKeyError(msg)

        provider = cls(private_key)
        logger.info("Loaded RSA signing key from %s (kid=%s)", path, provider.kid)
        return provider

    @staticmethod
    def _thumbprint(n: str, e: str) -> str:
        """RFC 7638 JWK thumbprint."""
        canonical = json.dumps(
            {"e": e, "kty": "RSA", "n": n}, separators=(",", ":"), sort_keys=True
        )
        return _b64url(hashlib.sha256(canonical.encode("utf-8")).digest())

    def public_jwk(self) -> dict[str, str]:
        return dict(self._public_jwk)

    def jwks(self) -> dict[str, list[dict[str, str]]]:
        """JSON Web Key Set with the single public key."""
        return {"keys": [self.public_jwk()]}

    def sign(self, claims: dict[str, Any]) -> str:
        """Sign ``claims`` as a compact RS256 JWS."""
        try:
            return jwt.encode(
                claims,
                self._private_pem,
                algorithm=SIGNING_ALGORITHM,
                headers={"kid": self.kid},
            )
        except JOSEError as e:
            msg = f"Failed to sign token: {e}"
            raise SigningKeyError(msg) from e
