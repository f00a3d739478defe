"""Tests for utils (log redaction and local TLS)."""

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from steam_oidc.utils import format_time_remaining, sanitize, sanitize_secret
from steam_oidc.utils.tls import generate_self_signed_cert


class TestSanitize:
    def test_long_values_keep_edges(self):
        assert sanitize("0123456789abcdef", "code") == "0123****cdef"

    def test_short_values_hidden(self):
        assert sanitize("short", "code") == "code[***]"
        assert sanitize("0123456789", "key") == "key[***]"

    def test_empty(self):
        assert sanitize(None) == "[empty]"
        assert sanitize("") == "[empty]"

    def test_secrets_fully_redacted(self):
        assert sanitize_secret("super-secret-value") == "[REDACTED]"
        assert sanitize_secret(None) == "[empty]"


class TestFormatTimeRemaining:
    def test_minutes_and_seconds(self):
        assert format_time_remaining(1_600.0, now=1_000.0) == "10m 0s"
        assert format_time_remaining(1_075.0, now=1_000.0) == "1m 15s"

    def test_seconds_only(self):
        assert format_time_remaining(1_042.0, now=1_000.0) == "42s"

    def test_expired(self):
        assert format_time_remaining(999.0, now=1_000.0) == "expired"


class TestSelfSignedCert:
    def test_writes_matching_key_and_cert(self, tmp_path):
        key_path, cert_path = generate_self_signed_cert(tmp_path, days=1)

        cert = x509.load_pem_x509_certificate(cert_path.read_bytes())
        key = serialization.load_pem_private_key(key_path.read_bytes(), password=None)

        assert cert.public_key().public_numbers() == key.public_key().public_numbers()
        assert cert.subject == cert.issuer
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        assert "localhost" in san.value.get_values_for_type(x509.DNSName)
