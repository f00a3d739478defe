"""Utility functions for the Steam OIDC bridge."""

from .redaction import format_time_remaining, sanitize, sanitize_secret

__all__ = [
    "format_time_remaining",
    "sanitize",
    "sanitize_secret",
]
