"""Helpers for keeping secrets and credentials out of log output."""

import time


def sanitize(value: str | None, label: str = "value") -> str:
    """Mask a sensitive value, keeping only its first and last four characters.

    Values of ten characters or fewer are hidden completely.
    """
    if not value:
        return "[empty]"
    if len(value) <= 10:
        return f"{label}[***]"
    return f"{value[:4]}****{value[-4:]}"


def sanitize_secret(value: str | None) -> str:
    """Fully redact a client secret or password."""
    if not value:
        return "[empty]"
    return "[REDACTED]"


def format_time_remaining(expires_at: float, now: float | None = None) -> str:
    """Human-readable time until ``expires_at`` (epoch seconds)."""
    remaining = expires_at - (time.time() if now is None else now)
    if remaining <= 0:
        return "expired"

    minutes, seconds = divmod(int(remaining), 60)
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"
