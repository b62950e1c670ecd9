"""Shared sanitisation helpers for log output."""

from __future__ import annotations

import re

_BEARER_RE = re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/%]+=*", re.IGNORECASE)
_TOKEN_QUERY_RE = re.compile(
    r"(?i)(connectionToken|token|refresh_token|access_token|serial)=([^&\s]+)"
)
_JSON_SECRET_RE = re.compile(
    r'(?i)"(access_token|refresh_token|connectionToken)"\s*:\s*"[^"]*"'
)
_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")


def redact_text(value: str | None) -> str:
    """Return ``value`` with bearer tokens, emails and query secrets removed."""

    if not value:
        return ""
    text = str(value)
    redacted = _BEARER_RE.sub("Bearer ***", text)
    redacted = _TOKEN_QUERY_RE.sub(lambda match: f"{match.group(1)}=***", redacted)
    redacted = _JSON_SECRET_RE.sub(
        lambda match: f'"{match.group(1)}": "***"', redacted
    )
    redacted = _EMAIL_RE.sub("***@***", redacted)
    return redacted.replace("authorization", "auth").replace("Authorization", "Auth")


def mask_identifier(value: str | None) -> str:
    """Return a masked serial number suitable for log output."""

    if value is None:
        return ""
    trimmed = str(value).strip()
    if not trimmed:
        return ""
    if len(trimmed) <= 4:
        return "***"
    return f"{trimmed[:2]}...{trimmed[-2:]}"


__all__ = ["mask_identifier", "redact_text"]
