"""Helpers keeping API keys and bearer tokens out of log records."""

import re
from typing import Any

SENSITIVE_KEYS = ("api_key", "apikey", "authorization", "password", "secret", "token", "key")

_SECRET_PATTERNS = [
    (re.compile(r"Bearer\s+[\w\-\.]+"), "Bearer ****"),
    (re.compile(r"sk-[\w\-]{8,}"), "sk-****"),
    (re.compile(r"(key|token|secret|password)=[\w\-\.]+"), r"\1=****"),
]


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def mask_value(value: Any) -> Any:
    """Mask a secret, keeping the edges of long strings recognizable."""
    if isinstance(value, str):
        return f"{value[:4]}...{value[-4:]}" if len(value) > 8 else "****"
    return "[REDACTED]"


def redact_sensitive_data(data: Any) -> Any:
    """Return a copy of ``data`` with values under sensitive keys masked.

    Mappings are walked recursively, including mappings inside lists such
    as header maps or wire message lists. Anything else is returned as is.
    """
    if isinstance(data, dict):
        return {
            key: mask_value(value)
            if _is_sensitive(key) and not isinstance(value, (dict, list))
            else redact_sensitive_data(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive_data(item) for item in data]
    return data


def sanitize_log_message(message: str) -> str:
    """Scrub bearer tokens, ``sk-`` keys and ``key=...`` pairs from free text."""
    for pattern, replacement in _SECRET_PATTERNS:
        message = pattern.sub(replacement, message)
    return message
