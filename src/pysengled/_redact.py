"""Helpers for safe debug logging.

pysengled handles account passwords and session tokens, and the session
token doubles as the MQTT client id.  This module redacts those before
they reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pysengled._constants import CLIENT_ID_SUFFIX

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "pwd",
        "password",
        "jsessionid",
        "session",
        "token",
        "session_token",
        "cookie",
        "authorization",
    }
)


def redact_token(token: str | None) -> str:
    """Keep only enough of a session token to tell two sessions apart."""
    if not token:
        return "<none>"
    if len(token) <= 8:
        return "<redacted>"
    return f"{token[:4]}…{token[-2:]}"


def redact_client_id(client_id: str) -> str:
    token, sep, suffix = client_id.rpartition(CLIENT_ID_SUFFIX)
    if not sep:
        return redact_token(client_id)
    return f"{redact_token(token)}{CLIENT_ID_SUFFIX}{suffix}"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
