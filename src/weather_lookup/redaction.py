"""Keep the WeatherAPI.com access key out of logs and error text.

The key travels as the ``key`` query parameter of every upstream URL, and
httpx puts that URL into its exception messages. Anything that may end up in
a log line goes through ``sanitize_text`` first.
"""

from __future__ import annotations

import re
import threading
from typing import Any

REDACTED = "[REDACTED]"

# Dict keys whose values are never logged.
_SENSITIVE_KEY_RE = re.compile(
    r"^(key|authorization|token|secret|(api|access|weatherapi)[_-]?key)$",
    re.IGNORECASE,
)
_URL_KEY_PARAM_RE = re.compile(r"([?&]key=)[^&\s#\"']+", re.IGNORECASE)
_BEARER_RE = re.compile(r"(?i)\b(bearer)\s+[A-Za-z0-9\-._~+/]+=*")
_ASSIGNED_SECRET_RE = re.compile(
    r"(?i)\b(authorization|token|secret|(?:api|access|weatherapi)[_-]?key)\s*[:=]\s*([^\s,;&]+)"
)

_known_secrets: set[str] = set()
_secrets_lock = threading.Lock()


def register_secret(value: str | None) -> None:
    """Redact every literal occurrence of ``value`` from now on."""
    if value and len(value) >= 4:
        with _secrets_lock:
            _known_secrets.add(value)


def forget_secrets() -> None:
    with _secrets_lock:
        _known_secrets.clear()


def sanitize_text(text: str) -> str:
    """Redact access keys and tokens embedded in plain text."""
    sanitized = _URL_KEY_PARAM_RE.sub(r"\1" + REDACTED, text)
    sanitized = _BEARER_RE.sub(r"\1 " + REDACTED, sanitized)
    sanitized = _ASSIGNED_SECRET_RE.sub(lambda m: f"{m.group(1)}={REDACTED}", sanitized)
    with _secrets_lock:
        secrets = sorted(_known_secrets, key=len, reverse=True)
    for secret in secrets:
        sanitized = sanitized.replace(secret, REDACTED)
    return sanitized


def sanitize_for_logging(value: Any) -> Any:
    """Recursively redact structured log fields."""
    if isinstance(value, dict):
        return {
            key: REDACTED if _SENSITIVE_KEY_RE.search(str(key)) else sanitize_for_logging(child)
            for key, child in value.items()
        }
    if isinstance(value, list):
        return [sanitize_for_logging(item) for item in value]
    if isinstance(value, tuple):
        return tuple(sanitize_for_logging(item) for item in value)
    if isinstance(value, set):
        return {sanitize_for_logging(item) for item in value}
    if isinstance(value, str):
        return sanitize_text(value)
    return value
