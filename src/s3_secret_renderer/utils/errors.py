"""Render errors and sanitization utilities to prevent credential leakage."""

from __future__ import annotations

import re
from typing import Any


class RenderError(ValueError):
    """Base class for failures that abort a render."""


class ValuesError(RenderError):
    """Raised when the values tree is missing or carries an invalid entry."""


class TemplateError(RenderError):
    """Raised when a template expression cannot be evaluated."""


class ObjectStoreUrlError(ValueError):
    """Raised when an object store URL cannot be interpreted."""


# Patterns that might expose credentials
SENSITIVE_PATTERNS = [
    r"(AKIA|ASIA)[A-Z0-9]{12,}",
    r"access[_\s]?key[_\s]?id[:=\s]+([^\s,;\)]+)",
    r"secret[_\s]?access[_\s]?key[:=\s]+([^\s,;\)]+)",
    r"accessKeyId[:=\s]+([^\s,;\)]+)",
    r"secretAccessKey[:=\s]+([^\s,;\)]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "access_key_id",
    "secret_access_key",
    "accesskeyid",
    "secretaccesskey",
    "session_token",
    "password",
    "secret",
    "credentials",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove credentials.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = re.sub(SENSITIVE_PATTERNS[0], "[REDACTED]", message)

    for pattern in SENSITIVE_PATTERNS[1:]:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0)[: m.start(1) - m.start(0)] + "[REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    if sensitive_keys is None:
        sensitive_keys = set()

    all_sensitive = SENSITIVE_FIELDS | {key.lower() for key in sensitive_keys}
    sanitized = {}

    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
