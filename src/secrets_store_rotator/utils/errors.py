"""Error types and sanitization utilities for the rotation controller."""

from __future__ import annotations

import re
from typing import Any

from ..constants import REASON_FAILED_TO_ROTATE

# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"password[:=\s]+([^\s,;\)]+)",
    r"client[_\s]?secret[:=\s]+([^\s,;\)]+)",
    r"bearer\s+([A-Za-z0-9\-_\.=]+)",
    r"vault[_\s]?token[:=\s]+([A-Za-z0-9\-_\.]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "secret",
    "credentials",
    "token",
    "clientsecret",
    "privatekey",
}


class RotationError(Exception):
    """A classified failure raised by one stage of the rotation pipeline.

    The ``reason`` is the classification reported in metrics, events and used
    by the retry policy; it is not a distinct exception type.
    """

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFoundError(Exception):
    """Raised by the store when a requested object does not exist."""

    def __init__(self, kind: str, namespace: str, name: str) -> None:
        super().__init__(f"{kind} {namespace}/{name} not found")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class ProviderError(Exception):
    """Raised when a provider rejects or fails a mount request."""

    def __init__(self, message: str, code: str = REASON_FAILED_TO_ROTATE) -> None:
        super().__init__(message)
        self.code = code or REASON_FAILED_TO_ROTATE


class ProviderClientError(Exception):
    """Raised when a provider client cannot be constructed."""


class SecretValidationError(ValueError):
    """Raised when a secret object descriptor or its data is invalid."""


def is_not_found(error: BaseException) -> bool:
    """Return True if the error means an object is gone from the cluster."""
    if isinstance(error, NotFoundError):
        return True
    return getattr(error, "status", None) == 404


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
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
    all_sensitive = SENSITIVE_FIELDS | (sensitive_keys or set())
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        key_lower = key.lower().replace("_", "").replace("-", "")
        if any(sensitive in key_lower for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
