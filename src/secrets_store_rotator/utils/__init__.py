"""Utility functions for the rotation controller."""

from .backoff import retry_with_backoff
from .cache import TTLCache, make_cache_key
from .errors import (
    NotFoundError,
    ProviderClientError,
    ProviderError,
    RotationError,
    SecretValidationError,
    sanitize_exception,
)
from .events import emit_event
from .fileutil import get_mounted_files, get_pod_uid_from_target_path, get_volume_name_from_target_path
from .rate_limit import call_with_rate_limit_retry, rate_limit_k8s
from .secrets import patch_secret_data

__all__ = [
    "retry_with_backoff",
    "TTLCache",
    "make_cache_key",
    "NotFoundError",
    "ProviderClientError",
    "ProviderError",
    "RotationError",
    "SecretValidationError",
    "sanitize_exception",
    "emit_event",
    "get_mounted_files",
    "get_pod_uid_from_target_path",
    "get_volume_name_from_target_path",
    "call_with_rate_limit_retry",
    "rate_limit_k8s",
    "patch_secret_data",
]
