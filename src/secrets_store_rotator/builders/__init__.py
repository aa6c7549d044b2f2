"""Builders for secrets-store resource models."""

from .pod_status import build_pod_status_body, create_pod_status_from_obj
from .secret_provider_class import create_secret_provider_class_from_obj

__all__ = [
    "build_pod_status_body",
    "create_pod_status_from_obj",
    "create_secret_provider_class_from_obj",
]
