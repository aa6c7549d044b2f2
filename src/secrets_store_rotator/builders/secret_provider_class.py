"""Builder for SecretProviderClass models."""

from __future__ import annotations

from typing import Any

from ..models import SecretObject, SecretObjectData, SecretProviderClass


def create_secret_provider_class_from_obj(obj: dict[str, Any]) -> SecretProviderClass:
    """Create a SecretProviderClass model from a custom object.

    Args:
        obj: SecretProviderClass custom object as returned by the API

    Returns:
        SecretProviderClass model
    """
    metadata = obj.get("metadata", {})
    spec = obj.get("spec", {}) or {}

    secret_objects = []
    for secret_obj in spec.get("secretObjects") or []:
        data = [
            SecretObjectData(
                object_name=item.get("objectName", ""),
                key=item.get("key", ""),
                encoding=item.get("encoding"),
            )
            for item in secret_obj.get("data") or []
        ]
        secret_objects.append(
            SecretObject(
                secret_name=secret_obj.get("secretName", ""),
                type=secret_obj.get("type", ""),
                data=data,
                labels=dict(secret_obj.get("labels") or {}),
                annotations=dict(secret_obj.get("annotations") or {}),
            )
        )

    return SecretProviderClass(
        name=metadata.get("name", ""),
        namespace=metadata.get("namespace", ""),
        provider=spec.get("provider", ""),
        parameters=dict(spec.get("parameters") or {}),
        secret_objects=secret_objects,
    )
