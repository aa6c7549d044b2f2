"""Builder for SecretProviderClassPodStatus models."""

from __future__ import annotations

import copy
from typing import Any

from ..constants import API_GROUP_VERSION, KIND_SECRET_PROVIDER_CLASS_POD_STATUS
from ..models import ObjectVersion, SecretProviderClassPodStatus


def create_pod_status_from_obj(obj: dict[str, Any]) -> SecretProviderClassPodStatus:
    """Create a SecretProviderClassPodStatus model from a custom object.

    Args:
        obj: SecretProviderClassPodStatus custom object as returned by the API

    Returns:
        SecretProviderClassPodStatus model
    """
    metadata = obj.get("metadata", {})
    status = obj.get("status", {}) or {}

    objects = [
        ObjectVersion(id=item.get("id", ""), version=item.get("version", ""))
        for item in status.get("objects") or []
    ]

    return SecretProviderClassPodStatus(
        name=metadata.get("name", ""),
        namespace=metadata.get("namespace", ""),
        pod_name=status.get("podName", ""),
        secret_provider_class_name=status.get("secretProviderClassName", ""),
        target_path=status.get("targetPath", ""),
        mounted=bool(status.get("mounted", False)),
        objects=objects,
        resource_version=metadata.get("resourceVersion"),
        raw=obj,
    )


def build_pod_status_body(pod_status: SecretProviderClassPodStatus) -> dict[str, Any]:
    """Build the full object body used to replace a pod status.

    Fields not modelled here are carried over from the object as it was read.
    The resourceVersion is kept so a concurrent write is rejected.
    """
    body = copy.deepcopy(pod_status.raw) if pod_status.raw else {}
    body.setdefault("apiVersion", API_GROUP_VERSION)
    body.setdefault("kind", KIND_SECRET_PROVIDER_CLASS_POD_STATUS)

    metadata = body.setdefault("metadata", {})
    metadata["name"] = pod_status.name
    metadata["namespace"] = pod_status.namespace
    if pod_status.resource_version:
        metadata["resourceVersion"] = pod_status.resource_version

    status = body.setdefault("status", {})
    status["podName"] = pod_status.pod_name
    status["secretProviderClassName"] = pod_status.secret_provider_class_name
    status["targetPath"] = pod_status.target_path
    status["mounted"] = pod_status.mounted
    status["objects"] = [{"id": obj.id, "version": obj.version} for obj in pod_status.objects]
    return body
