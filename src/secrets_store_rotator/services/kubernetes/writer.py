"""Writes to the cluster made by the rotation controller."""

from __future__ import annotations

import time

from kubernetes import client

from ... import metrics
from ...builders import build_pod_status_body
from ...constants import API_GROUP, API_VERSION, PLURAL_SECRET_PROVIDER_CLASS_POD_STATUSES
from ...models import SecretProviderClassPodStatus
from ...utils.rate_limit import call_with_rate_limit_retry
from ...utils.secrets import patch_secret_data


class ClusterWriter:
    """Persists pod status versions and patches secret data."""

    def __init__(self, core_api: client.CoreV1Api, custom_api: client.CustomObjectsApi) -> None:
        self.core_api = core_api
        self.custom_api = custom_api

    def update_secret_provider_class_pod_status(self, pod_status: SecretProviderClassPodStatus) -> None:
        """Replace the pod status object.

        The body carries the resourceVersion it was read with, so a stale
        write fails with a 409 conflict. On success the model picks up the new
        resourceVersion.
        """
        start_time = time.time()
        result = "error"
        try:
            response = call_with_rate_limit_retry(
                "k8s",
                self.custom_api.replace_namespaced_custom_object,
                group=API_GROUP,
                version=API_VERSION,
                namespace=pod_status.namespace,
                plural=PLURAL_SECRET_PROVIDER_CLASS_POD_STATUSES,
                name=pod_status.name,
                body=build_pod_status_body(pod_status),
            )
            result = "success"
        finally:
            metrics.api_call_total.labels(
                api_type="k8s", operation="update_spc_pod_status", result=result
            ).inc()
            metrics.api_call_duration_seconds.labels(
                api_type="k8s", operation="update_spc_pod_status"
            ).observe(time.time() - start_time)

        if isinstance(response, dict):
            pod_status.raw = response
            pod_status.resource_version = response.get("metadata", {}).get(
                "resourceVersion", pod_status.resource_version
            )

    def patch_secret(self, name: str, namespace: str, data: dict[str, bytes]) -> bool:
        """Replace a secret's data unless it is already current.

        Returns:
            True if a patch was sent, False if the data was unchanged
        """
        start_time = time.time()
        result = "error"
        try:
            patched = patch_secret_data(self.core_api, namespace, name, data)
            result = "success" if patched else "unchanged"
            return patched
        finally:
            metrics.api_call_total.labels(api_type="k8s", operation="patch_secret", result=result).inc()
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation="patch_secret").observe(
                time.time() - start_time
            )
