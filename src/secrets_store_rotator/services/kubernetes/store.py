"""Cached reads of the cluster objects the rotation controller depends on."""

from __future__ import annotations

import time
from typing import Any, Callable

from kubernetes import client

from ... import metrics
from ...builders import create_pod_status_from_obj, create_secret_provider_class_from_obj
from ...constants import (
    API_GROUP,
    API_VERSION,
    KIND_SECRET_PROVIDER_CLASS,
    KIND_SECRET_PROVIDER_CLASS_POD_STATUS,
    LABEL_NODE_NAME,
    PLURAL_SECRET_PROVIDER_CLASS_POD_STATUSES,
    PLURAL_SECRET_PROVIDER_CLASSES,
)
from ...models import SecretProviderClass, SecretProviderClassPodStatus
from ...utils.cache import TTLCache, make_cache_key
from ...utils.errors import NotFoundError
from ...utils.rate_limit import call_with_rate_limit_retry


def split_key(key: str) -> tuple[str, str]:
    """Split a ``namespace/name`` queue key.

    Raises:
        ValueError: If the key is malformed
    """
    parts = key.split("/")
    if len(parts) == 1 and parts[0]:
        return "", parts[0]
    if len(parts) == 2 and parts[1]:
        return parts[0], parts[1]
    raise ValueError(f"unexpected key format: {key!r}")


class Store:
    """Read-only view of pods, secrets and secrets-store objects for one node."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        custom_api: client.CustomObjectsApi,
        node_name: str,
        cache_ttl: float = 5.0,
    ) -> None:
        self.core_api = core_api
        self.custom_api = custom_api
        self.node_name = node_name
        self.cache = TTLCache(cache_ttl)

    def _call(
        self,
        operation: str,
        ref: tuple[str, str, str],
        func: Callable[..., Any],
        **api_kwargs: Any,
    ) -> Any:
        """Call the API with metrics. ``ref`` is (kind, namespace, name) for NotFoundError."""
        start_time = time.time()
        try:
            result = call_with_rate_limit_retry("k8s", func, **api_kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except client.exceptions.ApiException as e:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            if e.status == 404:
                raise NotFoundError(*ref) from e
            raise
        finally:
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(
                time.time() - start_time
            )

    def _get_cached(
        self,
        operation: str,
        ref: tuple[str, str, str],
        fetch: Callable[[], Any],
    ) -> Any:
        cache_key = make_cache_key(*ref)
        cached = self.cache.get(cache_key)
        if cached is not None:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="cache_hit").inc()
            return cached
        obj = fetch()
        self.cache.set(cache_key, obj)
        return obj

    def list_secret_provider_class_pod_statuses(self) -> list[SecretProviderClassPodStatus]:
        """List the pod statuses labelled for this node."""
        response = self._call(
            "list_spc_pod_statuses",
            (KIND_SECRET_PROVIDER_CLASS_POD_STATUS, "", ""),
            self.custom_api.list_cluster_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            plural=PLURAL_SECRET_PROVIDER_CLASS_POD_STATUSES,
            label_selector=f"{LABEL_NODE_NAME}={self.node_name}",
        )
        return [create_pod_status_from_obj(item) for item in response.get("items", [])]

    def get_secret_provider_class_pod_status(self, key: str) -> SecretProviderClassPodStatus:
        """Get a pod status by ``namespace/name`` key, bypassing the cache.

        Raises:
            NotFoundError: If the pod status does not exist
        """
        namespace, name = split_key(key)
        obj = self._call(
            "get_spc_pod_status",
            (KIND_SECRET_PROVIDER_CLASS_POD_STATUS, namespace, name),
            self.custom_api.get_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_SECRET_PROVIDER_CLASS_POD_STATUSES,
            name=name,
        )
        return create_pod_status_from_obj(obj)

    def get_pod(self, name: str, namespace: str) -> client.V1Pod:
        """Get a pod.

        Raises:
            NotFoundError: If the pod does not exist
        """
        ref = ("Pod", namespace, name)
        return self._get_cached(
            "get_pod",
            ref,
            lambda: self._call(
                "get_pod",
                ref,
                self.core_api.read_namespaced_pod,
                name=name,
                namespace=namespace,
            ),
        )

    def get_secret_provider_class(self, name: str, namespace: str) -> SecretProviderClass:
        """Get a SecretProviderClass.

        Raises:
            NotFoundError: If the SecretProviderClass does not exist
        """
        ref = (KIND_SECRET_PROVIDER_CLASS, namespace, name)
        return self._get_cached(
            "get_spc",
            ref,
            lambda: create_secret_provider_class_from_obj(
                self._call(
                    "get_spc",
                    ref,
                    self.custom_api.get_namespaced_custom_object,
                    group=API_GROUP,
                    version=API_VERSION,
                    namespace=namespace,
                    plural=PLURAL_SECRET_PROVIDER_CLASSES,
                    name=name,
                )
            ),
        )

    def get_secret(self, name: str, namespace: str) -> client.V1Secret:
        """Get a secret.

        Raises:
            NotFoundError: If the secret does not exist
        """
        ref = ("Secret", namespace, name)
        return self._get_cached(
            "get_secret",
            ref,
            lambda: self._call(
                "get_secret",
                ref,
                self.core_api.read_namespaced_secret,
                name=name,
                namespace=namespace,
            ),
        )
