"""Utilities for managing Kubernetes secrets."""

from __future__ import annotations

import logging
from typing import Any

from kubernetes import client

from ..constants import FIELD_MANAGER
from .errors import NotFoundError
from .secretutil import decode_secret_data, encode_secret_data, get_sha_from_secret

logger = logging.getLogger(__name__)

MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"


def read_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> client.V1Secret:
    """Read a Kubernetes secret directly from the API server.

    Raises:
        NotFoundError: If the secret does not exist
    """
    try:
        return api.read_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise NotFoundError("Secret", namespace, secret_name) from e
        raise


def build_data_patch(
    current: dict[str, bytes],
    data: dict[str, bytes],
    resource_version: str | None,
) -> dict[str, Any]:
    """Build a JSON merge patch that replaces the whole data map.

    Keys missing from ``data`` are set to null so the API server drops them.
    The resourceVersion makes the patch fail with a conflict if the secret
    changed after it was read.
    """
    patch_data: dict[str, str | None] = {key: None for key in current if key not in data}
    patch_data.update(encode_secret_data(data))
    body: dict[str, Any] = {"data": patch_data}
    if resource_version:
        body["metadata"] = {"resourceVersion": resource_version}
    return body


def patch_secret_data(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    data: dict[str, bytes],
) -> bool:
    """Replace a secret's data if it differs from ``data``.

    A missing secret is reported as an error rather than recreated; secret
    creation belongs to the pod status controller.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret
        data: New secret data (raw bytes, encoded here)

    Returns:
        True if a patch was sent, False if the data was already current

    Raises:
        NotFoundError: If the secret does not exist
        client.exceptions.ApiException: On API errors, including 409 conflicts
    """
    secret = read_secret(api, namespace, secret_name)
    current = decode_secret_data(secret.data)

    if get_sha_from_secret(current) == get_sha_from_secret(data):
        logger.debug(f"Secret {namespace}/{secret_name} data is unchanged, skipping patch")
        return False

    body = build_data_patch(current, data, secret.metadata.resource_version)
    api.patch_namespaced_secret(
        name=secret_name,
        namespace=namespace,
        body=body,
        field_manager=FIELD_MANAGER,
        _content_type=MERGE_PATCH_CONTENT_TYPE,
    )
    return True
