"""Factories for Kubernetes objects and secrets-store models used in tests."""

from __future__ import annotations

import base64
from datetime import datetime, timezone

from kubernetes import client

from secrets_store_rotator.constants import CSI_DRIVER_NAME
from secrets_store_rotator.models import (
    ObjectVersion,
    SecretObject,
    SecretObjectData,
    SecretProviderClass,
    SecretProviderClassPodStatus,
)

POD_UID = "0a1b2c3d-0000-4000-8000-123456789abc"
VOLUME_NAME = "secrets-store-inline"


def target_path(uid: str = POD_UID, volume: str = VOLUME_NAME) -> str:
    return f"/var/lib/kubelet/pods/{uid}/volumes/kubernetes.io~csi/{volume}/mount"


def make_pod(
    name: str = "app",
    namespace: str = "default",
    uid: str = POD_UID,
    spc_name: str = "spc-1",
    volume_name: str = VOLUME_NAME,
    phase: str = "Running",
    deleting: bool = False,
    node_publish_secret: str | None = None,
) -> client.V1Pod:
    secret_ref = client.V1LocalObjectReference(name=node_publish_secret) if node_publish_secret else None
    volume = client.V1Volume(
        name=volume_name,
        csi=client.V1CSIVolumeSource(
            driver=CSI_DRIVER_NAME,
            read_only=True,
            volume_attributes={"secretProviderClass": spc_name},
            node_publish_secret_ref=secret_ref,
        ),
    )
    return client.V1Pod(
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=namespace,
            uid=uid,
            deletion_timestamp=datetime.now(timezone.utc) if deleting else None,
        ),
        spec=client.V1PodSpec(
            containers=[client.V1Container(name="app")],
            service_account_name="app-sa",
            volumes=[volume],
        ),
        status=client.V1PodStatus(phase=phase),
    )


def make_secret(name: str = "app-creds", namespace: str = "default", data: dict[str, bytes] | None = None,
                resource_version: str = "100") -> client.V1Secret:
    encoded = {k: base64.b64encode(v).decode("ascii") for k, v in (data or {}).items()}
    return client.V1Secret(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace, resource_version=resource_version),
        data=encoded,
    )


def make_pod_status(
    versions: dict[str, str] | None = None,
    path: str | None = None,
    name: str = "app-default-spc-1",
    namespace: str = "default",
) -> SecretProviderClassPodStatus:
    return SecretProviderClassPodStatus(
        name=name,
        namespace=namespace,
        pod_name="app",
        secret_provider_class_name="spc-1",
        target_path=path or target_path(),
        mounted=True,
        objects=[ObjectVersion(id=k, version=v) for k, v in (versions or {}).items()],
        resource_version="10",
    )


def make_spc(
    secret_objects: list[SecretObject] | None = None,
    provider: str = "vault",
    parameters: dict[str, str] | None = None,
) -> SecretProviderClass:
    return SecretProviderClass(
        name="spc-1",
        namespace="default",
        provider=provider,
        parameters=parameters if parameters is not None else {"roleName": "app"},
        secret_objects=secret_objects or [],
    )


def make_secret_object(secret_name: str = "app-creds", object_name: str = "db-pass",
                       key: str = "password") -> SecretObject:
    return SecretObject(
        secret_name=secret_name,
        type="Opaque",
        data=[SecretObjectData(object_name=object_name, key=key)],
    )
