"""Rotation handler for SecretProviderClassPodStatus resources.

Each reconcile re-sends the mount request for one pod volume to its provider,
records the object versions the provider reports and copies the refreshed
file contents into the secrets declared by the SecretProviderClass.
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable

from ..constants import (
    CSI_DRIVER_NAME,
    CSI_POD_NAME,
    CSI_POD_NAMESPACE,
    CSI_POD_SERVICE_ACCOUNT,
    CSI_POD_UID,
    EVENT_REASON_MOUNT_ROTATION_COMPLETE,
    EVENT_REASON_MOUNT_ROTATION_FAILED,
    EVENT_REASON_SECRET_ROTATION_COMPLETE,
    EVENT_REASON_SECRET_ROTATION_FAILED,
    EVENT_TYPE_NORMAL,
    EVENT_TYPE_WARNING,
    FILE_PERMISSION,
    KIND_SECRET_PROVIDER_CLASS_POD_STATUS,
    POD_PHASE_FAILED,
    POD_PHASE_SUCCEEDED,
    REASON_FAILED_TO_CREATE_PROVIDER_CLIENT,
    REASON_FAILED_TO_ROTATE,
    REASON_MOUNTED_FILES_READ_FAILED,
    REASON_NODE_PUBLISH_SECRET_REF_NOT_FOUND,
    REASON_POD_NOT_FOUND,
    REASON_POD_VOLUME_NOT_FOUND,
    REASON_SECRET_PATCH_FAILED,
    REASON_SECRET_VALIDATION_FAILED,
    REASON_SPC_NOT_FOUND,
    REASON_STATUS_UPDATE_FAILED,
    REASON_UNEXPECTED_TARGET_PATH,
    VOLUME_ATTRIBUTE_SECRET_PROVIDER_CLASS,
)
from ..models import ObjectVersion, SecretObject, SecretProviderClass, SecretProviderClassPodStatus
from ..provider_cache import ProviderClientCache
from ..tracing import reconcile_span
from ..utils.backoff import retry_with_backoff
from ..utils.errors import (
    NotFoundError,
    ProviderError,
    RotationError,
    SecretValidationError,
    sanitize_exception,
)
from ..utils.fileutil import (
    get_mounted_files,
    get_pod_uid_from_target_path,
    get_volume_name_from_target_path,
)
from ..utils.secretutil import (
    decode_secret_data,
    get_secret_data,
    get_secret_type,
    validate_secret_object,
)
from .base import BaseHandler, EventEmitter, PendingEvent, ReconcileOutcome


def object_versions_changed(old: dict[str, str], new: dict[str, str]) -> bool:
    """Return True if the two ``{id: version}`` maps differ as sets.

    Covers changed versions, objects added by the provider and objects
    removed from the SecretProviderClass. Ids and versions are compared with
    surrounding whitespace stripped.
    """
    def normalize(versions: dict[str, str]) -> set[tuple[str, str]]:
        return {(key.strip(), value.strip()) for key, value in versions.items()}

    return normalize(old) != normalize(new)


def is_pod_terminated(pod: Any) -> bool:
    """Return True if the pod is being deleted or has finished running."""
    if pod.metadata.deletion_timestamp is not None:
        return True
    phase = pod.status.phase if pod.status is not None else None
    return phase in (POD_PHASE_SUCCEEDED, POD_PHASE_FAILED)


def find_spc_volume(pod: Any, spc_name: str) -> Any | None:
    """Return the pod's secrets-store CSI volume that references ``spc_name``."""
    for volume in (pod.spec.volumes if pod.spec is not None else None) or []:
        csi = volume.csi
        if csi is None or csi.driver != CSI_DRIVER_NAME:
            continue
        attributes = csi.volume_attributes or {}
        if attributes.get(VOLUME_ATTRIBUTE_SECRET_PROVIDER_CLASS) == spc_name:
            return volume
    return None


class RotationHandler(BaseHandler):
    """Handler rotating the mounted content of one pod volume."""

    def __init__(
        self,
        store: Any,
        writer: Any,
        provider_clients: ProviderClientCache,
        emit: EventEmitter | None = None,
        read_mounted_files: Callable[[str], dict[str, bytes]] = get_mounted_files,
        backoff_sleep: Callable[[float], Any] | None = None,
    ):
        """Initialize rotation handler.

        Args:
            store: Read access to pods, secrets and secrets-store objects
            writer: Write access for pod statuses and secrets
            provider_clients: Cache of provider clients
            emit: Event emitter, posts through kopf by default
            read_mounted_files: Reads the files under a target path
            backoff_sleep: Sleep used between bounded write retries
        """
        super().__init__(KIND_SECRET_PROVIDER_CLASS_POD_STATUS, emit=emit)
        self.store = store
        self.writer = writer
        self.provider_clients = provider_clients
        self.read_mounted_files = read_mounted_files
        self.backoff_sleep = backoff_sleep

    def reconcile(self, pod_status: SecretProviderClassPodStatus) -> ReconcileOutcome:
        """Run the rotation pipeline for one pod status.

        Never raises for pipeline failures; the failure is carried in the
        returned outcome.
        """
        outcome = ReconcileOutcome(key=pod_status.key)
        start_time = time.time()
        with reconcile_span(pod_status.key, outcome):
            try:
                self._rotate(pod_status, outcome)
            except RotationError as e:
                outcome.error = e
                outcome.reason = e.reason
            except Exception as e:
                outcome.error = e
                outcome.reason = REASON_FAILED_TO_ROTATE
        outcome.duration = time.time() - start_time
        return outcome

    def _event(self, outcome: ReconcileOutcome, type_: str, reason: str, message: str) -> None:
        outcome.events.append(PendingEvent(type_, reason, message))

    def _rotate(self, pod_status: SecretProviderClassPodStatus, outcome: ReconcileOutcome) -> None:
        namespace = pod_status.namespace
        pod_name = pod_status.pod_name

        outcome.stage = "resolve_pod"
        try:
            pod = self.store.get_pod(pod_name, namespace)
        except NotFoundError as e:
            raise RotationError(
                REASON_POD_NOT_FOUND, f"failed to get pod {namespace}/{pod_name}, err: {e}"
            ) from e
        outcome.pod = pod

        # The pod status is garbage collected with the pod, so rotating a
        # terminating or completed pod is wasted work.
        if is_pod_terminated(pod):
            self.log_debug(pod_status.key, "Pod is being terminated, skipping rotation", reason="Skipped")
            outcome.skipped = True
            outcome.stage = "skipped"
            return

        outcome.stage = "resolve_spc"
        spc_name = pod_status.secret_provider_class_name
        try:
            spc = self.store.get_secret_provider_class(spc_name, namespace)
        except NotFoundError as e:
            raise RotationError(
                REASON_SPC_NOT_FOUND,
                f"failed to get secret provider class {namespace}/{spc_name}, err: {e}",
            ) from e
        outcome.provider = spc.provider

        volume = find_spc_volume(pod, spc.name)
        if volume is None:
            raise RotationError(
                REASON_POD_VOLUME_NOT_FOUND,
                f"could not find secret provider class pod status volume for pod {namespace}/{pod_name}",
            )

        target_path = pod_status.target_path
        if get_pod_uid_from_target_path(target_path) != pod.metadata.uid:
            raise RotationError(
                REASON_UNEXPECTED_TARGET_PATH,
                f"secret provider class pod status targetPath did not match pod UID for pod {namespace}/{pod_name}",
            )
        if get_volume_name_from_target_path(target_path) != volume.name:
            raise RotationError(
                REASON_UNEXPECTED_TARGET_PATH,
                f"secret provider class pod status volume name did not match pod Volume for pod {namespace}/{pod_name}",
            )

        outcome.stage = "build_request"
        parameters = self._mount_parameters(spc, pod)
        secrets = self._node_publish_secret_data(volume, namespace, outcome)
        old_versions = pod_status.object_versions()

        outcome.stage = "provider_mount"
        try:
            provider_client = self.provider_clients.get(spc.provider)
        except Exception as e:
            message = f"failed to create provider client, err: {sanitize_exception(e)}"
            self._event(outcome, EVENT_TYPE_WARNING, EVENT_REASON_MOUNT_ROTATION_FAILED, message)
            raise RotationError(REASON_FAILED_TO_CREATE_PROVIDER_CLIENT, message) from e

        try:
            response = provider_client.mount_content(
                json.dumps(parameters),
                json.dumps(secrets),
                target_path,
                json.dumps(FILE_PERMISSION),
                old_versions,
            )
        except ProviderError as e:
            self._event(
                outcome, EVENT_TYPE_WARNING, EVENT_REASON_MOUNT_ROTATION_FAILED, f"provider mount err: {e}"
            )
            raise RotationError(
                e.code, f"failed to rotate objects for pod {namespace}/{pod_name}, err: {e}"
            ) from e

        new_versions = response.object_versions
        outcome.requires_update = object_versions_changed(old_versions, new_versions)

        if outcome.requires_update:
            outcome.stage = "update_status"
            self._event(
                outcome,
                EVENT_TYPE_NORMAL,
                EVENT_REASON_MOUNT_ROTATION_COMPLETE,
                f"successfully rotated mounted contents for spc {namespace}/{spc_name}",
            )
            self.log_info(pod_status.key, "Updating versions in spc pod status", reason="VersionsChanged")
            pod_status.objects = [
                ObjectVersion(id=object_id.strip(), version=version.strip())
                for object_id, version in new_versions.items()
            ]
            try:
                retry_with_backoff(
                    lambda: self.writer.update_secret_provider_class_pod_status(pod_status),
                    sleep=self.backoff_sleep,
                )
            except Exception as e:
                message = f"failed to update versions in spc pod status {spc_name}, err: {sanitize_exception(e)}"
                self._event(outcome, EVENT_TYPE_WARNING, EVENT_REASON_MOUNT_ROTATION_FAILED, message)
                raise RotationError(REASON_STATUS_UPDATE_FAILED, message) from e

        if not spc.secret_objects:
            outcome.stage = "complete"
            return

        outcome.stage = "sync_secrets"
        self._sync_secrets(spc, pod_status, outcome)
        outcome.stage = "complete"

    def _mount_parameters(self, spc: SecretProviderClass, pod: Any) -> dict[str, str]:
        """Claim parameters plus the pod identity the provider sees at mount time."""
        parameters = dict(spc.parameters)
        parameters[CSI_POD_NAME] = pod.metadata.name
        parameters[CSI_POD_NAMESPACE] = pod.metadata.namespace
        parameters[CSI_POD_UID] = pod.metadata.uid
        parameters[CSI_POD_SERVICE_ACCOUNT] = (pod.spec.service_account_name if pod.spec else None) or ""
        return parameters

    def _node_publish_secret_data(self, volume: Any, namespace: str, outcome: ReconcileOutcome) -> dict[str, str]:
        """Read the provider credentials referenced by the volume, if any."""
        secret_ref = volume.csi.node_publish_secret_ref
        if secret_ref is None or not (secret_ref.name or "").strip():
            return {}

        secret_name = secret_ref.name.strip()
        try:
            secret = self.store.get_secret(secret_name, namespace)
        except NotFoundError as e:
            message = f"failed to get node publish secret {namespace}/{secret_name}, err: {e}"
            self._event(outcome, EVENT_TYPE_WARNING, EVENT_REASON_MOUNT_ROTATION_FAILED, message)
            raise RotationError(REASON_NODE_PUBLISH_SECRET_REF_NOT_FOUND, message) from e

        return {
            key: value.decode("utf-8", errors="replace")
            for key, value in decode_secret_data(secret.data).items()
        }

    def _sync_secrets(
        self,
        spc: SecretProviderClass,
        pod_status: SecretProviderClassPodStatus,
        outcome: ReconcileOutcome,
    ) -> None:
        """Patch every secret the SecretProviderClass declares.

        A failing secret object does not stop the others; failures are
        collected and raised together once all objects were processed.
        """
        namespace = pod_status.namespace
        try:
            files = self.read_mounted_files(pod_status.target_path)
        except OSError as e:
            message = f"failed to get mounted files, err: {sanitize_exception(e)}"
            self._event(outcome, EVENT_TYPE_WARNING, EVENT_REASON_SECRET_ROTATION_FAILED, message)
            raise RotationError(REASON_MOUNTED_FILES_READ_FAILED, message) from e

        failures: list[tuple[str, str]] = []
        for secret_obj in spc.secret_objects:
            secret_name = secret_obj.secret_name.strip()
            try:
                datamap = self._secret_data(secret_obj, files)
            except SecretValidationError as e:
                self._event(
                    outcome,
                    EVENT_TYPE_WARNING,
                    EVENT_REASON_SECRET_ROTATION_FAILED,
                    f"failed validation for secret object {secret_name} in spc {namespace}/{spc.name}, err: {e}",
                )
                self.log_error(pod_status.key, "Failed validation for secret object", error=e, target=secret_name)
                failures.append((REASON_SECRET_VALIDATION_FAILED, f"{secret_name}: {e}"))
                continue

            try:
                retry_with_backoff(
                    lambda: self.writer.patch_secret(secret_name, namespace, datamap),
                    sleep=self.backoff_sleep,
                )
            except Exception as e:
                self._event(
                    outcome,
                    EVENT_TYPE_WARNING,
                    EVENT_REASON_SECRET_ROTATION_FAILED,
                    f"failed to patch secret {secret_name} with new data, err: {sanitize_exception(e)}",
                )
                self.log_error(pod_status.key, "Failed to patch secret data", error=e, target=secret_name)
                failures.append((REASON_SECRET_PATCH_FAILED, f"{secret_name}: {sanitize_exception(e)}"))
                continue

            self._event(
                outcome,
                EVENT_TYPE_NORMAL,
                EVENT_REASON_SECRET_ROTATION_COMPLETE,
                f"successfully rotated K8s secret {secret_name}",
            )

        if failures:
            reasons = {reason for reason, _ in failures}
            reason = REASON_SECRET_PATCH_FAILED if REASON_SECRET_PATCH_FAILED in reasons else REASON_SECRET_VALIDATION_FAILED
            details = "; ".join(detail for _, detail in failures)
            raise RotationError(reason, f"failed to rotate one or more k8s secrets, err: [{details}]")

    def _secret_data(self, secret_obj: SecretObject, files: dict[str, bytes]) -> dict[str, bytes]:
        validate_secret_object(secret_obj)
        secret_type = get_secret_type(secret_obj.type)
        return get_secret_data(secret_obj.data, secret_type, files)
