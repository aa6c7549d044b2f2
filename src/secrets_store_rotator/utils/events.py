"""Utilities for emitting Kubernetes events against pods."""

from __future__ import annotations

from typing import Any

import kopf


def pod_reference(pod: Any) -> dict[str, Any]:
    """Build the object body kopf needs to attach an event to a pod."""
    metadata = pod.metadata
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": metadata.name,
            "namespace": metadata.namespace,
            "uid": metadata.uid,
        },
    }


def emit_event(
    pod: Any,
    type_: str,
    reason: str,
    message: str,
) -> None:
    """Emit a Kubernetes event attached to a pod.

    Args:
        pod: Pod object (V1Pod)
        type_: Event type (Normal or Warning)
        reason: Event reason
        message: Event message
    """
    kopf.event(
        pod_reference(pod),
        reason=reason,
        message=message,
        type=type_,
    )
