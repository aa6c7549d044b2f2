"""Provider client speaking JSON over the provider's unix domain socket."""

from __future__ import annotations

import logging
import os
import time
from typing import Any

import httpx

from ... import metrics
from ...utils.errors import ProviderClientError, ProviderError
from .base import MountResponse

logger = logging.getLogger(__name__)

MOUNT_PATH = "/v1alpha1/mount"


def provider_socket_path(provider_volume_path: str, provider_name: str) -> str:
    """Return the well-known socket path of a provider."""
    return os.path.join(provider_volume_path, f"{provider_name}.sock")


class SocketProviderClient:
    """Client bound to one provider's socket."""

    def __init__(
        self,
        provider_name: str,
        provider_volume_path: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize provider client.

        Args:
            provider_name: Provider name as declared in the SecretProviderClass
            provider_volume_path: Directory holding provider sockets
            timeout: Timeout of each request in seconds
            transport: Optional transport, a unix socket transport by default

        Raises:
            ProviderClientError: If the name is invalid or no socket exists
        """
        if not provider_name or "/" in provider_name or provider_name in (".", ".."):
            raise ProviderClientError(f"invalid provider name {provider_name!r}")

        self.provider_name = provider_name
        self.socket_path = provider_socket_path(provider_volume_path, provider_name)

        if transport is None:
            if not os.path.exists(self.socket_path):
                raise ProviderClientError(
                    f"provider {provider_name} socket {self.socket_path} not found"
                )
            transport = httpx.HTTPTransport(uds=self.socket_path)

        self._client = httpx.Client(
            transport=transport,
            base_url=f"http://{provider_name}",
            timeout=timeout,
        )

    def mount_content(
        self,
        attributes: str,
        secrets: str,
        target_path: str,
        permission: str,
        old_object_versions: dict[str, str],
    ) -> MountResponse:
        """Send a mount request and return the reported object versions."""
        body = {
            "attributes": attributes,
            "secrets": secrets,
            "targetPath": target_path,
            "permission": permission,
            "currentObjectVersion": [
                {"id": object_id, "version": version}
                for object_id, version in old_object_versions.items()
            ],
        }

        start_time = time.time()
        result = "error"
        try:
            response = self._client.post(MOUNT_PATH, json=body)
            response.raise_for_status()
            payload: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"provider {self.provider_name} returned status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"mount request to provider {self.provider_name} failed: {e}") from e
        else:
            error = payload.get("error") or {}
            code = error.get("code", "") if isinstance(error, dict) else str(error)
            if code:
                raise ProviderError(
                    f"provider {self.provider_name} reported error {code}", code=code
                )
            result = "success"
            versions = {
                str(item.get("id", "")): str(item.get("version", ""))
                for item in payload.get("objectVersion") or []
            }
            return MountResponse(object_versions=versions)
        finally:
            metrics.api_call_total.labels(api_type="provider", operation="mount", result=result).inc()
            metrics.api_call_duration_seconds.labels(api_type="provider", operation="mount").observe(
                time.time() - start_time
            )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()
