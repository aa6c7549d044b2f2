"""Process-level configuration for the rotation controller."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_PROVIDER_VOLUME_PATH = "/etc/kubernetes/secrets-store-csi-providers"


@dataclass
class RotationSettings:
    """Settings read from the environment at startup."""

    node_name: str
    poll_interval: float = 120.0
    provider_volume_path: str = DEFAULT_PROVIDER_VOLUME_PATH
    workers: int = 1
    metrics_port: int = 8080
    cache_ttl: float = 5.0
    provider_timeout: float = 30.0
    kubeconfig: str | None = None

    @classmethod
    def from_env(cls) -> "RotationSettings":
        """Build settings from environment variables.

        Environment Variables:
            NODE_NAME: Node whose pod statuses are rotated (required)
            ROTATION_POLL_INTERVAL_SECONDS: Scheduler interval (default: 120)
            PROVIDER_VOLUME_PATH: Directory holding provider sockets
            ROTATION_WORKERS: Number of worker threads (default: 1)
            METRICS_PORT: Port for metrics and health endpoints (default: 8080)
            K8S_CACHE_TTL_SECONDS: TTL of cached cluster reads (default: 5)
            PROVIDER_TIMEOUT_SECONDS: Timeout of provider requests (default: 30)
            KUBECONFIG: Explicit kubeconfig; in-cluster config is used otherwise

        Raises:
            ValueError: If NODE_NAME is unset or a numeric value is invalid
        """
        node_name = os.getenv("NODE_NAME", "").strip()
        if not node_name:
            raise ValueError("NODE_NAME must be set to scope rotation to the local node")

        settings = cls(
            node_name=node_name,
            poll_interval=float(os.getenv("ROTATION_POLL_INTERVAL_SECONDS", "120")),
            provider_volume_path=os.getenv("PROVIDER_VOLUME_PATH", DEFAULT_PROVIDER_VOLUME_PATH),
            workers=int(os.getenv("ROTATION_WORKERS", "1")),
            metrics_port=int(os.getenv("METRICS_PORT", "8080")),
            cache_ttl=float(os.getenv("K8S_CACHE_TTL_SECONDS", "5")),
            provider_timeout=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "30")),
            kubeconfig=os.getenv("KUBECONFIG") or None,
        )
        if settings.poll_interval <= 0:
            raise ValueError("ROTATION_POLL_INTERVAL_SECONDS must be positive")
        if settings.workers < 1:
            raise ValueError("ROTATION_WORKERS must be at least 1")
        return settings
