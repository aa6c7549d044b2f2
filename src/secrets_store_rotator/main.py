"""Main entry point for the secrets-store rotation controller."""

from __future__ import annotations

import logging
from typing import Any

import kopf
from kubernetes import client

from . import health
from . import logging as structured_logging
from .config import RotationSettings
from .controller import RotationController
from .handlers.rotation import RotationHandler
from .provider_cache import ProviderClientCache
from .services.kubernetes import ClusterWriter, Store, load_kube_config
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)

_state: dict[str, Any] = {}


def build_controller(settings: RotationSettings, api_client: client.ApiClient) -> RotationController:
    """Wire the store, writer, provider clients and handler into a controller."""
    core_api = client.CoreV1Api(api_client)
    custom_api = client.CustomObjectsApi(api_client)

    store = Store(core_api, custom_api, settings.node_name, cache_ttl=settings.cache_ttl)
    writer = ClusterWriter(core_api, custom_api)
    provider_clients = ProviderClientCache(settings.provider_volume_path, timeout=settings.provider_timeout)
    handler = RotationHandler(store, writer, provider_clients)

    return RotationController(
        store,
        handler,
        poll_interval=settings.poll_interval,
        workers=settings.workers,
    )


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator and start the rotation controller."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0

    rotation_settings = RotationSettings.from_env()
    api_client = load_kube_config(rotation_settings.kubeconfig)

    controller = build_controller(rotation_settings, api_client)
    controller.start()
    _state["controller"] = controller
    _state["server"] = health.start_metrics_server(
        rotation_settings.metrics_port, ready=lambda: controller.running
    )


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Stop the controller, letting in-flight reconciles finish."""
    controller = _state.pop("controller", None)
    if controller is not None:
        controller.stop()
        controller.handler.provider_clients.close()

    server = _state.pop("server", None)
    if server is not None:
        server.shutdown()


def run() -> None:
    """Run the controller as a standalone kopf operator."""
    kopf.run(standalone=True, clusterwide=True)
