"""Kubernetes API access for the rotation controller."""

from __future__ import annotations

import logging

from kubernetes import client, config

from .store import Store, split_key
from .writer import ClusterWriter

logger = logging.getLogger(__name__)

__all__ = ["ClusterWriter", "Store", "load_kube_config", "split_key"]


def load_kube_config(kubeconfig: str | None = None) -> client.ApiClient:
    """Load cluster credentials and return an API client.

    An explicit kubeconfig wins; otherwise the in-cluster service account is
    used, falling back to the default kubeconfig for local runs.
    """
    if kubeconfig:
        config.load_kube_config(config_file=kubeconfig)
    else:
        try:
            config.load_incluster_config()
        except config.ConfigException:
            logger.info("Not running in cluster, loading default kubeconfig")
            config.load_kube_config()
    return client.ApiClient()
