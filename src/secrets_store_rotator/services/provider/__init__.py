"""Secrets-store provider clients."""

from .base import MountResponse, ProviderClient
from .client import SocketProviderClient, provider_socket_path

__all__ = ["MountResponse", "ProviderClient", "SocketProviderClient", "provider_socket_path"]
