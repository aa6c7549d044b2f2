"""Process-lifetime cache of provider clients."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from .services.provider import ProviderClient, SocketProviderClient

logger = logging.getLogger(__name__)

ProviderClientFactory = Callable[[str], ProviderClient]


class ProviderClientCache:
    """Maps provider names to clients, creating them on first use.

    Entries are never evicted and failed constructions are never cached, so
    the next ``get`` for that name tries again from scratch.
    """

    def __init__(
        self,
        provider_volume_path: str,
        timeout: float = 30.0,
        factory: ProviderClientFactory | None = None,
    ) -> None:
        self.provider_volume_path = provider_volume_path
        self.timeout = timeout
        self._factory = factory or self._socket_client
        self._clients: dict[str, ProviderClient] = {}
        self._lock = threading.Lock()

    def _socket_client(self, provider_name: str) -> ProviderClient:
        return SocketProviderClient(provider_name, self.provider_volume_path, timeout=self.timeout)

    def get(self, provider_name: str) -> ProviderClient:
        """Return the client for ``provider_name``, creating it if needed.

        Raises:
            ProviderClientError: If a new client cannot be constructed
        """
        with self._lock:
            client = self._clients.get(provider_name)
            if client is not None:
                return client
            client = self._factory(provider_name)
            self._clients[provider_name] = client
            logger.info(f"Created provider client for {provider_name}")
            return client

    def __contains__(self, provider_name: str) -> bool:
        with self._lock:
            return provider_name in self._clients

    def close(self) -> None:
        """Close every cached client."""
        with self._lock:
            clients = list(self._clients.items())
            self._clients.clear()
        for name, client in clients:
            try:
                client.close()
            except Exception as e:
                logger.warning(f"Failed to close provider client {name}: {e}")
