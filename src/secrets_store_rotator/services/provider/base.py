"""Base provider client interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class MountResponse:
    """Result of a provider mount request."""

    object_versions: dict[str, str] = field(default_factory=dict)


class ProviderClient(Protocol):
    """Protocol defining provider operations used by rotation."""

    def mount_content(
        self,
        attributes: str,
        secrets: str,
        target_path: str,
        permission: str,
        old_object_versions: dict[str, str],
    ) -> MountResponse:
        """Fetch the latest content into ``target_path``.

        Args:
            attributes: JSON serialized mount parameters
            secrets: JSON serialized provider credentials
            target_path: Pod volume target path
            permission: JSON serialized file permission
            old_object_versions: Versions currently mounted, keyed by object id

        Returns:
            New object versions reported by the provider

        Raises:
            ProviderError: If the provider fails the request
        """
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...
