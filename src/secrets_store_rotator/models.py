"""Models for secrets-store custom resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SecretObjectData:
    """One extraction rule: mounted file -> secret data key."""

    object_name: str
    key: str
    encoding: str | None = None


@dataclass
class SecretObject:
    """A cluster secret derived from mounted content."""

    secret_name: str
    type: str
    data: list[SecretObjectData] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class SecretProviderClass:
    """Provider configuration declared by the cluster operator."""

    name: str
    namespace: str
    provider: str
    parameters: dict[str, str] = field(default_factory=dict)
    secret_objects: list[SecretObject] = field(default_factory=list)


@dataclass
class ObjectVersion:
    """Last known version of one object delivered to a mount."""

    id: str
    version: str


@dataclass
class SecretProviderClassPodStatus:
    """Per pod, per mount record of what was last mounted."""

    name: str
    namespace: str
    pod_name: str
    secret_provider_class_name: str
    target_path: str
    mounted: bool = False
    objects: list[ObjectVersion] = field(default_factory=list)
    resource_version: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def key(self) -> str:
        """Queue key for this status."""
        return f"{self.namespace}/{self.name}"

    def object_versions(self) -> dict[str, str]:
        """Return the recorded versions as an ``{id: version}`` map."""
        return {obj.id.strip(): obj.version.strip() for obj in self.objects}
