"""Helpers for inspecting CSI mount target paths."""

from __future__ import annotations

import os
import re

_POD_UID_PATTERN = re.compile(r"[\\/]+pods[\\/]+(.+?)[\\/]+volumes[\\/]+kubernetes\.io~csi")
_VOLUME_NAME_PATTERN = re.compile(
    r"[\\/]+pods[\\/]+(.+?)[\\/]+volumes[\\/]+kubernetes\.io~csi[\\/]+(.+?)[\\/]+mount"
)


def get_pod_uid_from_target_path(target_path: str) -> str:
    """Return the pod UID encoded in a kubelet CSI target path, or ""."""
    match = _POD_UID_PATTERN.search(target_path)
    return match.group(1) if match else ""


def get_volume_name_from_target_path(target_path: str) -> str:
    """Return the volume name encoded in a kubelet CSI target path, or ""."""
    match = _VOLUME_NAME_PATTERN.search(target_path)
    return match.group(2) if match else ""


def get_mounted_files(target_path: str) -> dict[str, bytes]:
    """Read every file mounted at the target path.

    Entries whose name starts with ``..`` belong to the atomic writer's
    staging directories and are skipped; the visible names are symlinks into
    them. Nested files are keyed by their path relative to ``target_path``
    using forward slashes.

    Raises:
        OSError: If the target path does not exist or a file cannot be read
    """
    if not os.path.isdir(target_path):
        raise FileNotFoundError(f"target path {target_path} does not exist")

    files: dict[str, bytes] = {}
    for root, dirs, names in os.walk(target_path, followlinks=True):
        dirs[:] = sorted(d for d in dirs if not d.startswith(".."))
        for name in sorted(names):
            if name.startswith(".."):
                continue
            path = os.path.join(root, name)
            relative = os.path.relpath(path, target_path).replace(os.sep, "/")
            with open(path, "rb") as f:
                files[relative] = f.read()
    return files
