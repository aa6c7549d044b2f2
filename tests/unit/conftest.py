"""Shared fixtures for rotation controller tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from secrets_store_rotator.handlers.rotation import RotationHandler
from secrets_store_rotator.services.provider import MountResponse

from .factories import make_pod, make_spc


@pytest.fixture
def store() -> MagicMock:
    mock_store = MagicMock()
    mock_store.get_pod.return_value = make_pod()
    mock_store.get_secret_provider_class.return_value = make_spc()
    return mock_store


@pytest.fixture
def writer() -> MagicMock:
    mock_writer = MagicMock()
    mock_writer.patch_secret.return_value = True
    return mock_writer


@pytest.fixture
def provider_client() -> MagicMock:
    mock_client = MagicMock()
    mock_client.mount_content.return_value = MountResponse(object_versions={"db-pass": "v1"})
    return mock_client


@pytest.fixture
def provider_clients(provider_client: MagicMock) -> MagicMock:
    cache = MagicMock()
    cache.get.return_value = provider_client
    return cache


@pytest.fixture
def files() -> dict[str, bytes]:
    return {"db-pass": b"newpass"}


@pytest.fixture
def emit() -> MagicMock:
    return MagicMock()


@pytest.fixture
def handler(store: Any, writer: Any, provider_clients: Any, emit: Any, files: dict[str, bytes]) -> RotationHandler:
    return RotationHandler(
        store,
        writer,
        provider_clients,
        emit=emit,
        read_mounted_files=lambda path: files,
        backoff_sleep=lambda seconds: None,
    )
