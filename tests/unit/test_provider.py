"""Tests for provider clients and the provider client cache."""

from __future__ import annotations

import dataclasses
import json
from unittest.mock import MagicMock

import httpx
import pytest

from secrets_store_rotator.provider_cache import ProviderClientCache
from secrets_store_rotator.services.provider import MountResponse, SocketProviderClient, provider_socket_path
from secrets_store_rotator.utils.errors import ProviderClientError, ProviderError


def mock_client(handler):
    return SocketProviderClient("vault", "/etc/kubernetes/secrets-store-csi-providers",
                                transport=httpx.MockTransport(handler))


class TestSocketProviderClient:
    """Test cases for the unix socket provider client."""

    def test_socket_path(self):
        """Test the socket path is derived from the provider name."""
        assert provider_socket_path("/providers", "vault") == "/providers/vault.sock"

    def test_missing_socket(self, tmp_path):
        """Test a provider without a socket cannot be used."""
        with pytest.raises(ProviderClientError, match="not found"):
            SocketProviderClient("vault", str(tmp_path))

    @pytest.mark.parametrize("name", ["", "..", "../etc/passwd"])
    def test_invalid_name(self, name, tmp_path):
        """Test provider names cannot escape the socket directory."""
        with pytest.raises(ProviderClientError, match="invalid provider name"):
            SocketProviderClient(name, str(tmp_path))

    def test_mount_content(self):
        """Test the mount request body and the parsed versions."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"objectVersion": [{"id": "db-pass", "version": "v2"}]})

        client = mock_client(handler)
        response = client.mount_content('{"roleName":"app"}', "{}", "/target", "420", {"db-pass": "v1"})

        assert response.object_versions == {"db-pass": "v2"}
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1alpha1/mount"
        assert json.loads(request.content) == {
            "attributes": '{"roleName":"app"}',
            "secrets": "{}",
            "targetPath": "/target",
            "permission": "420",
            "currentObjectVersion": [{"id": "db-pass", "version": "v1"}],
        }

    def test_mount_response_carries_versions_only(self):
        """Test provider error codes travel on ProviderError, not the response."""
        assert [f.name for f in dataclasses.fields(MountResponse)] == ["object_versions"]

    def test_provider_error_code(self):
        """Test an error code in the response is raised with that code."""
        client = mock_client(lambda request: httpx.Response(200, json={"error": {"code": "AuthFailed"}}))

        with pytest.raises(ProviderError) as exc_info:
            client.mount_content("{}", "{}", "/target", "420", {})
        assert exc_info.value.code == "AuthFailed"

    def test_http_error_status(self):
        """Test non-success statuses fail the mount."""
        client = mock_client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(ProviderError, match="returned status 500") as exc_info:
            client.mount_content("{}", "{}", "/target", "420", {})
        assert exc_info.value.code == "FailedToRotate"

    def test_transport_error(self):
        """Test connection failures fail the mount."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = mock_client(handler)

        with pytest.raises(ProviderError, match="failed"):
            client.mount_content("{}", "{}", "/target", "420", {})

    def test_invalid_json(self):
        """Test malformed responses fail the mount."""
        client = mock_client(lambda request: httpx.Response(200, text="not json"))

        with pytest.raises(ProviderError):
            client.mount_content("{}", "{}", "/target", "420", {})

    def test_empty_versions(self):
        """Test a response without versions yields an empty map."""
        client = mock_client(lambda request: httpx.Response(200, json={}))

        assert client.mount_content("{}", "{}", "/target", "420", {}).object_versions == {}


class TestProviderClientCache:
    """Test cases for the provider client cache."""

    def test_client_is_reused(self):
        """Test a provider's client is built once."""
        factory = MagicMock(side_effect=lambda name: MagicMock(name=name))
        cache = ProviderClientCache("/providers", factory=factory)

        first = cache.get("vault")
        second = cache.get("vault")

        assert first is second
        factory.assert_called_once_with("vault")
        assert "vault" in cache

    def test_clients_per_provider(self):
        """Test each provider gets its own client."""
        cache = ProviderClientCache("/providers", factory=lambda name: MagicMock())

        assert cache.get("vault") is not cache.get("azure")

    def test_failure_is_not_cached(self):
        """Test a failed construction is retried on the next get."""
        client = MagicMock()
        factory = MagicMock(side_effect=[ProviderClientError("no socket"), client])
        cache = ProviderClientCache("/providers", factory=factory)

        with pytest.raises(ProviderClientError):
            cache.get("vault")
        assert "vault" not in cache
        assert cache.get("vault") is client
        assert factory.call_count == 2

    def test_default_factory_needs_socket(self, tmp_path):
        """Test the default factory fails without a provider socket."""
        cache = ProviderClientCache(str(tmp_path))

        with pytest.raises(ProviderClientError):
            cache.get("vault")

    def test_close(self):
        """Test closing releases every client, even if one fails."""
        clients = {"vault": MagicMock(), "azure": MagicMock()}
        clients["vault"].close.side_effect = RuntimeError("already closed")
        cache = ProviderClientCache("/providers", factory=clients.__getitem__)
        cache.get("vault")
        cache.get("azure")

        cache.close()

        clients["vault"].close.assert_called_once()
        clients["azure"].close.assert_called_once()
        assert "vault" not in cache
