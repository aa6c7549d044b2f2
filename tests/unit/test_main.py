"""Tests for operator bootstrap."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from kubernetes import client

from secrets_store_rotator import main
from secrets_store_rotator.config import RotationSettings
from secrets_store_rotator.controller import RotationController


class TestBuildController:
    """Test cases for wiring the controller."""

    def test_build_controller(self):
        """Test settings flow into the controller and its collaborators."""
        settings = RotationSettings(node_name="node-1", poll_interval=30.0, workers=2, cache_ttl=0.0)

        controller = main.build_controller(settings, client.ApiClient())

        assert isinstance(controller, RotationController)
        assert controller.poll_interval == 30.0
        assert controller.workers == 2
        assert controller.store.node_name == "node-1"
        assert controller.handler.provider_clients.provider_volume_path == settings.provider_volume_path
        controller.queue.shut_down()


class TestLifecycle:
    """Test cases for startup and cleanup handlers."""

    @patch("secrets_store_rotator.main.health.start_metrics_server")
    @patch("secrets_store_rotator.main.load_kube_config")
    @patch("secrets_store_rotator.main.build_controller")
    def test_configure_and_shutdown(self, mock_build, mock_load, mock_server, monkeypatch):
        """Test startup starts the controller and cleanup stops it."""
        monkeypatch.setenv("NODE_NAME", "node-1")
        monkeypatch.delenv("KUBECONFIG", raising=False)
        controller = MagicMock()
        mock_build.return_value = controller
        kopf_settings = MagicMock()

        main.configure(settings=kopf_settings)

        controller.start.assert_called_once()
        assert mock_server.call_args[0][0] == 8080

        main.shutdown()

        controller.stop.assert_called_once()
        controller.handler.provider_clients.close.assert_called_once()
        mock_server.return_value.shutdown.assert_called_once()
