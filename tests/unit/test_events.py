"""Tests for Kubernetes event utilities."""

from __future__ import annotations

from unittest.mock import patch

from secrets_store_rotator.utils.events import emit_event, pod_reference

from .factories import POD_UID, make_pod


class TestPodReference:
    """Test cases for pod_reference function."""

    def test_pod_reference(self):
        """Test the reference identifies the pod."""
        assert pod_reference(make_pod()) == {
            "apiVersion": "v1",
            "kind": "Pod",
            "metadata": {"name": "app", "namespace": "default", "uid": POD_UID},
        }


class TestEmitEvent:
    """Test cases for emit_event function."""

    @patch("secrets_store_rotator.utils.events.kopf.event")
    def test_emit_event_normal(self, mock_event):
        """Test emitting normal event."""
        pod = make_pod()

        emit_event(pod, "Normal", "MountRotationComplete", "successfully rotated mounted contents")

        mock_event.assert_called_once_with(
            pod_reference(pod),
            reason="MountRotationComplete",
            message="successfully rotated mounted contents",
            type="Normal",
        )

    @patch("secrets_store_rotator.utils.events.kopf.event")
    def test_emit_event_warning(self, mock_event):
        """Test emitting warning event."""
        emit_event(make_pod(), "Warning", "SecretRotationFailed", "failed to patch secret")

        call_args = mock_event.call_args
        assert call_args[0][0]["kind"] == "Pod"
        assert call_args[1]["type"] == "Warning"
        assert call_args[1]["reason"] == "SecretRotationFailed"
