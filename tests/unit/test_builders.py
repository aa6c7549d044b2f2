"""Tests for secrets-store model builders."""

from __future__ import annotations

from secrets_store_rotator.builders import (
    build_pod_status_body,
    create_pod_status_from_obj,
    create_secret_provider_class_from_obj,
)
from secrets_store_rotator.models import ObjectVersion

from .factories import make_pod_status


class TestSecretProviderClassBuilder:
    """Test cases for SecretProviderClass builder."""

    def test_full_object(self):
        """Test all modelled fields are read."""
        spc = create_secret_provider_class_from_obj(
            {
                "metadata": {"name": "spc-1", "namespace": "default"},
                "spec": {
                    "provider": "vault",
                    "parameters": {"roleName": "app", "objects": "- objectName: db-pass"},
                    "secretObjects": [
                        {
                            "secretName": "tls",
                            "type": "kubernetes.io/tls",
                            "labels": {"app": "web"},
                            "data": [
                                {"objectName": "bundle", "key": "tls.key"},
                                {"objectName": "bundle", "key": "tls.crt", "encoding": "base64"},
                            ],
                        }
                    ],
                },
            }
        )

        assert spc.name == "spc-1"
        assert spc.parameters["roleName"] == "app"
        secret_obj = spc.secret_objects[0]
        assert secret_obj.secret_name == "tls"
        assert secret_obj.labels == {"app": "web"}
        assert [d.key for d in secret_obj.data] == ["tls.key", "tls.crt"]
        assert secret_obj.data[1].encoding == "base64"

    def test_minimal_object(self):
        """Test missing optional fields default to empty values."""
        spc = create_secret_provider_class_from_obj({"metadata": {"name": "spc"}, "spec": {"provider": "azure"}})

        assert spc.parameters == {}
        assert spc.secret_objects == []


class TestPodStatusBuilder:
    """Test cases for SecretProviderClassPodStatus builder."""

    def test_from_obj(self):
        """Test status fields are read."""
        status = create_pod_status_from_obj(
            {
                "metadata": {"name": "s", "namespace": "ns", "resourceVersion": "5"},
                "status": {
                    "podName": "app",
                    "secretProviderClassName": "spc-1",
                    "targetPath": "/mount",
                    "mounted": True,
                    "objects": [{"id": "a", "version": "1"}],
                },
            }
        )

        assert status.key == "ns/s"
        assert status.resource_version == "5"
        assert status.objects == [ObjectVersion(id="a", version="1")]
        assert status.mounted

    def test_missing_status(self):
        """Test an object without status is readable."""
        status = create_pod_status_from_obj({"metadata": {"name": "s", "namespace": "ns"}, "status": None})

        assert status.objects == []
        assert status.pod_name == ""

    def test_body_without_raw(self):
        """Test a body can be built from the model alone."""
        body = build_pod_status_body(make_pod_status(versions={"a": "1"}))

        assert body["apiVersion"] == "secrets-store.csi.x-k8s.io/v1"
        assert body["kind"] == "SecretProviderClassPodStatus"
        assert body["metadata"] == {"name": "app-default-spc-1", "namespace": "default", "resourceVersion": "10"}
        assert body["status"]["objects"] == [{"id": "a", "version": "1"}]

    def test_body_does_not_mutate_raw(self):
        """Test building a body leaves the read object untouched."""
        pod_status = make_pod_status(versions={"a": "2"})
        pod_status.raw = {"metadata": {"name": "app-default-spc-1"}, "status": {"objects": [{"id": "a", "version": "1"}]}}

        build_pod_status_body(pod_status)

        assert pod_status.raw["status"]["objects"] == [{"id": "a", "version": "1"}]
