"""
Tests for copying one secret into one downstream cluster.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException

from outrider.config import Annotations
from outrider.errors import KubeconfigError, NamespaceError, SecretCopyError
from outrider.sync.secrets import (
    APPLY_CONTENT_TYPE,
    build_downstream_secret,
    copy_secret_to_cluster,
    get_target_namespace,
    is_secret_enabled,
)
from tests.conftest import ENABLED, TARGET_NAMESPACE, make_cluster, make_secret


@pytest.fixture
def core():
    core = MagicMock()
    with patch("outrider.sync.secrets.client.CoreV1Api", return_value=core):
        yield core


@pytest.fixture
def factory():
    factory = MagicMock()
    factory.get.return_value = MagicMock(name="api_client")
    return factory


class TestTargetNamespace:

    def test_default(self, config):
        assert get_target_namespace(make_secret(), config) == "synced"

    def test_annotation_override(self, config):
        secret = make_secret(annotations={TARGET_NAMESPACE: "tenant-a"})
        assert get_target_namespace(secret, config) == "tenant-a"

    def test_empty_annotation_falls_back(self, config):
        secret = make_secret(annotations={TARGET_NAMESPACE: ""})
        assert get_target_namespace(secret, config) == "synced"


class TestIsSecretEnabled:

    @pytest.mark.parametrize("value,expected", [
        ("true", True),
        ("True", False),
        ("yes", False),
        ("", False),
        (None, False),
    ])
    def test_exact_true_only(self, value, expected):
        assert is_secret_enabled(make_secret(enabled=value), Annotations()) is expected


class TestBuildDownstreamSecret:

    def test_strips_operator_annotations(self):
        secret = make_secret(
            annotations={
                TARGET_NAMESPACE: "tenant-a",
                "outrider.geeko.me/anything": "x",
                "team": "payments",
            },
            labels={"app": "db"},
        )

        body = build_downstream_secret(secret, "tenant-a", Annotations())

        assert body["metadata"] == {
            "name": "db-creds",
            "namespace": "tenant-a",
            "labels": {"app": "db"},
            "annotations": {"team": "payments"},
        }
        assert body["data"] == {"password": "czNjcjN0"}
        assert body["type"] == "Opaque"
        assert body["apiVersion"] == "v1"
        assert body["kind"] == "Secret"

    def test_no_annotations_left(self):
        body = build_downstream_secret(make_secret(), "synced", Annotations())

        assert "annotations" not in body["metadata"]
        assert ENABLED not in str(body)

    def test_optional_fields(self):
        secret = make_secret(data={})
        secret = secret.model_copy(update={"immutable": True, "type": "kubernetes.io/tls"})

        body = build_downstream_secret(secret, "synced", Annotations())

        assert "data" not in body
        assert body["immutable"] is True
        assert body["type"] == "kubernetes.io/tls"

    def test_same_input_same_body(self):
        secret = make_secret(annotations={"team": "x"})
        first = build_downstream_secret(secret, "synced", Annotations())
        second = build_downstream_secret(secret, "synced", Annotations())
        assert first == second


class TestCopySecretToCluster:

    def test_creates_namespace_then_applies(self, config, core, factory):
        core.read_namespace.side_effect = ApiException(status=404, reason="Not Found")
        secret = make_secret(annotations={TARGET_NAMESPACE: "tenant-a"})
        cluster = make_cluster(name="c1")

        copy_secret_to_cluster(secret, cluster, config, factory)

        factory.get.assert_called_once_with(cluster)
        core.create_namespace.assert_called_once()
        ns_body = core.create_namespace.call_args.args[0]
        assert ns_body.metadata.name == "tenant-a"

        args, kwargs = core.patch_namespaced_secret.call_args
        assert args[0] == "db-creds"
        assert args[1] == "tenant-a"
        assert args[2]["metadata"]["namespace"] == "tenant-a"
        assert kwargs["field_manager"] == "outrider"
        assert kwargs["force"] is True
        assert kwargs["_content_type"] == APPLY_CONTENT_TYPE
        assert kwargs["_request_timeout"] == 5.0

    def test_existing_namespace_not_recreated(self, config, core, factory):
        copy_secret_to_cluster(make_secret(), make_cluster(), config, factory)

        core.read_namespace.assert_called_once()
        core.create_namespace.assert_not_called()
        assert core.patch_namespaced_secret.call_args.args[1] == "synced"

    def test_repeated_copy_is_apply_each_time(self, config, core, factory):
        secret, cluster = make_secret(), make_cluster()

        copy_secret_to_cluster(secret, cluster, config, factory)
        copy_secret_to_cluster(secret, cluster, config, factory)

        assert core.patch_namespaced_secret.call_count == 2
        first, second = core.patch_namespaced_secret.call_args_list
        assert first == second

    def test_apply_failure_raises(self, config, core, factory):
        core.patch_namespaced_secret.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(SecretCopyError, match="403"):
            copy_secret_to_cluster(make_secret(), make_cluster(), config, factory)

    def test_namespace_failure_skips_apply(self, config, core, factory):
        core.read_namespace.side_effect = ApiException(status=500, reason="Internal")

        with pytest.raises(NamespaceError):
            copy_secret_to_cluster(make_secret(), make_cluster(), config, factory)
        core.patch_namespaced_secret.assert_not_called()

    def test_client_failure_propagates(self, config, core, factory):
        factory.get.side_effect = KubeconfigError("missing", cluster="c1")

        with pytest.raises(KubeconfigError):
            copy_secret_to_cluster(make_secret(), make_cluster(), config, factory)
        core.read_namespace.assert_not_called()
