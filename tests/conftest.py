"""
Shared fixtures for operator tests.

Builds secret and cluster objects in the shapes the Kubernetes API serves
them, plus a stub management cluster so the sync manager can run without
a real API server.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from outrider.config import OperatorConfig
from outrider.models import ClusterDescriptor, SecretRecord
from outrider.observability.metrics import MetricsRegistry

ENABLED = "outrider.geeko.me/enabled"
TARGET_NAMESPACE = "outrider.geeko.me/namespace"


def secret_dict(
    name: str = "db-creds",
    namespace: str = "app",
    annotations: Optional[Dict[str, str]] = None,
    enabled: Optional[str] = "true",
    data: Optional[Dict[str, str]] = None,
    labels: Optional[Dict[str, str]] = None,
    resource_version: str = "1",
) -> Dict:
    """A Secret as a plain dict."""
    annotations = dict(annotations or {})
    if enabled is not None:
        annotations[ENABLED] = enabled
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "annotations": annotations,
            "labels": labels or {},
            "resourceVersion": resource_version,
        },
        "type": "Opaque",
        "data": data if data is not None else {"password": "czNjcjN0"},
    }


def cluster_dict(
    name: str = "c1",
    ready: Optional[bool] = True,
    namespace: str = "fleet-default",
    client_secret_name: Optional[str] = "c1-kubeconfig",
    internal_name: str = "",
    resource_version: str = "1",
) -> Dict:
    """A provisioning.cattle.io/v1 Cluster as served by CustomObjectsApi."""
    obj = {
        "apiVersion": "provisioning.cattle.io/v1",
        "kind": "Cluster",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": resource_version},
        "spec": {"kubernetesVersion": "v1.28.9+rke2r1"},
    }
    if ready is not None:
        obj["status"] = {
            "clientSecretName": client_secret_name,
            "clusterName": internal_name,
            "ready": ready,
            "conditions": [
                {"type": "Provisioned", "status": "True"},
                {"type": "Ready", "status": "True" if ready else "False"},
            ],
        }
    return obj


def make_secret(**kwargs) -> SecretRecord:
    return SecretRecord.from_kube(secret_dict(**kwargs))


def make_cluster(**kwargs) -> ClusterDescriptor:
    return ClusterDescriptor.from_kube(cluster_dict(**kwargs))


class StubManagement:
    """Stand-in for ManagementCluster with mutable listings."""

    def __init__(
        self,
        clusters: Optional[List[ClusterDescriptor]] = None,
        secrets: Optional[List[SecretRecord]] = None,
    ):
        self.clusters = list(clusters or [])
        self.secrets = list(secrets or [])
        self.cluster_error: Optional[Exception] = None
        self.secret_error: Optional[Exception] = None
        self.cluster_calls = 0
        self.secret_calls = 0

    def list_ready_clusters(self) -> List[ClusterDescriptor]:
        self.cluster_calls += 1
        if self.cluster_error is not None:
            raise self.cluster_error
        return [c for c in self.clusters if c.is_ready() and not c.is_local()]

    def list_enabled_secrets(self) -> List[SecretRecord]:
        self.secret_calls += 1
        if self.secret_error is not None:
            raise self.secret_error
        return [s for s in self.secrets if s.annotations.get(ENABLED) == "true"]


@pytest.fixture
def config() -> OperatorConfig:
    return OperatorConfig(default_target_namespace="synced", request_timeout=5.0)


@pytest.fixture
def registry() -> MetricsRegistry:
    return MetricsRegistry()
