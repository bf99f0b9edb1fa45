"""
Management Cluster — Read access to source secrets and cluster descriptors.

The sync manager only lists through this class, which keeps the
``kubernetes`` client calls in one place and lets tests hand in a fake.
"""

from __future__ import annotations

import logging
from typing import List

from kubernetes import client, config as kube_config
from pydantic import ValidationError

from ..config import OperatorConfig
from ..models import ClusterDescriptor, SecretRecord

logger = logging.getLogger(__name__)


def load_management_client() -> client.ApiClient:
    """
    Client for the cluster the operator runs in.

    Uses the in-cluster service account when available, otherwise the
    local kubeconfig (``KUBECONFIG`` or ``~/.kube/config``).
    """
    try:
        kube_config.load_incluster_config()
        logger.info("Using in-cluster configuration")
    except kube_config.ConfigException:
        kube_config.load_kube_config()
        logger.info("Using local kubeconfig")
    return client.ApiClient()


class ManagementCluster:
    """List and read resources on the management cluster."""

    def __init__(self, api_client: client.ApiClient, config: OperatorConfig):
        self.api_client = api_client
        self.config = config
        self.core = client.CoreV1Api(api_client)
        self.custom = client.CustomObjectsApi(api_client)

    def list_secrets(self) -> List[SecretRecord]:
        result = self.core.list_secret_for_all_namespaces(
            _request_timeout=self.config.request_timeout,
        )
        return [SecretRecord.from_kube(item) for item in result.items]

    def list_enabled_secrets(self) -> List[SecretRecord]:
        """All secrets, across namespaces, carrying ``enabled: "true"``."""
        return [
            s for s in self.list_secrets()
            if s.is_enabled(self.config.annotations)
        ]

    def list_clusters(self) -> List[ClusterDescriptor]:
        crd = self.config.crd
        result = self.custom.list_cluster_custom_object(
            crd.group,
            crd.version,
            crd.plural,
            _request_timeout=self.config.request_timeout,
        )
        clusters = []
        for item in result.get("items", []):
            try:
                clusters.append(ClusterDescriptor.from_kube(item))
            except ValidationError as e:
                name = (item.get("metadata") or {}).get("name", "<unnamed>")
                logger.warning(f"Skipping malformed cluster {name}: {e}", extra={"cluster": name})
        return clusters

    def list_ready_clusters(self) -> List[ClusterDescriptor]:
        """Ready clusters, never including ``local``."""
        return [
            c for c in self.list_clusters()
            if c.is_ready() and not c.is_local()
        ]

    def read_secret(self, namespace: str, name: str) -> client.V1Secret:
        return self.core.read_namespaced_secret(
            name,
            namespace,
            _request_timeout=self.config.request_timeout,
        )

    def credentials_namespace_for(self, cluster: ClusterDescriptor) -> str:
        return cluster.namespace or self.config.credentials_namespace

