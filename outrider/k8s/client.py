"""
Downstream Clients — Build and cache API clients for downstream clusters.

Two modes:

1. Production: read the cluster's kubeconfig secret (named by
   ``status.clientSecretName``) from the management cluster, decode its
   ``value`` key and build a client from it.
2. Testing (``TESTING_MODE=true``): take the local kubeconfig and point its
   server URL at the downstream cluster by swapping a trailing ``/local``
   path segment for the cluster's internal id. This matches Rancher's
   ``/k8s/clusters/<id>`` proxy URLs.

Clients are cached per cluster name and dropped when the cluster goes
not-ready, so credentials are re-read after a cluster comes back.
"""

from __future__ import annotations

import base64
import binascii
import logging
import threading
from typing import Callable, Dict, Optional

import yaml
from kubernetes import client, config as kube_config
from kubernetes.client.rest import ApiException

from ..config import OperatorConfig
from ..errors import KubeconfigError
from ..models import ClusterDescriptor
from .management import ManagementCluster

logger = logging.getLogger(__name__)

KUBECONFIG_KEY = "value"


def rewrite_local_host(host: str, internal_name: str) -> str:
    """
    Replace a trailing ``local`` path segment of a server URL.

    ``https://rancher/k8s/clusters/local`` -> ``https://rancher/k8s/clusters/c-m-1``.
    URLs whose last segment is not ``local`` are returned unchanged.
    """
    base, sep, last = host.rstrip("/").rpartition("/")
    if sep and last == "local":
        return f"{base}/{internal_name}"
    return host


class ClientFactory:
    """
    Produces an ``ApiClient`` for a downstream cluster.

    Thread-safe; the sync manager is the only caller in practice but the
    probe server reads ``cached_clusters``.
    """

    def __init__(
        self,
        management: ManagementCluster,
        config: OperatorConfig,
        testing_loader: Optional[Callable[[], client.ApiClient]] = None,
    ):
        self.management = management
        self.config = config
        self._testing_loader = testing_loader or kube_config.new_client_from_config
        self._cache: Dict[str, client.ApiClient] = {}
        self._lock = threading.Lock()

    def get(self, cluster: ClusterDescriptor) -> client.ApiClient:
        """Return the cached client for ``cluster``, building it on first use."""
        with self._lock:
            cached = self._cache.get(cluster.name)
        if cached is not None:
            return cached

        if self.config.testing_mode:
            api_client = self._build_testing_client(cluster)
        else:
            kubeconfig = self.fetch_kubeconfig(cluster)
            api_client = self._build_client_from_kubeconfig(cluster, kubeconfig)

        with self._lock:
            self._cache[cluster.name] = api_client
        return api_client

    def invalidate(self, cluster_name: str) -> bool:
        """Drop a cached client. Returns True if one was cached."""
        with self._lock:
            api_client = self._cache.pop(cluster_name, None)
        if api_client is None:
            return False
        logger.debug(f"Dropped cached client for cluster {cluster_name}")
        api_client.close()
        return True

    def clear(self) -> None:
        with self._lock:
            clients = list(self._cache.values())
            self._cache.clear()
        for api_client in clients:
            api_client.close()

    @property
    def cached_clusters(self) -> list:
        with self._lock:
            return sorted(self._cache)

    # ─── Production ─────────────────────────────────────────

    def fetch_kubeconfig(self, cluster: ClusterDescriptor) -> str:
        """
        Read and decode the kubeconfig secret for ``cluster``.

        Raises:
            KubeconfigError: If the secret is missing, empty or undecodable
        """
        secret_name = cluster.kubeconfig_secret_name()
        if not secret_name:
            raise KubeconfigError("status.clientSecretName is not set", cluster=cluster.name)

        namespace = self.management.credentials_namespace_for(cluster)
        logger.info(
            f"Getting kubeconfig secret '{namespace}/{secret_name}' for cluster '{cluster.name}'",
            extra={"cluster": cluster.name},
        )

        try:
            secret = self.management.read_secret(namespace, secret_name)
        except ApiException as e:
            raise KubeconfigError(
                f"failed to get kubeconfig secret {namespace}/{secret_name}: {e.status} {e.reason}",
                cluster=cluster.name,
            ) from e

        data = secret.data or {}
        if KUBECONFIG_KEY not in data:
            raise KubeconfigError(
                f"kubeconfig secret {namespace}/{secret_name} has no '{KUBECONFIG_KEY}' key",
                cluster=cluster.name,
            )

        try:
            return base64.b64decode(data[KUBECONFIG_KEY], validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise KubeconfigError(
                f"failed to decode kubeconfig: {e}", cluster=cluster.name
            ) from e

    def _build_client_from_kubeconfig(
        self, cluster: ClusterDescriptor, kubeconfig: str
    ) -> client.ApiClient:
        try:
            parsed = yaml.safe_load(kubeconfig)
        except yaml.YAMLError as e:
            raise KubeconfigError(f"failed to parse kubeconfig: {e}", cluster=cluster.name) from e

        if not isinstance(parsed, dict):
            raise KubeconfigError("kubeconfig is not a mapping", cluster=cluster.name)

        try:
            return kube_config.new_client_from_config_dict(parsed)
        except Exception as e:
            raise KubeconfigError(f"failed to create client: {e}", cluster=cluster.name) from e

    # ─── Testing mode ───────────────────────────────────────

    def _build_testing_client(self, cluster: ClusterDescriptor) -> client.ApiClient:
        try:
            api_client = self._testing_loader()
        except Exception as e:
            raise KubeconfigError(f"failed to load local kubeconfig: {e}", cluster=cluster.name) from e

        configuration = api_client.configuration
        new_host = rewrite_local_host(configuration.host, cluster.internal_name())
        if new_host != configuration.host:
            logger.debug(
                f"Testing mode: cluster URL {configuration.host} -> {new_host}",
                extra={"cluster": cluster.name},
            )
            configuration.host = new_host
        return api_client
