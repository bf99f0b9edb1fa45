"""
Cluster watcher — emits readiness transitions for downstream clusters.

Every event for a non-local cluster is reported with its current
readiness. The sync manager decides whether a ready report is new.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from kubernetes import client
from pydantic import ValidationError

from ..models import ClusterBecameNotReady, ClusterBecameReady, ClusterDescriptor, SyncEvent
from .base import EventSource

logger = logging.getLogger(__name__)


class ClusterEventSource(EventSource):
    """Watches ``provisioning.cattle.io/v1`` Clusters in all namespaces."""

    name = "cluster"

    def __init__(self, custom: client.CustomObjectsApi, config, **kwargs):
        super().__init__(config, **kwargs)
        self.custom = custom

    def list_call(self):
        crd = self.config.crd
        return self.custom.list_cluster_custom_object, (crd.group, crd.version, crd.plural), {}

    def normalize(self, event_type: str, obj: Any) -> Optional[SyncEvent]:
        if event_type not in ("ADDED", "MODIFIED", "DELETED"):
            return None

        try:
            cluster = ClusterDescriptor.from_kube(obj)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed cluster event: {e}")
            return None
        if cluster.is_local():
            return None

        if event_type == "DELETED":
            logger.info(f"Cluster '{cluster.name}' deleted", extra={"cluster": cluster.name})
            return ClusterBecameNotReady(cluster.name)

        if cluster.is_ready():
            return ClusterBecameReady(cluster)
        return ClusterBecameNotReady(cluster.name)
