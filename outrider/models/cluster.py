"""
Cluster Model — Rancher ``provisioning.cattle.io/v1`` Cluster descriptor.

Readiness is derived only from ``status.conditions``: a cluster is ready
when it carries a ``Ready`` condition with status ``True``. The ``local``
cluster is the management cluster itself and is never a sync target.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config.constants import LOCAL_CLUSTER_NAME


class ClusterCondition(BaseModel):
    """One entry of ``status.conditions``."""

    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    status: Optional[str] = None
    message: Optional[str] = None


class ClusterSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kubernetes_version: Optional[str] = Field(default=None, alias="kubernetesVersion")
    local: Optional[bool] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")


class ClusterStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    client_secret_name: Optional[str] = Field(default=None, alias="clientSecretName")
    cluster_name: Optional[str] = Field(default=None, alias="clusterName")
    ready: Optional[bool] = None
    conditions: List[ClusterCondition] = Field(default_factory=list)

    # The API serves `conditions: null` on freshly created clusters
    @field_validator("conditions", mode="before")
    @classmethod
    def _null_conditions(cls, value):
        return [] if value is None else value


class ClusterDescriptor(BaseModel):
    """A downstream cluster, as handed to the sync manager in one event."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    namespace: Optional[str] = None
    spec: ClusterSpec = Field(default_factory=ClusterSpec)
    status: Optional[ClusterStatus] = None

    def is_ready(self) -> bool:
        return is_cluster_ready(self)

    def is_local(self) -> bool:
        return self.name == LOCAL_CLUSTER_NAME

    def internal_name(self) -> str:
        """Rancher's internal id (``c-m-xxxx``), falling back to the object name."""
        if self.status and self.status.cluster_name:
            return self.status.cluster_name
        return self.name

    def kubeconfig_secret_name(self) -> Optional[str]:
        if self.status is None:
            return None
        return self.status.client_secret_name or None

    @classmethod
    def from_kube(cls, obj: Dict[str, Any]) -> "ClusterDescriptor":
        """Build from a custom-object dict as returned by ``CustomObjectsApi``."""
        meta = obj.get("metadata") or {}
        return cls(
            name=meta.get("name") or "",
            namespace=meta.get("namespace"),
            spec=obj.get("spec") or {},
            status=obj.get("status"),
        )


def is_cluster_ready(cluster: ClusterDescriptor) -> bool:
    """True when ``status.conditions`` holds ``Ready=True``. Missing status is not ready."""
    if cluster.status is None:
        return False
    return any(
        c.type == "Ready" and c.status == "True"
        for c in cluster.status.conditions
    )
