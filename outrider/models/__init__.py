"""
Models — Snapshots of source secrets and downstream clusters, and the
events that carry them.
"""

from .cluster import (
    ClusterCondition,
    ClusterDescriptor,
    ClusterSpec,
    ClusterStatus,
    is_cluster_ready,
)
from .events import ClusterBecameNotReady, ClusterBecameReady, SecretChanged, SyncEvent
from .secret import SecretRecord

__all__ = [
    "ClusterCondition",
    "ClusterDescriptor",
    "ClusterSpec",
    "ClusterStatus",
    "is_cluster_ready",
    "SecretRecord",
    "SecretChanged",
    "ClusterBecameReady",
    "ClusterBecameNotReady",
    "SyncEvent",
]
