"""
Sync Events — The vocabulary watchers use to talk to the sync manager.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .cluster import ClusterDescriptor
from .secret import SecretRecord


@dataclass(frozen=True)
class SecretChanged:
    """An enabled secret was created or updated."""

    secret: SecretRecord

    @property
    def kind(self) -> str:
        return "secret_changed"

    def describe(self) -> str:
        return f"SecretChanged({self.secret.key})"


@dataclass(frozen=True)
class ClusterBecameReady:
    """A non-local cluster reports Ready=True."""

    cluster: ClusterDescriptor

    @property
    def kind(self) -> str:
        return "cluster_ready"

    def describe(self) -> str:
        return f"ClusterBecameReady({self.cluster.name})"


@dataclass(frozen=True)
class ClusterBecameNotReady:
    """A non-local cluster stopped being ready (or was deleted)."""

    name: str

    @property
    def kind(self) -> str:
        return "cluster_not_ready"

    def describe(self) -> str:
        return f"ClusterBecameNotReady({self.name})"


SyncEvent = Union[SecretChanged, ClusterBecameReady, ClusterBecameNotReady]
