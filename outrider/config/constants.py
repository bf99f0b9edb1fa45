"""
Constants — Annotation keys, field manager and CRD coordinates.

These are grouped into small frozen structures that ride on
``OperatorConfig`` so components receive them explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass

# Server-side apply identity for every downstream write
OPERATOR_NAME = "outrider"

ANNOTATION_PREFIX = "outrider.geeko.me/"

# Cluster named "local" is the Rancher management cluster itself
LOCAL_CLUSTER_NAME = "local"

DEFAULT_CREDENTIALS_NAMESPACE = "cattle-system"
DEFAULT_EVENT_QUEUE_SIZE = 256
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_HEALTH_PORT = 8080


@dataclass(frozen=True)
class Annotations:
    """Annotation keys recognised on source secrets."""

    prefix: str = ANNOTATION_PREFIX

    @property
    def enabled(self) -> str:
        """Must be exactly "true" for the secret to be copied."""
        return f"{self.prefix}enabled"

    @property
    def namespace(self) -> str:
        """Overrides the target namespace in every downstream cluster."""
        return f"{self.prefix}namespace"

    def is_operator_key(self, key: str) -> bool:
        return key.startswith(self.prefix)


@dataclass(frozen=True)
class CrdTarget:
    """The downstream-cluster resource type and how to wait for it."""

    group: str = "provisioning.cattle.io"
    version: str = "v1"
    kind: str = "Cluster"
    plural: str = "clusters"

    # Discovery polling backoff (seconds)
    poll_interval: float = 10
    poll_max_interval: float = 60

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"
