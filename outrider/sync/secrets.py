"""
Secret Distribution — Copy one secret into one downstream cluster.

Steps, in order:

1. Resolve the target namespace (annotation override, else the default)
2. Get a client for the cluster from the ``ClientFactory``
3. Ensure the namespace exists (read, create on 404)
4. Build the downstream object with operator annotations removed
5. Server-side apply it as field manager ``outrider`` with ``force=True``

Applying the same input twice converges to the same object; nothing is
ever created twice. Any failure is raised to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..config import Annotations, OperatorConfig
from ..errors import SecretCopyError
from ..k8s.client import ClientFactory
from ..k8s.namespaces import ensure_namespace_exists
from ..models import ClusterDescriptor, SecretRecord

logger = logging.getLogger(__name__)

APPLY_CONTENT_TYPE = "application/apply-patch+yaml"


def is_secret_enabled(secret: SecretRecord, annotations: Annotations) -> bool:
    """Check if a secret has the enabled annotation set to exactly "true"."""
    return secret.is_enabled(annotations)


def get_target_namespace(secret: SecretRecord, config: OperatorConfig) -> str:
    """Namespace annotation if present, else ``default_target_namespace``."""
    override = secret.annotations.get(config.annotations.namespace)
    if override:
        return override
    return config.default_target_namespace


def build_downstream_secret(
    secret: SecretRecord,
    target_namespace: str,
    annotations: Annotations,
) -> Dict[str, Any]:
    """
    Apply body for the downstream copy.

    Same name, labels, payload, type and immutability; every annotation
    under the operator prefix is dropped, all others are kept verbatim.
    """
    metadata: Dict[str, Any] = {
        "name": secret.name,
        "namespace": target_namespace,
    }
    if secret.labels:
        metadata["labels"] = dict(secret.labels)

    kept = {
        k: v for k, v in secret.annotations.items()
        if not annotations.is_operator_key(k)
    }
    if kept:
        metadata["annotations"] = kept

    body: Dict[str, Any] = {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": metadata,
        "type": secret.type,
    }
    if secret.data:
        body["data"] = dict(secret.data)
    if secret.string_data:
        body["stringData"] = dict(secret.string_data)
    if secret.immutable is not None:
        body["immutable"] = secret.immutable
    return body


def copy_secret_to_cluster(
    secret: SecretRecord,
    cluster: ClusterDescriptor,
    config: OperatorConfig,
    client_factory: ClientFactory,
) -> None:
    """
    Copy ``secret`` into ``cluster``.

    Raises:
        KubeconfigError: If no client can be built for the cluster
        NamespaceError: If the target namespace cannot be ensured
        SecretCopyError: If the apply call fails
    """
    target_namespace = get_target_namespace(secret, config)
    log_extra = {"secret": secret.key, "cluster": cluster.name}

    logger.info(
        f"Copying secret {secret.key} to cluster {cluster.name}",
        extra=log_extra,
    )

    core = client.CoreV1Api(client_factory.get(cluster))

    ensure_namespace_exists(core, target_namespace, timeout=config.request_timeout)

    body = build_downstream_secret(secret, target_namespace, config.annotations)
    try:
        core.patch_namespaced_secret(
            secret.name,
            target_namespace,
            body,
            field_manager=config.field_manager,
            force=True,
            _content_type=APPLY_CONTENT_TYPE,
            _request_timeout=config.request_timeout,
        )
    except ApiException as e:
        raise SecretCopyError(
            f"Failed to apply secret {target_namespace}/{secret.name}: {e.status} {e.reason}"
        ) from e

    logger.info(
        f"Successfully copied secret {secret.key} to cluster {cluster.name}/{target_namespace}",
        extra=log_extra,
    )
