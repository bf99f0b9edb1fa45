"""
Namespace management for downstream clusters.
"""

from __future__ import annotations

import logging
from typing import Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..errors import NamespaceError

logger = logging.getLogger(__name__)


def ensure_namespace_exists(
    core: client.CoreV1Api,
    namespace: str,
    timeout: Optional[float] = None,
) -> bool:
    """
    Ensure a namespace exists, creating it if the read returns 404.

    Returns True if the namespace was created.

    Raises:
        NamespaceError: On any other read failure, or if create fails
    """
    try:
        core.read_namespace(namespace, _request_timeout=timeout)
        logger.debug(f"Namespace {namespace} already exists")
        return False
    except ApiException as e:
        if e.status != 404:
            raise NamespaceError(
                f"Failed to check namespace {namespace}: {e.status} {e.reason}"
            ) from e

    logger.info(f"Creating namespace {namespace}")
    body = client.V1Namespace(metadata=client.V1ObjectMeta(name=namespace))
    try:
        core.create_namespace(body, _request_timeout=timeout)
    except ApiException as e:
        # Lost a race with another writer; the namespace is there now
        if e.status == 409:
            logger.debug(f"Namespace {namespace} created concurrently")
            return False
        raise NamespaceError(
            f"Failed to create namespace {namespace}: {e.status} {e.reason}"
        ) from e

    logger.info(f"Namespace {namespace} created successfully")
    return True
