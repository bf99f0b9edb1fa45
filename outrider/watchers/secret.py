"""
Secret watcher — emits ``SecretChanged`` for enabled secrets.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from kubernetes import client

from ..models import SecretChanged, SecretRecord, SyncEvent
from .base import EventSource

logger = logging.getLogger(__name__)


class SecretEventSource(EventSource):
    """Watches secrets in every namespace of the management cluster."""

    name = "secret"

    def __init__(self, core: client.CoreV1Api, config, **kwargs):
        super().__init__(config, **kwargs)
        self.core = core

    def list_call(self):
        return self.core.list_secret_for_all_namespaces, (), {}

    def normalize(self, event_type: str, obj: Any) -> Optional[SyncEvent]:
        # Deletions are not propagated; downstream copies stay in place
        if event_type not in ("ADDED", "MODIFIED"):
            return None

        secret = SecretRecord.from_kube(obj)
        if not secret.is_enabled(self.config.annotations):
            return None
        return SecretChanged(secret)
