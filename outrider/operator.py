"""
Operator — Wires the components together and runs them.

Startup order:

1. Probe server (so liveness answers while we wait)
2. CRD gate, blocking until ``provisioning.cattle.io/v1`` Cluster exists
3. Secret and cluster watchers, one pump thread each
4. Sync manager on the calling thread: initial sync, then events

``stop()`` may be called from a signal handler; every blocking step above
watches the same stop event.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from kubernetes import client

from .admin.server import ProbeServer, create_app
from .config import OperatorConfig
from .k8s.client import ClientFactory
from .k8s.crd import CrdGate
from .k8s.management import ManagementCluster, load_management_client
from .observability.health import HealthChecker
from .observability.metrics import MetricsRegistry, metrics as default_metrics
from .sync.manager import SyncManager
from .watchers import ClusterEventSource, EventSource, SecretEventSource, pump

logger = logging.getLogger(__name__)


class Operator:
    """The running Outrider process."""

    def __init__(
        self,
        config: OperatorConfig,
        api_client: Optional[client.ApiClient] = None,
        registry: Optional[MetricsRegistry] = None,
    ):
        self.config = config
        self.metrics = registry or default_metrics
        self.api_client = api_client or load_management_client()
        self._stop = threading.Event()

        self.management = ManagementCluster(self.api_client, config)
        self.client_factory = ClientFactory(self.management, config)
        self.gate = CrdGate(self.api_client, config.crd, stop_event=self._stop)
        self.manager, self.handle = SyncManager.create(
            self.management, config, self.client_factory, registry=self.metrics
        )

        self.sources: List[EventSource] = [
            SecretEventSource(self.management.core, config, stop_event=self._stop),
            ClusterEventSource(self.management.custom, config, stop_event=self._stop),
        ]
        self.threads: List[threading.Thread] = []

        self.health = HealthChecker(gate=self.gate, manager=self.manager, watchers=self.threads)
        self.probe_server: Optional[ProbeServer] = None

    def run(self) -> None:
        """Block until stopped."""
        logger.info(f"Starting Outrider ({self.config.summary()})")

        if self.config.health_port:
            self._start_probe_server()

        try:
            if not self.gate.wait():
                logger.info("Stopped before the Cluster CRD became available")
                return

            self._start_watchers()
            self.manager.run()
        finally:
            self._shutdown()

    def stop(self) -> None:
        if self._stop.is_set():
            return
        logger.info("Shutting down...")
        self._stop.set()
        for source in self.sources:
            source.stop()
        self.manager.stop()

    def _start_probe_server(self) -> None:
        app = create_app(self.health, self.metrics, status_provider=self.manager.status)
        self.probe_server = ProbeServer(app, port=self.config.health_port)
        self.probe_server.start()

    def _start_watchers(self) -> None:
        for source in self.sources:
            thread = threading.Thread(
                target=pump,
                args=(source, self.handle, self._stop),
                name=f"{source.name}-watcher",
                daemon=True,
            )
            thread.start()
            self.threads.append(thread)
        logger.info(f"Started {len(self.threads)} watchers")

    def _shutdown(self) -> None:
        self.stop()
        if self.probe_server is not None:
            self.probe_server.stop()
        self.client_factory.clear()
        logger.info("Outrider stopped")
