"""
Sync Manager — Central coordinator for copying secrets to clusters.

Watchers never copy anything themselves. They post ``SyncEvent``s through a
``SyncManagerHandle`` into a bounded queue; the manager consumes that queue
on a single thread and owns all decision state:

- ``initial_sync_done``: set once the startup bulk sync has run. Secret
  events seen before that are dropped, the bulk sync covers them.
- ``synced_clusters``: clusters that got a full fan-out since they last
  became ready. A cluster leaves the set the moment it is reported
  not-ready, so its next ready event triggers a fresh fan-out.

Because only the consumer thread touches this state, no locking is needed
around it. A full queue blocks the watchers until the manager catches up.

## Usage

    manager, handle = SyncManager.create(management, config, client_factory)
    threading.Thread(target=pump, args=(source, handle)).start()
    manager.run()   # blocks until manager.stop()
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from kubernetes.client.rest import ApiException

from ..config import OperatorConfig
from ..k8s.client import ClientFactory
from ..k8s.management import ManagementCluster
from ..models import (
    ClusterBecameNotReady,
    ClusterBecameReady,
    ClusterDescriptor,
    SecretChanged,
    SecretRecord,
    SyncEvent,
)
from ..observability.metrics import MetricsRegistry, metrics as default_metrics
from .secrets import copy_secret_to_cluster, is_secret_enabled

logger = logging.getLogger(__name__)

# Posted by stop() to wake the consumer
_STOP = object()

# How often an idle consumer rechecks the stop flag
POLL_INTERVAL = 0.5

# Downstream answers that mean the cached credentials are stale
AUTH_FAILURE_STATUSES = (401, 403)


def is_auth_failure(error: BaseException) -> bool:
    """True if ``error`` or any exception it wraps is a 401/403 ``ApiException``."""
    while error is not None:
        if isinstance(error, ApiException) and error.status in AUTH_FAILURE_STATUSES:
            return True
        error = error.__cause__
    return False


@dataclass
class FanOutResult:
    """Outcome of one batch of independent (secret, cluster) copies."""

    trigger: str
    succeeded: List[Tuple[str, str]] = field(default_factory=list)
    failed: List[Tuple[str, str, str]] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        return f"{len(self.succeeded)}/{self.attempted} copies succeeded"


class SyncManagerHandle:
    """Send side of the manager's queue. Safe to share between threads."""

    def __init__(self, events: "queue.Queue"):
        self._events = events

    def send(self, event: SyncEvent, timeout: Optional[float] = None) -> bool:
        """
        Enqueue an event, blocking while the queue is full.

        Returns False only if ``timeout`` expired first.
        """
        try:
            self._events.put(event, timeout=timeout)
        except queue.Full:
            logger.error(f"Sync queue full, dropped {event.describe()}")
            return False
        return True


class SyncManager:
    """
    Single consumer of sync events.

    Receives events from watchers and performs the actual copy work.
    """

    def __init__(
        self,
        management: ManagementCluster,
        config: OperatorConfig,
        client_factory: ClientFactory,
        events: Optional["queue.Queue"] = None,
        registry: Optional[MetricsRegistry] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.management = management
        self.config = config
        self.client_factory = client_factory
        self.metrics = registry or default_metrics
        self._events = events if events is not None else queue.Queue(maxsize=config.event_queue_size)
        self._stop = threading.Event()
        self._sleep = sleep or self._stop.wait

        self.initial_sync_done = False
        self.synced_clusters: Set[str] = set()
        self.running = False
        self.events_processed = 0

    @classmethod
    def create(
        cls,
        management: ManagementCluster,
        config: OperatorConfig,
        client_factory: ClientFactory,
        **kwargs,
    ) -> Tuple["SyncManager", SyncManagerHandle]:
        manager = cls(management, config, client_factory, **kwargs)
        return manager, manager.handle()

    def handle(self) -> SyncManagerHandle:
        return SyncManagerHandle(self._events)

    # ─── Lifecycle ──────────────────────────────────────────

    def run(self) -> None:
        """Run the initial sync, then process events until stopped."""
        self.running = True
        logger.info("SyncManager started, performing initial sync...")

        interval = self.config.crd.poll_interval
        while not self._stop.is_set() and not self.initial_sync():
            logger.warning(f"Initial sync could not list resources, retrying in {interval:g} seconds...")
            self._sleep(interval)
            interval = min(interval * 2, self.config.crd.poll_max_interval)

        if self.initial_sync_done:
            logger.info("Initial sync complete, listening for events...")
            self._consume()

        self.running = False
        logger.info("SyncManager stopped")

    def _consume(self) -> None:
        # Events sent before stop() are handled before exiting
        while True:
            try:
                event = self._events.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                if self._stop.is_set():
                    break
                continue
            if event is _STOP:
                break
            self.handle_event(event)

    def stop(self) -> None:
        self._stop.set()
        try:
            self._events.put_nowait(_STOP)
        except queue.Full:
            # Consumer exits once the queue drains
            pass

    # ─── Initial sync ───────────────────────────────────────

    def initial_sync(self) -> bool:
        """
        Copy every enabled secret to every ready cluster.

        Returns False if the clusters or secrets could not be listed; in
        that case nothing is marked and the flag stays unset.
        """
        try:
            clusters = self.management.list_ready_clusters()
        except Exception as e:
            logger.error(f"Failed to get ready clusters for initial sync: {e}")
            return False
        logger.info(f"Found {len(clusters)} ready clusters")

        try:
            secrets = self.management.list_enabled_secrets()
        except Exception as e:
            logger.error(f"Failed to get enabled secrets for initial sync: {e}")
            return False
        logger.info(f"Found {len(secrets)} enabled secrets")

        result = FanOutResult(trigger="initial")
        for secret in secrets:
            self._copy_to_clusters(secret, clusters, result)
        self._finish_fan_out(result)

        for cluster in clusters:
            self.synced_clusters.add(cluster.name)

        self.initial_sync_done = True
        self.metrics.set_gauge("initial_sync_done", 1)
        self._update_gauges()
        return True

    # ─── Event handling ─────────────────────────────────────

    def handle_event(self, event: SyncEvent) -> None:
        """Process one event. Never raises."""
        logger.debug(f"Handling event: {event.describe()}", extra={"event": event.kind})
        self.metrics.increment("events_total", labels={"kind": event.kind})

        try:
            if isinstance(event, SecretChanged):
                self.handle_secret_changed(event.secret)
            elif isinstance(event, ClusterBecameReady):
                self.handle_cluster_ready(event.cluster)
            elif isinstance(event, ClusterBecameNotReady):
                self.handle_cluster_not_ready(event.name)
            else:
                logger.warning(f"Ignoring unknown event {event!r}")
        except Exception:
            logger.exception(f"Unexpected error handling {event.describe()}")
        finally:
            self.events_processed += 1
            self._update_gauges()

    def handle_secret_changed(self, secret: SecretRecord) -> Optional[FanOutResult]:
        log_extra = {"secret": secret.key}

        if not self.initial_sync_done:
            logger.debug(
                f"Skipping secret {secret.key} change, initial sync not complete",
                extra=log_extra,
            )
            self.metrics.increment("events_dropped_total")
            return None

        if not is_secret_enabled(secret, self.config.annotations):
            logger.debug(f"Secret {secret.key} is not enabled, skipping", extra=log_extra)
            return None

        logger.info(f"Secret {secret.key} changed, syncing to all ready clusters", extra=log_extra)

        try:
            clusters = self.management.list_ready_clusters()
        except Exception as e:
            logger.error(f"Failed to get ready clusters: {e}", extra=log_extra)
            return None

        result = FanOutResult(trigger="secret")
        self._copy_to_clusters(secret, clusters, result)
        self._finish_fan_out(result)
        return result

    def handle_cluster_ready(self, cluster: ClusterDescriptor) -> Optional[FanOutResult]:
        log_extra = {"cluster": cluster.name}

        if cluster.is_local():
            logger.debug("Skipping local cluster", extra=log_extra)
            return None

        # Status churn on an already-synced cluster must not re-trigger a fan-out
        if cluster.name in self.synced_clusters:
            logger.debug(
                f"Cluster '{cluster.name}' already synced, skipping secret sync on update",
                extra=log_extra,
            )
            return None

        logger.info(
            f"Cluster '{cluster.name}' became ready, syncing all enabled secrets",
            extra=log_extra,
        )

        try:
            secrets = self.management.list_enabled_secrets()
        except Exception as e:
            logger.error(f"Failed to get enabled secrets: {e}", extra=log_extra)
            return None

        result = FanOutResult(trigger="cluster")
        for secret in secrets:
            self._copy_one(secret, cluster, result)
        self._finish_fan_out(result)

        self.synced_clusters.add(cluster.name)
        return result

    def handle_cluster_not_ready(self, name: str) -> None:
        logger.info(
            f"Cluster '{name}' is no longer ready, removing from synced set",
            extra={"cluster": name},
        )
        self.synced_clusters.discard(name)
        self.client_factory.invalidate(name)

    # ─── Fan-out ────────────────────────────────────────────

    def _copy_to_clusters(
        self,
        secret: SecretRecord,
        clusters: Sequence[ClusterDescriptor],
        result: FanOutResult,
    ) -> None:
        for cluster in clusters:
            self._copy_one(secret, cluster, result)

    def _copy_one(
        self,
        secret: SecretRecord,
        cluster: ClusterDescriptor,
        result: FanOutResult,
    ) -> bool:
        start = time.monotonic()
        try:
            copy_secret_to_cluster(secret, cluster, self.config, self.client_factory)
        except Exception as e:
            logger.error(
                f"Failed to sync secret {secret.key} to cluster {cluster.name}: {e}",
                extra={"secret": secret.key, "cluster": cluster.name},
            )
            result.failed.append((secret.key, cluster.name, str(e)))
            self.metrics.increment("distributions_total", labels={"result": "error"})
            if is_auth_failure(e) and self.client_factory.invalidate(cluster.name):
                logger.info(
                    f"Dropped client for cluster {cluster.name} after auth failure, "
                    "credentials will be re-read on the next copy",
                    extra={"cluster": cluster.name},
                )
            return False
        finally:
            self.metrics.timing("distribution_duration_seconds", time.monotonic() - start)

        result.succeeded.append((secret.key, cluster.name))
        self.metrics.increment("distributions_total", labels={"result": "ok"})
        return True

    def _finish_fan_out(self, result: FanOutResult) -> None:
        self.metrics.increment("fanouts_total", labels={"trigger": result.trigger})
        if result.attempted == 0:
            logger.debug(f"Fan-out ({result.trigger}): nothing to copy")
        elif result.ok:
            logger.info(f"Fan-out ({result.trigger}): {result.summary()}")
        else:
            logger.warning(f"Fan-out ({result.trigger}): {result.summary()}, {len(result.failed)} failed")

    # ─── Status ─────────────────────────────────────────────

    def _update_gauges(self) -> None:
        self.metrics.set_gauge("synced_clusters", len(self.synced_clusters))
        self.metrics.set_gauge("event_queue_depth", self._events.qsize())

    def status(self) -> Dict:
        """Snapshot for the probe server. Read from other threads, copies only."""
        distributions = self.metrics.counter("distributions_total")
        return {
            "running": self.running,
            "initial_sync_done": self.initial_sync_done,
            "synced_clusters": sorted(self.synced_clusters.copy()),
            "events_processed": self.events_processed,
            "queue_depth": self._events.qsize(),
            "cached_clients": self.client_factory.cached_clusters,
            "distributions": {
                result: distributions.get(labels={"result": result})
                for result in ("ok", "error")
            },
        }
