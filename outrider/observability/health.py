"""
Health Check — Liveness and readiness for the operator.

Components:

- ``crd_gate``: has the Rancher Cluster CRD been discovered
- ``sync_manager``: is the consumer running and has the initial sync run
- ``watchers``: are the event source threads alive

The operator is *live* as long as the process answers. It is *ready* only
once the CRD gate is open and the initial bulk sync completed.

## Usage

    from outrider.observability.health import HealthChecker

    checker = HealthChecker(gate=gate, manager=manager, watchers=threads)
    status = checker.check()

    if checker.ready():
        print("Operator is serving")
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SystemHealth:
    """Overall operator health status."""

    status: HealthStatus
    timestamp: str
    uptime_seconds: float
    ready: bool
    components: List[ComponentHealth]

    @property
    def healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp,
            "uptime_seconds": self.uptime_seconds,
            "healthy": self.healthy,
            "ready": self.ready,
            "components": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "details": c.details,
                }
                for c in self.components
            ],
        }


class HealthChecker:
    """
    Operator health checker.

    Every collaborator is optional so the probe server can start before
    the operator has built them; a missing one reports as unhealthy.
    """

    def __init__(
        self,
        gate=None,
        manager=None,
        watchers: Optional[List[threading.Thread]] = None,
    ):
        self.gate = gate
        self.manager = manager
        self.watchers = watchers if watchers is not None else []
        self._start_time = time.time()

    def ready(self) -> bool:
        """CRD discovered and initial sync done."""
        if self.gate is None or self.manager is None:
            return False
        return bool(self.gate.available and self.manager.initial_sync_done)

    def check(self) -> SystemHealth:
        """Run all health checks and return status."""
        components = [
            self._check_crd_gate(),
            self._check_sync_manager(),
            self._check_watchers(),
        ]

        statuses = [c.status for c in components]
        if HealthStatus.UNHEALTHY in statuses:
            overall = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall = HealthStatus.DEGRADED
        else:
            overall = HealthStatus.HEALTHY

        return SystemHealth(
            status=overall,
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            uptime_seconds=time.time() - self._start_time,
            ready=self.ready(),
            components=components,
        )

    def _check_crd_gate(self) -> ComponentHealth:
        if self.gate is None:
            return ComponentHealth(
                name="crd_gate",
                status=HealthStatus.UNHEALTHY,
                message="CRD gate not initialized",
            )

        details = {"attempts": self.gate.attempts}
        if self.gate.available:
            return ComponentHealth(
                name="crd_gate",
                status=HealthStatus.HEALTHY,
                message=f"{self.gate.target.api_version} {self.gate.target.kind} available",
                details=details,
            )
        return ComponentHealth(
            name="crd_gate",
            status=HealthStatus.DEGRADED,
            message="Waiting for Cluster CRD",
            details=details,
        )

    def _check_sync_manager(self) -> ComponentHealth:
        if self.manager is None:
            return ComponentHealth(
                name="sync_manager",
                status=HealthStatus.UNHEALTHY,
                message="Sync manager not initialized",
            )

        details = {
            "running": self.manager.running,
            "initial_sync_done": self.manager.initial_sync_done,
            "synced_clusters": len(self.manager.synced_clusters),
        }
        if not self.manager.initial_sync_done:
            return ComponentHealth(
                name="sync_manager",
                status=HealthStatus.DEGRADED,
                message="Initial sync pending",
                details=details,
            )
        if not self.manager.running:
            return ComponentHealth(
                name="sync_manager",
                status=HealthStatus.UNHEALTHY,
                message="Sync manager stopped",
                details=details,
            )
        return ComponentHealth(
            name="sync_manager",
            status=HealthStatus.HEALTHY,
            message="Processing events",
            details=details,
        )

    def _check_watchers(self) -> ComponentHealth:
        if not self.watchers:
            return ComponentHealth(
                name="watchers",
                status=HealthStatus.DEGRADED,
                message="No watchers started",
            )

        dead = [t.name for t in self.watchers if not t.is_alive()]
        if dead:
            return ComponentHealth(
                name="watchers",
                status=HealthStatus.UNHEALTHY,
                message=f"Watchers stopped: {', '.join(dead)}",
                details={"dead": dead},
            )
        return ComponentHealth(
            name="watchers",
            status=HealthStatus.HEALTHY,
            message=f"{len(self.watchers)} watchers running",
        )
