"""
CRD Gate — Block startup until the Rancher Cluster CRD is served.

Discovery is retried forever with capped exponential backoff
(10s, 20s, 40s, 60s, 60s, ...). Failures are logged, never raised.

## Usage

    from outrider.k8s.crd import CrdGate

    gate = CrdGate(api_client, config.crd)
    gate.wait()   # returns once provisioning.cattle.io/v1 Cluster exists
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..config import CrdTarget

logger = logging.getLogger(__name__)


class CrdGate:
    """Startup barrier for the downstream-cluster resource type."""

    def __init__(
        self,
        api_client: client.ApiClient,
        target: CrdTarget,
        sleep: Optional[Callable[[float], None]] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self.target = target
        self.apis = client.ApisApi(api_client)
        self.custom = client.CustomObjectsApi(api_client)
        self._stop = stop_event or threading.Event()
        self._sleep = sleep or self._stop.wait
        self._available = threading.Event()
        self.attempts = 0

    @property
    def available(self) -> bool:
        return self._available.is_set()

    def check(self) -> bool:
        """
        One discovery round-trip.

        Returns True if the group serves the version and that version
        lists the kind. Raises on API errors.
        """
        groups = self.apis.get_api_versions().groups or []
        group = next((g for g in groups if g.name == self.target.group), None)
        if group is None:
            return False

        versions = [v.version for v in (group.versions or [])]
        if self.target.version not in versions:
            return False

        resources = self.custom.get_api_resources(self.target.group, self.target.version)
        return any(r.kind == self.target.kind for r in (resources.resources or []))

    def wait(self) -> bool:
        """
        Poll until the CRD is discoverable.

        Returns True once available, False only if the stop event is set.
        """
        interval = self.target.poll_interval
        label = f"{self.target.kind} CRD ({self.target.api_version})"

        while not self._stop.is_set():
            self.attempts += 1
            try:
                if self.check():
                    logger.info(f"{label} is available")
                    self._available.set()
                    return True
                logger.info(f"{label} not yet available, waiting {interval:g} seconds...")
            except ApiException as e:
                logger.warning(
                    f"Error checking for {label}: {e.status} {e.reason}, "
                    f"retrying in {interval:g} seconds..."
                )
            except Exception as e:
                logger.warning(
                    f"Error checking for {label}: {e}, retrying in {interval:g} seconds..."
                )

            self._sleep(interval)
            interval = min(interval * 2, self.target.poll_max_interval)

        return False
