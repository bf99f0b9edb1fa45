"""
Event Sources — Turn Kubernetes watch streams into sync events.

Each source owns one watch loop over one resource kind and exposes it as
an endless iterator of ``SyncEvent``s. The sync manager never sees raw
watch payloads; it only depends on ``EventSource.events()``.

Stream handling:

- Resumes from the last seen ``resourceVersion`` after a disconnect
- Starts over from a fresh list when the server answers 410 Gone
- Reconnects after any other error with backoff (1s doubling to 60s)
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from kubernetes import watch
from kubernetes.client.rest import ApiException

from ..config import OperatorConfig
from ..models import SyncEvent

logger = logging.getLogger(__name__)

WATCH_TIMEOUT_SECONDS = 300
BACKOFF_INITIAL = 1.0
BACKOFF_MAX = 60.0

HTTP_GONE = 410


def resource_version_of(obj: Any) -> Optional[str]:
    """``metadata.resourceVersion`` of a typed model or a plain dict."""
    if isinstance(obj, dict):
        return (obj.get("metadata") or {}).get("resourceVersion")
    metadata = getattr(obj, "metadata", None)
    return getattr(metadata, "resource_version", None)


class EventSource(ABC):
    """
    Abstract base for watch-backed event sources.

    Subclasses provide the list function to watch and a pure
    ``normalize`` mapping one raw watch event to at most one sync event.
    """

    name: str = "base"

    def __init__(
        self,
        config: OperatorConfig,
        stop_event: Optional[threading.Event] = None,
        watch_factory: Callable[[], watch.Watch] = watch.Watch,
    ):
        self.config = config
        self._stop = stop_event or threading.Event()
        self._watch_factory = watch_factory
        self._watch: Optional[watch.Watch] = None
        self.resource_version: Optional[str] = None
        self.restarts = 0

    @abstractmethod
    def list_call(self) -> Tuple[Callable, tuple, Dict[str, Any]]:
        """Return ``(func, args, kwargs)`` for ``Watch.stream``."""
        pass

    @abstractmethod
    def normalize(self, event_type: str, obj: Any) -> Optional[SyncEvent]:
        """Map one watch event to a sync event, or None to ignore it."""
        pass

    def stop(self) -> None:
        self._stop.set()
        if self._watch is not None:
            self._watch.stop()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def events(self) -> Iterator[SyncEvent]:
        """Yield sync events until ``stop()`` is called."""
        backoff = BACKOFF_INITIAL

        while not self._stop.is_set():
            func, args, kwargs = self.list_call()
            if self.resource_version:
                kwargs["resource_version"] = self.resource_version

            logger.info(
                f"Starting {self.name} watch"
                + (f" from resourceVersion {self.resource_version}" if self.resource_version else "")
            )

            self._watch = self._watch_factory()
            try:
                for raw in self._watch.stream(
                    func, *args, timeout_seconds=WATCH_TIMEOUT_SECONDS, **kwargs
                ):
                    if raw.get("type") == "ERROR":
                        self._raise_error_event(raw.get("raw_object") or raw.get("object"))

                    obj = raw.get("object")
                    version = resource_version_of(obj)
                    if version:
                        self.resource_version = version

                    event = self.normalize(raw.get("type", ""), obj)
                    backoff = BACKOFF_INITIAL
                    if event is not None:
                        yield event

                    if self._stop.is_set():
                        break
                else:
                    logger.debug(f"{self.name} watch stream ended, reconnecting")
                    continue
            except ApiException as e:
                if e.status == HTTP_GONE:
                    logger.info(f"{self.name} watch expired (410 Gone), restarting from a fresh list")
                    self.resource_version = None
                    self.restarts += 1
                    continue
                logger.error(f"{self.name} watch failed: {e.status} {e.reason}")
            except Exception as e:
                logger.error(f"{self.name} watch failed: {e}")
            finally:
                self._watch.stop()

            if self._stop.is_set():
                break

            self.restarts += 1
            logger.info(f"{self.name} watch disconnected, retrying in {backoff:g} seconds...")
            self._stop.wait(backoff)
            backoff = min(backoff * 2, BACKOFF_MAX)

    def _raise_error_event(self, status: Any) -> None:
        if isinstance(status, dict):
            raise ApiException(status=status.get("code"), reason=status.get("message") or status.get("reason"))
        raise ApiException(reason=f"watch error event: {status}")


def pump(source: EventSource, handle, stop_event: Optional[threading.Event] = None) -> None:
    """
    Forward every event from ``source`` into the sync manager.

    ``handle.send`` blocks while the manager's queue is full, which stalls
    this watch until the manager catches up.
    """
    logger.info(f"Event pump for {source.name} started")
    for event in source.events():
        if source.stopped or (stop_event is not None and stop_event.is_set()):
            break
        logger.debug(f"{source.name}: {event.describe()}")
        handle.send(event)
    logger.info(f"Event pump for {source.name} stopped")
