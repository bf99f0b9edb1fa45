"""
Watchers — event sources feeding the sync manager.
"""

from .base import EventSource, pump, resource_version_of
from .cluster import ClusterEventSource
from .secret import SecretEventSource

__all__ = [
    "ClusterEventSource",
    "EventSource",
    "SecretEventSource",
    "pump",
    "resource_version_of",
]
