"""
Secret synchronization — the copy primitive and the coordinator.
"""

from .manager import FanOutResult, SyncManager, SyncManagerHandle
from .secrets import (
    build_downstream_secret,
    copy_secret_to_cluster,
    get_target_namespace,
    is_secret_enabled,
)

__all__ = [
    "FanOutResult",
    "SyncManager",
    "SyncManagerHandle",
    "build_downstream_secret",
    "copy_secret_to_cluster",
    "get_target_namespace",
    "is_secret_enabled",
]
