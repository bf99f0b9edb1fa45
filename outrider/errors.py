"""
Errors — Exception types raised across the operator.

Startup errors (``ConfigurationError``) stop the process. Everything raised
while copying one secret to one cluster is caught and logged by the sync
manager so that sibling copies in the same batch still run.
"""

from __future__ import annotations

from typing import Optional


class OutriderError(Exception):
    """Base class for operator errors."""
    pass


class ConfigurationError(OutriderError):
    """Raised when required configuration is missing or invalid."""
    pass


class KubeconfigError(OutriderError):
    """
    Raised when a downstream cluster's connection descriptor cannot be
    fetched, decoded, parsed or turned into a client.
    """

    def __init__(self, message: str, cluster: Optional[str] = None):
        self.message = message
        self.cluster = cluster
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.cluster:
            return f"cluster {self.cluster}: {self.message}"
        return self.message


class NamespaceError(OutriderError):
    """Raised when a target namespace cannot be read or created."""
    pass


class SecretCopyError(OutriderError):
    """Raised when applying a secret to a downstream cluster fails."""
    pass
