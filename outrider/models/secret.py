"""
Secret Model — Snapshot of a source Secret on the management cluster.

``data`` holds values exactly as the API serves them (base64 strings), so
a record can be applied downstream without decoding the payload.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config.constants import Annotations


class SecretRecord(BaseModel):
    """A source secret, as handed to the sync manager in one event."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    namespace: str = ""
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    data: Dict[str, str] = Field(default_factory=dict)
    string_data: Dict[str, str] = Field(default_factory=dict, alias="stringData")
    type: str = "Opaque"
    immutable: Optional[bool] = None

    @property
    def key(self) -> str:
        """``namespace/name`` used in log lines."""
        return f"{self.namespace}/{self.name}"

    def is_enabled(self, annotations: Annotations) -> bool:
        """Only an enabled annotation of exactly "true" opts a secret in."""
        return self.annotations.get(annotations.enabled) == "true"

    @classmethod
    def from_kube(cls, obj: Any) -> "SecretRecord":
        """Build from a ``V1Secret`` or the equivalent plain dict."""
        if isinstance(obj, dict):
            meta = obj.get("metadata") or {}
            return cls(
                name=meta.get("name") or "",
                namespace=meta.get("namespace") or "",
                labels=meta.get("labels") or {},
                annotations=meta.get("annotations") or {},
                data=obj.get("data") or {},
                string_data=obj.get("stringData") or {},
                type=obj.get("type") or "Opaque",
                immutable=obj.get("immutable"),
            )

        meta = obj.metadata
        return cls(
            name=meta.name or "",
            namespace=meta.namespace or "",
            labels=meta.labels or {},
            annotations=meta.annotations or {},
            data=obj.data or {},
            string_data=getattr(obj, "string_data", None) or {},
            type=obj.type or "Opaque",
            immutable=obj.immutable,
        )
